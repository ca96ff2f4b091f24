"""
Public endpoints called by customer sites and the Smart Objects proxy.

WHAT: CMS registration and content delivery, and the key-gated Smart
Objects passthrough.

WHY: These callers run on arbitrary origins and authenticate with a
project CMS key or the shared Smart Objects key instead of a user token.
They expect flat bodies, {"error": message} on failure, which
app.core.exception_handlers produces for every path listed in
app.middleware.public_cors.

HOW: Mounted at the root, outside the /api prefix. Query parameters keep
the camelCase names the site SDK sends.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidRequestError
from app.db.session import get_db
from app.schemas.cms import CMSRegisterRequest
from app.services.cms_service import CMSService
from app.services.smart_objects import (
    DEFAULT_PAGE_SIZE,
    SmartObjectsService,
    check_api_key,
    describe_schema,
)


router = APIRouter(tags=["public"])

# Values the site SDK sends for "no split"
EMPTY_SPLIT_VALUES = ("null", "undefined", "")


def require_api_key(api_key: Optional[str] = Query(None, alias="apiKey")) -> None:
    """
    Dependency checking the shared Smart Objects key.

    Runs before the request body is validated, so a bad key is a 401 even
    when the body is malformed.
    """
    check_api_key(api_key)


def parse_split_id(value: str) -> Optional[int]:
    """
    Split id from the query string.

    Raises:
        InvalidRequestError: Neither empty nor numeric
    """
    if value in EMPTY_SPLIT_VALUES:
        return None
    if not value.isdigit():
        raise InvalidRequestError(split_id=value)
    return int(value)


# ============================================================================
# CMS
# ============================================================================


@router.get("/cms/listening-mode/{project_id}", summary="Get listening mode")
async def get_listening_mode(project_id: int, db: AsyncSession = Depends(get_db)) -> dict:
    """Whether the site should register its pages and fields."""
    return {"listeningMode": await CMSService(db).get_listening_mode(project_id)}


@router.post("/cms/register", summary="Register page fields")
async def register(data: CMSRegisterRequest, db: AsyncSession = Depends(get_db)) -> dict:
    """
    Register a page and the default values of its fields.

    Raises:
        ValidationError (400): "Invalid CMS key"
    """
    await CMSService(db).register(
        project_id=data.project_id,
        cms_key=data.api_key,
        page=data.page,
        fields=[field.model_dump() for field in data.fields],
    )
    return {"success": True}


@router.get("/cms/get-fields/", summary="Get field values")
async def get_fields(
    page_id: Optional[str] = Query(None, alias="pageId", description="Page id or slug"),
    split_id: Optional[str] = Query(None, alias="splitId", description="Split id, or 'null'"),
    project_id: Optional[int] = Query(None, alias="projectId"),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Resolved content of a page for the site to render.

    All three parameters are required; splitId may be "null" or
    "undefined" for the default content.
    """
    if not page_id or split_id is None or project_id is None:
        raise InvalidRequestError()

    fields = await CMSService(db).get_field_values(project_id, page_id, parse_split_id(split_id))
    return {"fields": fields}


@router.get("/cms/get-languages/{project_id}", summary="Get languages")
async def get_languages(project_id: int, db: AsyncSession = Depends(get_db)) -> dict:
    return {"languages": await CMSService(db).get_languages(project_id)}


# ============================================================================
# Smart Objects
# ============================================================================


@router.get("/get-schema", summary="Get schema")
async def get_schema(_: None = Depends(require_api_key)) -> dict:
    """Tables and columns reachable through the passthrough."""
    return {"schema": describe_schema()}


@router.get("/get-dynamic-table-data/{table}", summary="List table rows")
async def get_dynamic_table_data(
    table: str,
    cursor: Optional[str] = Query(None),
    num_items: int = Query(DEFAULT_PAGE_SIZE, alias="numItems"),
    _: None = Depends(require_api_key),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    One page of a table.

    Returns:
        {"continueCursor", "isDone", "page"}
    """
    return await SmartObjectsService(db).get_page(table, cursor=cursor, num_items=num_items)


@router.get("/get-object/{object_id}", summary="Get object")
async def get_object(
    object_id: str,
    _: None = Depends(require_api_key),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await SmartObjectsService(db).get_object(object_id)


@router.post("/create-dynamic-table-data/{table}", summary="Create object")
async def create_dynamic_table_data(
    table: str,
    data: Dict[str, Any] = Body(...),
    _: None = Depends(require_api_key),
    db: AsyncSession = Depends(get_db),
) -> dict:
    new_id = await SmartObjectsService(db).create_object(table, data)
    return {"success": True, "id": new_id}


@router.put("/update-object/{object_id}", summary="Update object")
async def update_object(
    object_id: str,
    data: Dict[str, Any] = Body(...),
    _: None = Depends(require_api_key),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await SmartObjectsService(db).update_object(object_id, data)
    return {"success": True}


@router.delete("/delete-object/{object_id}", summary="Delete object")
async def delete_object(
    object_id: str,
    _: None = Depends(require_api_key),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await SmartObjectsService(db).delete_object(object_id)
    return {"success": True}
