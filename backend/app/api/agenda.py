"""
Project agenda API endpoints.

WHAT: Staff manage the agenda of any project. Members manage the agenda of
their organization's projects, except items staff created.

HOW: Items created through the staff routes, or by a platform admin
through the member routes, are marked created_by_admin.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import AuthContext
from app.core.deps import require_admin, require_organization_member
from app.db.session import get_db
from app.models.user import User
from app.schemas.agenda import AgendaItemCreate, AgendaItemResponse, AgendaItemUpdate
from app.services.agenda_service import AgendaService


router = APIRouter(tags=["agenda"])


# ============================================================================
# Staff endpoints
# ============================================================================


@router.get(
    "/agenda",
    response_model=List[AgendaItemResponse],
    summary="List agenda items",
    description="Items of a project, else of an organization, else all (ADMIN only)",
)
async def list_agenda_items(
    project_id: Optional[int] = Query(None),
    organization_id: Optional[int] = Query(None),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[AgendaItemResponse]:
    service = AgendaService(db)
    if project_id is None and organization_id is not None:
        return await service.list_items(organization_id)
    return await service.list_items(None, project_id)


@router.post(
    "/projects/{project_id}/agenda",
    response_model=AgendaItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add agenda item",
)
async def create_agenda_item(
    project_id: int,
    data: AgendaItemCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AgendaItemResponse:
    return await AgendaService(db).create_item(None, project_id, data.model_dump(), created_by_admin=True)


@router.get(
    "/agenda/{item_id}",
    response_model=AgendaItemResponse,
    summary="Get agenda item",
)
async def get_agenda_item(
    item_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AgendaItemResponse:
    return await AgendaService(db).get_item(None, item_id)


@router.patch(
    "/agenda/{item_id}",
    response_model=AgendaItemResponse,
    summary="Update agenda item",
)
async def update_agenda_item(
    item_id: int,
    data: AgendaItemUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> AgendaItemResponse:
    return await AgendaService(db).update_item(None, item_id, data.model_dump(), is_staff=True)


@router.delete(
    "/agenda/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete agenda item",
)
async def delete_agenda_item(
    item_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await AgendaService(db).delete_item(None, item_id, is_staff=True)


# ============================================================================
# Organization endpoints
# ============================================================================


@router.get(
    "/organizations/{organization_id}/agenda",
    response_model=List[AgendaItemResponse],
    summary="List organization agenda items",
)
async def list_organization_agenda_items(
    organization_id: int,
    project_id: Optional[int] = Query(None),
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> List[AgendaItemResponse]:
    """
    Raises:
        AuthorizationError (403): Project belongs to another organization
    """
    return await AgendaService(db).list_items(organization_id, project_id)


@router.post(
    "/organizations/{organization_id}/projects/{project_id}/agenda",
    response_model=AgendaItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add organization agenda item",
)
async def create_organization_agenda_item(
    organization_id: int,
    project_id: int,
    data: AgendaItemCreate,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> AgendaItemResponse:
    return await AgendaService(db).create_item(
        organization_id,
        project_id,
        data.model_dump(),
        created_by_admin=ctx.is_platform_admin,
    )


@router.get(
    "/organizations/{organization_id}/agenda/{item_id}",
    response_model=AgendaItemResponse,
    summary="Get organization agenda item",
)
async def get_organization_agenda_item(
    organization_id: int,
    item_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> AgendaItemResponse:
    return await AgendaService(db).get_item(organization_id, item_id)


@router.patch(
    "/organizations/{organization_id}/agenda/{item_id}",
    response_model=AgendaItemResponse,
    summary="Update organization agenda item",
)
async def update_organization_agenda_item(
    organization_id: int,
    item_id: int,
    data: AgendaItemUpdate,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> AgendaItemResponse:
    """
    Raises:
        PermissionDeniedError (403): Item was created by staff
    """
    return await AgendaService(db).update_item(
        organization_id, item_id, data.model_dump(), is_staff=ctx.is_platform_admin
    )


@router.delete(
    "/organizations/{organization_id}/agenda/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete organization agenda item",
)
async def delete_organization_agenda_item(
    organization_id: int,
    item_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> None:
    await AgendaService(db).delete_item(organization_id, item_id, is_staff=ctx.is_platform_admin)
