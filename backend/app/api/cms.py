"""
Headless CMS API endpoints for the portal.

WHAT: Pages, fields, splits, languages and field values as seen by the
editors in the portal.

WHY: Customers edit the content of their own site, so most routes only
require membership of the organization that owns the project. Staff have
the same operations on any project, and alone remove pages and fields or
toggle listening mode.

HOW: The routes the customer's site calls (register, field values,
languages, listening mode) live in app.api.public.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import AuthContext
from app.core.deps import require_admin, require_organization_member
from app.db.session import get_db
from app.models.user import User
from app.schemas.cms import (
    CMSFieldResponse,
    CMSPageResponse,
    CMSSplitCreate,
    CMSSplitResponse,
    FieldValuesSave,
    LanguagesUpdate,
    ListeningModeUpdate,
    ResolvedFieldValue,
    SuccessResponse,
)
from app.schemas.project import ProjectResponse
from app.services.cms_service import CMSService


router = APIRouter(tags=["cms"])


# ============================================================================
# Staff endpoints
# ============================================================================


@router.put(
    "/projects/{project_id}/cms/listening-mode",
    response_model=ProjectResponse,
    summary="Toggle listening mode",
    description="While listening, the site registers new pages and fields (ADMIN only)",
)
async def set_listening_mode(
    project_id: int,
    data: ListeningModeUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    return await CMSService(db).set_listening_mode(project_id, data.listening_mode)


@router.delete(
    "/cms/pages/{page_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete page",
    description="Delete a CMS page with its fields and values (ADMIN only)",
)
async def delete_page(
    page_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await CMSService(db).delete_page(page_id)


@router.delete(
    "/cms/fields/{field_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete field",
    description="Delete a CMS field with its values (ADMIN only)",
)
async def delete_field(
    field_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await CMSService(db).delete_field(field_id)


@router.get(
    "/projects/{project_id}/cms/pages",
    response_model=List[CMSPageResponse],
    summary="List pages of any project",
)
async def admin_get_pages(
    project_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[CMSPageResponse]:
    return await CMSService(db).get_pages(None, project_id)


@router.get(
    "/cms/pages/{page_id}/fields",
    response_model=List[CMSFieldResponse],
    summary="List fields of any page",
)
async def admin_get_page_fields(
    page_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[CMSFieldResponse]:
    return await CMSService(db).get_page_fields(None, page_id)


@router.get(
    "/cms/pages/{page_id}/values",
    response_model=List[ResolvedFieldValue],
    summary="Get field values of any page",
)
async def admin_get_page_values(
    page_id: int,
    split_id: Optional[int] = Query(None),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[ResolvedFieldValue]:
    return await CMSService(db).get_page_values(None, page_id, split_id)


@router.put(
    "/cms/pages/{page_id}/values",
    response_model=SuccessResponse,
    summary="Save field values of any page",
)
async def admin_save_field_values(
    page_id: int,
    data: FieldValuesSave,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    await CMSService(db).save_field_values(
        None,
        page_id,
        [entry.model_dump() for entry in data.field_values],
        split_id=data.split_id,
    )
    return SuccessResponse()


@router.post(
    "/projects/{project_id}/cms/splits",
    response_model=CMSSplitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add split to any project",
)
async def admin_add_split(
    project_id: int,
    data: CMSSplitCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> CMSSplitResponse:
    return await CMSService(db).add_split(None, project_id, data.name)


@router.get(
    "/projects/{project_id}/cms/splits",
    response_model=List[CMSSplitResponse],
    summary="List splits of any project",
)
async def admin_get_splits(
    project_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[CMSSplitResponse]:
    return await CMSService(db).get_splits(None, project_id)


@router.delete(
    "/cms/splits/{split_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete split of any project",
)
async def admin_delete_split(
    split_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await CMSService(db).delete_split(None, split_id)


@router.get(
    "/projects/{project_id}/cms/languages",
    response_model=LanguagesUpdate,
    summary="Get selected languages",
)
async def admin_get_languages(
    project_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> LanguagesUpdate:
    return LanguagesUpdate(languages=await CMSService(db).get_languages(project_id))


# ============================================================================
# Organization endpoints
# ============================================================================


@router.put(
    "/organizations/{organization_id}/projects/{project_id}/cms/languages",
    response_model=SuccessResponse,
    summary="Change selected languages",
    description="Languages the editor offers for the project's content",
)
async def change_selected_languages(
    organization_id: int,
    project_id: int,
    data: LanguagesUpdate,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    await CMSService(db).set_languages(organization_id, project_id, data.languages)
    return SuccessResponse()


@router.get(
    "/organizations/{organization_id}/projects/{project_id}/cms/pages",
    response_model=List[CMSPageResponse],
    summary="List pages",
    description="Pages the project's site has registered",
)
async def get_pages(
    organization_id: int,
    project_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> List[CMSPageResponse]:
    return await CMSService(db).get_pages(organization_id, project_id)


@router.get(
    "/organizations/{organization_id}/cms/pages/{page_id}/fields",
    response_model=List[CMSFieldResponse],
    summary="List page fields",
)
async def get_page_fields(
    organization_id: int,
    page_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> List[CMSFieldResponse]:
    return await CMSService(db).get_page_fields(organization_id, page_id)


@router.get(
    "/organizations/{organization_id}/cms/pages/{page_id}/values",
    response_model=List[ResolvedFieldValue],
    summary="Get field values",
    description="Resolved values of every field, with the split merged over the defaults",
)
async def get_page_values(
    organization_id: int,
    page_id: int,
    split_id: Optional[int] = Query(None),
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> List[ResolvedFieldValue]:
    return await CMSService(db).get_page_values(organization_id, page_id, split_id)


@router.put(
    "/organizations/{organization_id}/cms/pages/{page_id}/values",
    response_model=SuccessResponse,
    summary="Save field values",
    description="Replace the defaults, or store a split's differences from them",
)
async def save_field_values(
    organization_id: int,
    page_id: int,
    data: FieldValuesSave,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> SuccessResponse:
    await CMSService(db).save_field_values(
        organization_id,
        page_id,
        [entry.model_dump() for entry in data.field_values],
        split_id=data.split_id,
    )
    return SuccessResponse()


@router.post(
    "/organizations/{organization_id}/projects/{project_id}/cms/splits",
    response_model=CMSSplitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add split",
)
async def add_split(
    organization_id: int,
    project_id: int,
    data: CMSSplitCreate,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> CMSSplitResponse:
    return await CMSService(db).add_split(organization_id, project_id, data.name)


@router.get(
    "/organizations/{organization_id}/projects/{project_id}/cms/splits",
    response_model=List[CMSSplitResponse],
    summary="List splits",
)
async def get_splits(
    organization_id: int,
    project_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> List[CMSSplitResponse]:
    return await CMSService(db).get_splits(organization_id, project_id)


@router.delete(
    "/organizations/{organization_id}/cms/splits/{split_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete split",
    description="Delete a split and every value stored for it",
)
async def delete_split(
    organization_id: int,
    split_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> None:
    await CMSService(db).delete_split(organization_id, split_id)
