"""
Project management API endpoints.

WHAT: RESTful API for client projects and their integration keys.

WHY: Projects are the central business entity that:
1. Belong to one organization (the customer tenant)
2. Track delivery progress and phase for the customer
3. Carry the CMS key and Smart Objects key of the customer's site
4. Own the file manager, CMS content, quotes and invoices

HOW: FastAPI router with:
- RBAC (platform admins manage projects and keys)
- Org-scoped reads for members, which never expose the keys
- A dual-purpose listing that checks membership when scoped
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import AuthContext
from app.core.deps import (
    get_auth_context,
    require_admin,
    require_organization_access,
    require_organization_member,
)
from app.db.session import get_db
from app.models.user import User
from app.schemas.project import (
    ProjectCreate,
    ProjectProgressUpdate,
    ProjectResponse,
    ProjectSummary,
    ProjectUpdate,
    SmartObjectsKeyRequest,
)
from app.services.project_service import ProjectService


router = APIRouter(tags=["projects"])


# ============================================================================
# Staff endpoints
# ============================================================================


@router.post(
    "/projects",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create project",
    description="Create a project for an organization (ADMIN only)",
)
async def create_project(
    data: ProjectCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    """
    Create a new project.

    WHAT: Creates the project in phase "planning" at 5% progress and seeds
    its /public, /quotes and /invoices folders.

    Raises:
        ResourceNotFoundError (404): Organization or contact missing
    """
    return await ProjectService(db).create_project(
        organization_id=data.organization_id,
        name=data.name,
        description=data.description,
        contact_information_id=data.contact_information_id,
        url=data.url,
        enable_smart_objects=data.enable_smart_objects,
        enable_cms=data.enable_cms,
    )


@router.get(
    "/projects",
    response_model=List[ProjectSummary],
    summary="List projects",
    description=(
        "List projects. With organization_id only membership is required; "
        "without it the caller must be an ADMIN"
    ),
)
async def list_projects(
    organization_id: Optional[int] = Query(None, description="Organization scope"),
    ctx: AuthContext = Depends(require_organization_access("admin")),
    db: AsyncSession = Depends(get_db),
) -> List[ProjectSummary]:
    return await ProjectService(db).list_projects(organization_id)


@router.get(
    "/projects/{project_id}",
    response_model=ProjectResponse,
    summary="Get project",
    description="Get a project including its keys (ADMIN only)",
)
async def get_project(
    project_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    return await ProjectService(db).get_project(project_id)


@router.patch(
    "/projects/{project_id}",
    response_model=ProjectResponse,
    summary="Update project",
    description="Partial update; omitted or empty values keep the stored value (ADMIN only)",
)
async def update_project(
    project_id: int,
    data: ProjectUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    return await ProjectService(db).update_project(
        project_id,
        name=data.name,
        description=data.description,
        url=data.url,
        enable_smart_objects=data.enable_smart_objects,
        enable_cms=data.enable_cms,
        contact_information_id=data.contact_information_id,
    )


@router.put(
    "/projects/{project_id}/progress",
    response_model=ProjectResponse,
    summary="Update progress",
    description="Set progress percentage and phase (ADMIN only)",
)
async def update_progress(
    project_id: int,
    data: ProjectProgressUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    return await ProjectService(db).update_progress(project_id, data.progress, data.phase)


@router.delete(
    "/projects/{project_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete project",
    description="Delete a project with its files, CMS data, quotes and invoices (ADMIN only)",
)
async def delete_project(
    project_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await ProjectService(db).delete_project(project_id)


# ============================================================================
# Integration keys
# ============================================================================


@router.post(
    "/projects/{project_id}/cms-key",
    response_model=ProjectResponse,
    summary="Generate CMS key",
    description="Replace the project's CMS key; the old key stops working (ADMIN only)",
)
async def generate_cms_key(
    project_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    return await ProjectService(db).generate_cms_key(project_id)


@router.post(
    "/projects/{project_id}/smart-objects-key",
    response_model=ProjectResponse,
    summary="Generate Smart Objects key",
    description="Replace the Smart Objects key and set the site URL (ADMIN only)",
)
async def generate_smart_objects_key(
    project_id: int,
    data: SmartObjectsKeyRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    return await ProjectService(db).generate_smart_objects_key(project_id, data.smart_objects_url)


@router.put(
    "/projects/{project_id}/smart-objects-url",
    response_model=ProjectResponse,
    summary="Update Smart Objects URL",
    description="Change the Smart Objects site URL, keeping the key (ADMIN only)",
)
async def update_smart_objects_url(
    project_id: int,
    data: SmartObjectsKeyRequest,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> ProjectResponse:
    return await ProjectService(db).update_smart_objects_url(project_id, data.smart_objects_url)


# ============================================================================
# Member endpoints
# ============================================================================


@router.get(
    "/projects/{project_id}/membership",
    summary="Check project access",
    description="True when the caller is an ADMIN or a member of the project's organization",
)
async def user_is_part_of_project(
    project_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """
    Raises:
        AuthorizationError (403): Caller is neither staff nor a member
    """
    return {"is_member": await ProjectService(db).user_is_part_of_project(ctx, project_id)}


@router.get(
    "/organizations/{organization_id}/projects/{project_id}",
    response_model=ProjectSummary,
    summary="Get organization project",
    description="Get a project of an organization the caller is a member of",
)
async def get_organization_project(
    organization_id: int,
    project_id: int,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> ProjectSummary:
    """
    Raises:
        AuthorizationError (403): Project belongs to another organization
    """
    return await ProjectService(db).get_project(project_id, organization_id=organization_id)
