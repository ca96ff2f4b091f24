"""
File manager API endpoints.

WHAT: Path-addressed entries (files, links, text and folders) per project
or per organization bucket.

WHY: Staff manage every entry and decide per folder what customers may
change. Customers act inside their organization, limited by the
user_can_edit / user_can_delete flags on the folders above an entry.

HOW: Two groups of routes:
- /files: platform admins, explicit permission flags
- /organizations/{organization_id}/files: members, permission walk
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.authorization import AuthContext
from app.core.deps import require_admin, require_organization_member
from app.db.session import get_db
from app.models.user import User
from app.schemas.file import (
    CustomerFileCreate,
    FileContentUpdate,
    FileCreate,
    FileResponse,
    FilePermissionsUpdate,
    FolderDelete,
    FolderDeleteResponse,
)
from app.services.file_service import FileService


router = APIRouter(tags=["files"])


# ============================================================================
# Staff endpoints
# ============================================================================


@router.get(
    "/files",
    response_model=List[FileResponse],
    summary="List files",
    description="Entries of a project, else of an organization, else all (ADMIN only)",
)
async def list_files(
    project_id: Optional[int] = Query(None),
    organization_id: Optional[int] = Query(None),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> List[FileResponse]:
    return await FileService(db).list_files(project_id=project_id, organization_id=organization_id)


@router.post(
    "/files",
    response_model=FileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create file",
    description="Create an entry with explicit permission flags (ADMIN only)",
)
async def create_file(
    data: FileCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> FileResponse:
    return await FileService(db).create_file(
        name=data.name,
        content_type=data.content_type,
        user_can_edit=data.user_can_edit,
        user_can_delete=data.user_can_delete,
        content=data.content,
        url=data.url,
        storage_id=data.storage_id,
        project_id=data.project_id,
        organization_id=data.organization_id,
    )


@router.post(
    "/files/delete-folder",
    response_model=FolderDeleteResponse,
    summary="Delete folder structure",
    description="Delete a folder path and everything below it (ADMIN only)",
)
async def delete_folder_structure(
    data: FolderDelete,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> FolderDeleteResponse:
    deleted = await FileService(db).delete_folder_structure(
        data.folder_path,
        project_id=data.project_id,
        organization_id=data.organization_id,
    )
    return FolderDeleteResponse(deleted=deleted)


@router.get(
    "/files/{file_id}",
    response_model=FileResponse,
    summary="Get file",
    description="Get an entry by id (ADMIN only)",
)
async def get_file(
    file_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> FileResponse:
    return await FileService(db).get_file(file_id)


@router.put(
    "/files/{file_id}/content",
    response_model=FileResponse,
    summary="Update file content",
    description="Replace the content of a text entry (ADMIN only)",
)
async def update_file_content(
    file_id: int,
    data: FileContentUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> FileResponse:
    return await FileService(db).update_file_content(file_id, data.content)


@router.put(
    "/files/{file_id}/permissions",
    response_model=FileResponse,
    summary="Edit permissions",
    description="Set both flags; a folder passes them to every descendant (ADMIN only)",
)
async def edit_permissions(
    file_id: int,
    data: FilePermissionsUpdate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> FileResponse:
    return await FileService(db).edit_permissions(
        file_id,
        user_can_edit=data.user_can_edit,
        user_can_delete=data.user_can_delete,
    )


@router.delete(
    "/files/{file_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete file",
    description="Delete an entry; a folder takes its descendants with it (ADMIN only)",
)
async def delete_file(
    file_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    await FileService(db).delete_file(file_id)


# ============================================================================
# Customer endpoints
# ============================================================================


@router.get(
    "/organizations/{organization_id}/files",
    response_model=List[FileResponse],
    summary="List organization files",
    description="Entries of the organization, or of one of its projects",
)
async def list_files_for_customer(
    organization_id: int,
    project_id: Optional[int] = Query(None),
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> List[FileResponse]:
    return await FileService(db).list_files_for_customer(organization_id, project_id)


@router.post(
    "/organizations/{organization_id}/files",
    response_model=FileResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create organization file",
    description="Create an entry below a folder that allows editing",
)
async def create_file_for_customer(
    organization_id: int,
    data: CustomerFileCreate,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> FileResponse:
    """
    Raises:
        PermissionDeniedError (403): No folder above the path allows editing
    """
    return await FileService(db).create_file_for_customer(
        organization_id,
        name=data.name,
        content_type=data.content_type,
        content=data.content,
        url=data.url,
        storage_id=data.storage_id,
        project_id=data.project_id,
    )


@router.post(
    "/organizations/{organization_id}/files/delete-folder",
    response_model=FolderDeleteResponse,
    summary="Delete organization folder structure",
    description="Delete a folder path and everything below it when a folder allows deleting",
)
async def delete_folder_structure_for_customer(
    organization_id: int,
    data: FolderDelete,
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> FolderDeleteResponse:
    deleted = await FileService(db).delete_folder_structure_for_customer(
        organization_id,
        data.folder_path,
        project_id=data.project_id,
    )
    return FolderDeleteResponse(deleted=deleted)


@router.get(
    "/organizations/{organization_id}/files/{file_id}",
    response_model=Optional[FileResponse],
    summary="Get organization file",
    description="Get an entry of the organization; null when it does not exist",
)
async def get_file_for_customer(
    organization_id: int,
    file_id: int,
    project_id: Optional[int] = Query(None),
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> Optional[FileResponse]:
    return await FileService(db).get_file_for_customer(organization_id, file_id, project_id)


@router.put(
    "/organizations/{organization_id}/files/{file_id}/content",
    response_model=FileResponse,
    summary="Update organization file content",
    description="Replace the content of a text entry the customer may edit",
)
async def update_file_content_for_customer(
    organization_id: int,
    file_id: int,
    data: FileContentUpdate,
    project_id: Optional[int] = Query(None),
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> FileResponse:
    return await FileService(db).update_file_content_for_customer(
        organization_id,
        file_id,
        data.content,
        project_id=project_id,
    )


@router.delete(
    "/organizations/{organization_id}/files/{file_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete organization file",
    description="Delete an entry the customer may delete",
)
async def delete_file_for_customer(
    organization_id: int,
    file_id: int,
    project_id: Optional[int] = Query(None),
    ctx: AuthContext = Depends(require_organization_member()),
    db: AsyncSession = Depends(get_db),
) -> None:
    await FileService(db).delete_file_for_customer(organization_id, file_id, project_id)
