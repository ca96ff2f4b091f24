"""
File Manager Service.

WHAT: Staff and customer operations on the file manager: listing,
creating, editing text content, deleting entries and folder trees, and
changing permission flags.

WHY: Staff can do anything. Customers act inside their organization and
only where a folder grants it (app.services.file_permissions). Both sides
share the same DAO and path rules, so they live in one service.

HOW: Customer methods take the organization id resolved by the
membership check and refuse entries of other organizations or projects
with "Unauthorized" before any permission walk.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AuthorizationError,
    ResourceNotFoundError,
    ValidationError,
)
from app.dao.file_entry import FileEntryDAO
from app.dao.project import ProjectDAO
from app.models.file_entry import ContentType, FileEntry
from app.services.file_permissions import FileAction, fan_out, require_permission

logger = logging.getLogger(__name__)

NOT_A_TEXT_FILE = "Cannot update content of a file that is not a text file"


class FileService:
    """Service for file manager operations."""

    def __init__(self, session: AsyncSession):
        """
        Initialize FileService.

        Args:
            session: Async database session
        """
        self.session = session
        self.file_dao = FileEntryDAO(session)
        self.project_dao = ProjectDAO(session)

    # ========================================================================
    # Helpers
    # ========================================================================

    async def _get_or_404(self, file_id: int) -> FileEntry:
        entry = await self.file_dao.get_by_id(file_id)
        if entry is None:
            raise ResourceNotFoundError(message="File not found", file_id=file_id)
        return entry

    @staticmethod
    def _check_ownership(entry: FileEntry, organization_id: int, project_id: Optional[int]) -> None:
        if entry.organization_id != organization_id:
            raise AuthorizationError(file_id=entry.id)
        if project_id is not None and entry.project_id != project_id:
            raise AuthorizationError(file_id=entry.id)

    async def _organization_of(self, project_id: Optional[int], organization_id: Optional[int]) -> Optional[int]:
        """Owning organization: the project's when a project is given."""
        if project_id is None:
            return organization_id
        project = await self.project_dao.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundError(message="Project not found", project_id=project_id)
        return project.organization_id

    async def _scope_entries(self, project_id: Optional[int], organization_id: Optional[int]) -> List[FileEntry]:
        """Entries the permission walk consults: the project, else the organization bucket."""
        return await self.file_dao.list_in_scope(
            project_id=project_id,
            organization_id=organization_id,
            bucket_only=project_id is None,
        )

    @staticmethod
    def _require_text(entry: FileEntry) -> None:
        if entry.content_type != ContentType.TEXT:
            raise ValidationError(message=NOT_A_TEXT_FILE, file_id=entry.id)

    # ========================================================================
    # Staff operations
    # ========================================================================

    async def list_files(
        self,
        project_id: Optional[int] = None,
        organization_id: Optional[int] = None,
    ) -> List[FileEntry]:
        """List entries of a project, else of an organization, else all."""
        if project_id is not None:
            return await self.file_dao.list_in_scope(project_id=project_id)
        return await self.file_dao.list_in_scope(organization_id=organization_id)

    async def get_file(self, file_id: int) -> FileEntry:
        return await self._get_or_404(file_id)

    async def create_file(
        self,
        name: str,
        content_type: ContentType,
        user_can_edit: bool,
        user_can_delete: bool,
        content: Optional[str] = None,
        url: Optional[str] = None,
        storage_id: Optional[str] = None,
        project_id: Optional[int] = None,
        organization_id: Optional[int] = None,
    ) -> FileEntry:
        """
        Create any entry with explicit flags.

        When a project is given its organization is used.
        """
        organization_id = await self._organization_of(project_id, organization_id)
        entry = await self.file_dao.create(
            name=name,
            content_type=content_type,
            content=content,
            url=url,
            storage_id=storage_id,
            user_can_edit=user_can_edit,
            user_can_delete=user_can_delete,
            project_id=project_id,
            organization_id=organization_id,
        )
        logger.info(f"Created file entry {entry.name}", extra={"file_id": entry.id})
        return entry

    async def update_file_content(self, file_id: int, content: str) -> FileEntry:
        """
        Replace the content of a text entry.

        Raises:
            ResourceNotFoundError: Unknown id
            ValidationError: Entry is not a text entry
        """
        entry = await self._get_or_404(file_id)
        self._require_text(entry)
        return await self.file_dao.update(file_id, content=content)

    async def edit_permissions(
        self,
        file_id: int,
        user_can_edit: bool,
        user_can_delete: bool,
    ) -> FileEntry:
        """
        Set both flags on an entry, and on every descendant if it is a folder.
        """
        entry = await self._get_or_404(file_id)
        entry = await self.file_dao.update(
            file_id,
            user_can_edit=user_can_edit,
            user_can_delete=user_can_delete,
        )
        await fan_out(self.file_dao, entry, user_can_edit, user_can_delete)
        return entry

    async def delete_file(self, file_id: int) -> None:
        """Delete an entry; a folder takes its descendants with it."""
        entry = await self._get_or_404(file_id)
        if entry.is_folder:
            removed = await self.file_dao.delete_tree(
                entry.name,
                project_id=entry.project_id,
                organization_id=entry.organization_id,
                bucket_only=entry.project_id is None,
                include_self=False,
            )
            logger.info(f"Deleted {removed} entries below {entry.name}", extra={"file_id": file_id})
        await self.file_dao.delete(file_id)

    async def delete_folder_structure(
        self,
        folder_path: str,
        project_id: Optional[int] = None,
        organization_id: Optional[int] = None,
    ) -> int:
        """
        Delete a folder path and everything below it.

        Returns:
            Number of entries deleted
        """
        return await self.file_dao.delete_tree(
            folder_path,
            project_id=project_id,
            organization_id=organization_id,
        )

    # ========================================================================
    # Customer operations
    # ========================================================================

    async def list_files_for_customer(
        self, organization_id: int, project_id: Optional[int] = None
    ) -> List[FileEntry]:
        return await self.file_dao.list_in_scope(
            project_id=project_id,
            organization_id=organization_id,
        )

    async def get_file_for_customer(
        self, organization_id: int, file_id: int, project_id: Optional[int] = None
    ) -> Optional[FileEntry]:
        """
        Get an entry of the organization.

        Returns:
            The entry, or None if it does not exist

        Raises:
            AuthorizationError: Entry belongs to another organization or project
        """
        entry = await self.file_dao.get_by_id(file_id)
        if entry is None:
            return None
        self._check_ownership(entry, organization_id, project_id)
        return entry

    async def create_file_for_customer(
        self,
        organization_id: int,
        name: str,
        content_type: ContentType,
        content: Optional[str] = None,
        url: Optional[str] = None,
        storage_id: Optional[str] = None,
        project_id: Optional[int] = None,
    ) -> FileEntry:
        """
        Create an entry below a folder that grants edit.

        The new entry is editable and deletable by the customer.

        Raises:
            PermissionDeniedError: No ancestor folder grants edit
        """
        owner = await self._organization_of(project_id, organization_id)
        if owner != organization_id:
            raise AuthorizationError(project_id=project_id)

        entries = await self._scope_entries(project_id, organization_id)
        require_permission(
            entries,
            name,
            FileAction.CREATE,
            "You do not have permission to create files in this folder",
        )

        entry = await self.file_dao.create(
            name=name,
            content_type=content_type,
            content=content,
            url=url,
            storage_id=storage_id,
            user_can_edit=True,
            user_can_delete=True,
            project_id=project_id,
            organization_id=organization_id,
        )
        logger.info(
            f"Customer created file entry {entry.name}",
            extra={"file_id": entry.id, "organization_id": organization_id},
        )
        return entry

    async def delete_file_for_customer(
        self, organization_id: int, file_id: int, project_id: Optional[int] = None
    ) -> None:
        """
        Delete an entry if an ancestor folder or the entry itself grants delete.

        A folder takes its descendants with it.
        """
        entry = await self._get_or_404(file_id)
        self._check_ownership(entry, organization_id, project_id)

        entries = await self._scope_entries(entry.project_id, organization_id)
        require_permission(
            entries,
            entry.name,
            FileAction.DELETE,
            "You do not have permission to delete this file",
            target=entry,
        )

        if entry.is_folder:
            await self.file_dao.delete_tree(
                entry.name,
                project_id=entry.project_id,
                organization_id=organization_id,
                bucket_only=entry.project_id is None,
                include_self=False,
            )
        await self.file_dao.delete(file_id)

    async def delete_folder_structure_for_customer(
        self, organization_id: int, folder_path: str, project_id: Optional[int] = None
    ) -> int:
        """
        Delete a folder path and everything below it.

        The folder may be virtual (no row of its own); then only its
        ancestors can grant delete.

        Returns:
            Number of entries deleted
        """
        entries = await self._scope_entries(project_id, organization_id)
        folder = next(
            (e for e in entries if e.name == folder_path and e.is_folder),
            None,
        )
        require_permission(
            entries,
            folder_path,
            FileAction.DELETE,
            "You do not have permission to delete this folder",
            target=folder,
        )
        return await self.file_dao.delete_tree(
            folder_path,
            project_id=project_id,
            organization_id=organization_id,
            bucket_only=project_id is None,
        )

    async def update_file_content_for_customer(
        self,
        organization_id: int,
        file_id: int,
        content: str,
        project_id: Optional[int] = None,
    ) -> FileEntry:
        """Replace text content if an ancestor folder or the entry grants edit."""
        entry = await self._get_or_404(file_id)
        self._check_ownership(entry, organization_id, project_id)
        self._require_text(entry)

        entries = await self._scope_entries(entry.project_id, organization_id)
        require_permission(
            entries,
            entry.name,
            FileAction.EDIT,
            "You do not have permission to edit this file",
            target=entry,
        )
        return await self.file_dao.update(file_id, content=content)
