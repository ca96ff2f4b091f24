"""
File manager Data Access Object.

WHAT: Database operations for FileEntry rows, scoped to a project or to an
organization's own bucket.

WHY: Folder operations are prefix operations on the path column. Keeping
the LIKE handling here (with escaping, so a folder called "50%_off" does
not match unrelated paths) keeps the services free of SQL details.

HOW: A scope is (project_id, organization_id). With a project id, rows of
that project are used. Without one, rows of the organization are used;
bucket_only narrows that to rows with no project.
"""

from typing import List, Optional
from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.file_entry import FileEntry


class FileEntryDAO(BaseDAO[FileEntry]):
    """Data Access Object for FileEntry model."""

    def __init__(self, session: AsyncSession):
        super().__init__(FileEntry, session)

    @staticmethod
    def _scoped(
        query,
        project_id: Optional[int],
        organization_id: Optional[int],
        bucket_only: bool = False,
    ):
        if project_id is not None:
            query = query.where(FileEntry.project_id == project_id)
            if organization_id is not None:
                query = query.where(FileEntry.organization_id == organization_id)
        elif organization_id is not None:
            query = query.where(FileEntry.organization_id == organization_id)
            if bucket_only:
                query = query.where(FileEntry.project_id.is_(None))
        return query

    async def list_in_scope(
        self,
        project_id: Optional[int] = None,
        organization_id: Optional[int] = None,
        bucket_only: bool = False,
    ) -> List[FileEntry]:
        """
        List entries of a scope ordered by path.

        With neither id given, every entry is returned (admin overview).
        """
        query = self._scoped(select(FileEntry), project_id, organization_id, bucket_only)
        result = await self.session.execute(query.order_by(FileEntry.name, FileEntry.id))
        return list(result.scalars().all())

    async def set_descendant_permissions(
        self,
        folder_path: str,
        user_can_edit: bool,
        user_can_delete: bool,
        project_id: Optional[int] = None,
        organization_id: Optional[int] = None,
        bucket_only: bool = False,
    ) -> int:
        """
        Copy both permission flags onto every descendant of a folder.

        Returns:
            Number of rows updated
        """
        stmt = self._scoped(
            update(FileEntry).where(FileEntry.name.startswith(folder_path + "/", autoescape=True)),
            project_id,
            organization_id,
            bucket_only,
        ).values(user_can_edit=user_can_edit, user_can_delete=user_can_delete)
        result = await self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        return result.rowcount

    async def delete_tree(
        self,
        path: str,
        project_id: Optional[int] = None,
        organization_id: Optional[int] = None,
        bucket_only: bool = False,
        include_self: bool = True,
    ) -> int:
        """
        Delete a path and everything below it.

        WHY: Matches the path itself and path + "/" only, so deleting
        /foo never removes /foobar.

        Returns:
            Number of rows deleted
        """
        below = FileEntry.name.startswith(path + "/", autoescape=True)
        condition = or_(FileEntry.name == path, below) if include_self else below
        stmt = self._scoped(
            delete(FileEntry).where(condition),
            project_id,
            organization_id,
            bucket_only,
        )
        result = await self.session.execute(stmt.execution_options(synchronize_session="fetch"))
        return result.rowcount
