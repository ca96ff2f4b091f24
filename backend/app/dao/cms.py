"""
CMS Data Access Objects.

WHAT: Database operations for pages, fields, splits and field values.

WHY: The content resolver reads every value row of a page for one split
at a time, so CMSFieldValueDAO exposes that query directly. "split_id IS
NULL" selects the default rows.
"""

from typing import List, Optional
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.cms import CMSField, CMSFieldValue, CMSPage, CMSSplit


def _split_clause(split_id: Optional[int]):
    if split_id is None:
        return CMSFieldValue.split_id.is_(None)
    return CMSFieldValue.split_id == split_id


class CMSPageDAO(BaseDAO[CMSPage]):
    """Data Access Object for CMSPage model."""

    def __init__(self, session: AsyncSession):
        super().__init__(CMSPage, session)

    async def get_by_project_and_slug(self, project_id: int, slug: str) -> Optional[CMSPage]:
        result = await self.session.execute(
            select(CMSPage)
            .where(CMSPage.project_id == project_id, CMSPage.slug == slug)
            .order_by(CMSPage.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_by_project(self, project_id: int) -> List[CMSPage]:
        return await self.get_all(limit=None, project_id=project_id)


class CMSFieldDAO(BaseDAO[CMSField]):
    """Data Access Object for CMSField model."""

    def __init__(self, session: AsyncSession):
        super().__init__(CMSField, session)

    async def get_by_page(self, page_id: int) -> List[CMSField]:
        return await self.get_all(limit=None, cms_page_id=page_id)

    async def get_by_page_and_key(self, page_id: int, key: str) -> Optional[CMSField]:
        result = await self.session.execute(
            select(CMSField).where(CMSField.cms_page_id == page_id, CMSField.key == key)
        )
        return result.scalar_one_or_none()


class CMSSplitDAO(BaseDAO[CMSSplit]):
    """Data Access Object for CMSSplit model."""

    def __init__(self, session: AsyncSession):
        super().__init__(CMSSplit, session)

    async def get_by_project(self, project_id: int) -> List[CMSSplit]:
        return await self.get_all(limit=None, project_id=project_id)


class CMSFieldValueDAO(BaseDAO[CMSFieldValue]):
    """Data Access Object for CMSFieldValue model."""

    def __init__(self, session: AsyncSession):
        super().__init__(CMSFieldValue, session)

    async def get_for_page(self, page_id: int, split_id: Optional[int] = None) -> List[CMSFieldValue]:
        """
        All value rows of a page for one split.

        Args:
            page_id: Page ID
            split_id: Split ID, None for the default rows

        Returns:
            Value rows ordered by id
        """
        result = await self.session.execute(
            select(CMSFieldValue)
            .where(CMSFieldValue.page_id == page_id, _split_clause(split_id))
            .order_by(CMSFieldValue.id)
        )
        return list(result.scalars().all())

    async def get_row(
        self, field_id: int, page_id: int, split_id: Optional[int] = None
    ) -> Optional[CMSFieldValue]:
        """The single value row for (field, page, split), if any."""
        result = await self.session.execute(
            select(CMSFieldValue)
            .where(
                CMSFieldValue.cms_field_id == field_id,
                CMSFieldValue.page_id == page_id,
                _split_clause(split_id),
            )
            .order_by(CMSFieldValue.id)
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def delete_by_split(self, split_id: int) -> int:
        result = await self.session.execute(
            delete(CMSFieldValue).where(CMSFieldValue.split_id == split_id)
        )
        return result.rowcount
