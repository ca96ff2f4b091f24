"""
Quote Data Access Object.

WHY: Quotes are listed per project for staff and per organization,
restricted to customer-visible statuses, for the dashboard.
"""

from typing import Iterable, List, Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.quote import Quote


class QuoteDAO(BaseDAO[Quote]):
    """Data Access Object for Quote model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Quote, session)

    async def max_number(self) -> int:
        """Highest quote number stored, 0 when there are none."""
        result = await self.session.execute(select(func.max(Quote.quote_number)))
        return result.scalar_one_or_none() or 0

    async def list_quotes(
        self,
        project_id: Optional[int] = None,
        organization_id: Optional[int] = None,
        statuses: Optional[Iterable] = None,
    ) -> List[Quote]:
        """
        List quotes newest first.

        Args:
            project_id: Restrict to a project
            organization_id: Restrict to an organization
            statuses: Restrict to these statuses

        Returns:
            List of quotes
        """
        query = select(Quote).order_by(Quote.quote_number.desc())
        if project_id is not None:
            query = query.where(Quote.project_id == project_id)
        if organization_id is not None:
            query = query.where(Quote.organization_id == organization_id)
        if statuses is not None:
            query = query.where(Quote.status.in_(list(statuses)))
        result = await self.session.execute(query)
        return list(result.scalars().all())
