"""Agenda item Data Access Object."""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.agenda import AgendaItem


class AgendaItemDAO(BaseDAO[AgendaItem]):
    """Data Access Object for AgendaItem model."""

    def __init__(self, session: AsyncSession):
        super().__init__(AgendaItem, session)

    async def list_items(
        self,
        project_id: Optional[int] = None,
        organization_id: Optional[int] = None,
    ) -> List[AgendaItem]:
        """Items in calendar order, by project when given, else by organization."""
        query = select(AgendaItem).order_by(AgendaItem.start_date, AgendaItem.id)
        if project_id is not None:
            query = query.where(AgendaItem.project_id == project_id)
        elif organization_id is not None:
            query = query.where(AgendaItem.organization_id == organization_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())
