"""
Extra cost Data Access Object.

WHY: Billing reads "outstanding" costs of a project: neither invoiced nor
voided. That filter lives here so the list shown to staff and the set that
gets billed cannot drift apart.
"""

from datetime import datetime
from typing import Iterable, List, Optional
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.extra_cost import ExtraCost


class ExtraCostDAO(BaseDAO[ExtraCost]):
    """Data Access Object for ExtraCost model."""

    def __init__(self, session: AsyncSession):
        super().__init__(ExtraCost, session)

    async def list_extra_costs(
        self,
        project_id: Optional[int] = None,
        organization_id: Optional[int] = None,
        invoice_id: Optional[int] = None,
    ) -> List[ExtraCost]:
        """List costs oldest first, narrowed by whichever filters are given."""
        query = select(ExtraCost).order_by(ExtraCost.id)
        if project_id is not None:
            query = query.where(ExtraCost.project_id == project_id)
        if organization_id is not None:
            query = query.where(ExtraCost.organization_id == organization_id)
        if invoice_id is not None:
            query = query.where(ExtraCost.invoice_id == invoice_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_outstanding(self, project_id: int) -> List[ExtraCost]:
        """Costs of a project that are neither invoiced nor voided."""
        result = await self.session.execute(
            select(ExtraCost)
            .where(
                ExtraCost.project_id == project_id,
                ExtraCost.invoiced_date.is_(None),
                ExtraCost.invoice_id.is_(None),
                ExtraCost.voided.is_(False),
            )
            .order_by(ExtraCost.id)
        )
        return list(result.scalars().all())

    async def mark_invoiced(self, ids: Iterable[int], invoice_id: int, invoiced_date: datetime) -> int:
        ids = list(ids)
        if not ids:
            return 0
        result = await self.session.execute(
            update(ExtraCost)
            .where(ExtraCost.id.in_(ids))
            .values(invoice_id=invoice_id, invoiced_date=invoiced_date)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount
