"""Invoice Data Access Object."""

from typing import Iterable, List, Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.invoice import Invoice


class InvoiceDAO(BaseDAO[Invoice]):
    """Data Access Object for Invoice model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Invoice, session)

    async def max_number(self) -> int:
        """Highest invoice number stored, 0 when there are none."""
        result = await self.session.execute(select(func.max(Invoice.invoice_number)))
        return result.scalar_one_or_none() or 0

    async def list_invoices(
        self,
        project_id: Optional[int] = None,
        organization_id: Optional[int] = None,
        statuses: Optional[Iterable] = None,
    ) -> List[Invoice]:
        """List invoices newest first, filtered like QuoteDAO.list_quotes."""
        query = select(Invoice).order_by(Invoice.invoice_number.desc())
        if project_id is not None:
            query = query.where(Invoice.project_id == project_id)
        if organization_id is not None:
            query = query.where(Invoice.organization_id == organization_id)
        if statuses is not None:
            query = query.where(Invoice.status.in_(list(statuses)))
        result = await self.session.execute(query)
        return list(result.scalars().all())
