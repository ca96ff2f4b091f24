"""
Extra Cost Service.

WHAT: Booking, editing, voiding and billing of extra costs on a project.

WHY: A cost is editable until it is billed. After that the invoice is the
record, so update, delete, void and unvoid all refuse an invoiced cost.

HOW: Billing collects the outstanding costs of a project (not invoiced,
not voided) into one new draft invoice:

    show_separately_on_invoice   own line: quantity = amount,
                                 price = price_excl_tax
    otherwise                    one "Extra costs" line per tax rate:
                                 quantity 1, price = sum(amount * price)

Grouped lines link to the cost overview of that invoice in the portal.
The costs are then stamped with the invoice id and date in the same
transaction.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    InvalidStateTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from app.dao.extra_cost import ExtraCostDAO
from app.dao.project import ProjectDAO
from app.models.extra_cost import ExtraCost
from app.models.invoice import Invoice
from app.models.quote import DocumentLanguage
from app.services.billing_service import InvoiceService
from app.services.task_queue import TaskQueue

logger = logging.getLogger(__name__)

GROUPED_ITEM_NAMES = {
    DocumentLanguage.EN: "Extra costs",
    DocumentLanguage.NL: "Extra kosten",
}
OVERVIEW_LINK_TEXTS = {
    DocumentLanguage.EN: "Click here for overview",
    DocumentLanguage.NL: "Klik hier voor overzicht",
}
TAX_RATES = (0, 9, 21)


def extra_costs_overview_url(organization_id: int, project_id: int, invoice_id: int) -> str:
    base = settings.PORTAL_BASE_URL.rstrip("/")
    return f"{base}/{organization_id}/projects/{project_id}/extra-costs?invoiceId={invoice_id}"


def build_invoice_items(
    costs: Iterable[ExtraCost],
    language: DocumentLanguage,
    overview_url: str,
) -> List[Dict[str, Any]]:
    """
    Invoice line items for a set of extra costs.

    Separate costs come first in booking order, then one grouped line per
    tax rate that has costs, lowest rate first.
    """
    language = DocumentLanguage(language)
    items: List[Dict[str, Any]] = []
    grouped: Dict[int, float] = defaultdict(float)

    for cost in costs:
        if cost.show_separately_on_invoice:
            items.append(
                {
                    "name": cost.name,
                    "description": cost.description or "",
                    "quantity": cost.amount,
                    "price_excl_tax": cost.price_excl_tax,
                    "tax": cost.tax,
                }
            )
        else:
            grouped[cost.tax] += cost.total_excl_tax

    description = f'<a style="color: blue;" href="{overview_url}">{OVERVIEW_LINK_TEXTS[language]}</a>'
    for tax in TAX_RATES:
        if tax not in grouped:
            continue
        items.append(
            {
                "name": GROUPED_ITEM_NAMES[language],
                "description": description,
                "quantity": 1,
                "price_excl_tax": round(grouped[tax], 2),
                "tax": tax,
            }
        )
    return items


class ExtraCostService:
    """Service for extra cost operations."""

    def __init__(self, session: AsyncSession, task_queue: Optional[TaskQueue] = None):
        self.session = session
        self.task_queue = task_queue
        self.dao = ExtraCostDAO(session)
        self.project_dao = ProjectDAO(session)

    async def _get_or_404(self, extra_cost_id: int) -> ExtraCost:
        extra_cost = await self.dao.get_by_id(extra_cost_id)
        if extra_cost is None:
            raise ResourceNotFoundError(message="Extra cost not found", extra_cost_id=extra_cost_id)
        return extra_cost

    async def _get_uninvoiced(self, extra_cost_id: int, message: str) -> ExtraCost:
        extra_cost = await self._get_or_404(extra_cost_id)
        if extra_cost.is_invoiced:
            raise InvalidStateTransitionError(
                message=message,
                extra_cost_id=extra_cost_id,
                invoice_id=extra_cost.invoice_id,
            )
        return extra_cost

    # ========================================================================
    # CRUD
    # ========================================================================

    async def create(
        self,
        project_id: int,
        name: str,
        amount: float,
        price_excl_tax: float,
        tax: int,
        description: str = "",
        show_separately_on_invoice: bool = False,
    ) -> ExtraCost:
        """Book a cost on a project. Negative amounts are reimbursements."""
        project = await self.project_dao.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundError(message="Project not found", project_id=project_id)

        extra_cost = await self.dao.create(
            project_id=project.id,
            organization_id=project.organization_id,
            name=name,
            description=description,
            amount=amount,
            price_excl_tax=price_excl_tax,
            tax=tax,
            voided=False,
            show_separately_on_invoice=show_separately_on_invoice,
        )
        logger.info(
            f"Booked extra cost {extra_cost.id} on project {project_id}",
            extra={"extra_cost_id": extra_cost.id, "project_id": project_id},
        )
        return extra_cost

    async def get(self, extra_cost_id: int) -> ExtraCost:
        return await self._get_or_404(extra_cost_id)

    async def list_extra_costs(
        self, project_id: Optional[int] = None, organization_id: Optional[int] = None
    ) -> List[ExtraCost]:
        """Costs of a project, else of an organization, else every cost."""
        if project_id is not None:
            return await self.dao.list_extra_costs(project_id=project_id)
        return await self.dao.list_extra_costs(organization_id=organization_id)

    async def list_for_organization(
        self,
        organization_id: int,
        project_id: Optional[int] = None,
        invoice_id: Optional[int] = None,
    ) -> List[ExtraCost]:
        """Costs a customer sees, optionally those billed on one invoice."""
        return await self.dao.list_extra_costs(
            project_id=project_id,
            organization_id=organization_id,
            invoice_id=invoice_id,
        )

    async def update(self, extra_cost_id: int, **changes: Any) -> ExtraCost:
        """
        Patch an uninvoiced cost. None keeps the stored value.

        Raises:
            InvalidStateTransitionError: The cost has been invoiced
        """
        await self._get_uninvoiced(extra_cost_id, "Cannot update extra cost that has been invoiced")
        values = {key: value for key, value in changes.items() if value is not None}
        if not values:
            return await self._get_or_404(extra_cost_id)
        return await self.dao.update(extra_cost_id, **values)

    async def delete(self, extra_cost_id: int) -> None:
        await self._get_uninvoiced(
            extra_cost_id,
            "Cannot delete extra cost that has been invoiced. Contact support if you need to make changes.",
        )
        await self.dao.delete(extra_cost_id)

    async def set_voided(self, extra_cost_id: int, voided: bool) -> ExtraCost:
        """Void or unvoid an uninvoiced cost; voided costs are never billed."""
        verb = "void" if voided else "unvoid"
        await self._get_uninvoiced(extra_cost_id, f"Cannot {verb} extra cost that has been invoiced")
        return await self.dao.update(extra_cost_id, voided=voided)

    # ========================================================================
    # Billing
    # ========================================================================

    async def invoice_outstanding(
        self, project_id: int, language: DocumentLanguage = DocumentLanguage.EN
    ) -> Invoice:
        """
        Bill every outstanding cost of a project on a new draft invoice.

        Raises:
            ResourceNotFoundError: Project unknown
            ValidationError: Nothing left to bill
        """
        project = await self.project_dao.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundError(message="Project not found", project_id=project_id)

        costs = await self.dao.get_outstanding(project.id)
        if not costs:
            raise ValidationError(message="No extra costs to invoice", project_id=project_id)

        invoice_service = InvoiceService(self.session, task_queue=self.task_queue)
        invoice = await invoice_service.create(project.id, language=language)
        items = build_invoice_items(
            costs,
            language,
            extra_costs_overview_url(project.organization_id, project.id, invoice.id),
        )
        invoice = await invoice_service.update(invoice.id, items=items)

        billed = await self.dao.mark_invoiced(
            [cost.id for cost in costs],
            invoice_id=invoice.id,
            invoiced_date=datetime.utcnow(),
        )
        logger.info(
            f"Billed {billed} extra cost(s) of project {project_id} on invoice {invoice.invoice_number}",
            extra={"project_id": project_id, "invoice_id": invoice.id},
        )
        return invoice
