"""
Billing Service.

WHAT: Quote and invoice lifecycle: creation with sequential numbers, draft
editing, sending, customer decisions, invoice status changes and splitting
a quote into invoices.

WHY: Documents only move forward:

    Quote:   draft -> sent -> accepted | rejected   (expired set manually)
    Invoice: draft -> sent -> paid | overdue | cancelled

Sending is deferred. send_quote/send_invoice enqueue the PDF task, which
flips the status to sent only after the PDF exists and the email went
out. Staff may set paid, overdue or cancelled directly, even from draft;
each of those enqueues a best-effort notification email.

HOW: QuoteService and InvoiceService share DocumentService, which holds the
date rules and the number allocation. Deferred work is enqueued with the
request's session, so nothing is scheduled if the request rolls back.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AuthorizationError,
    InvalidStateTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from app.dao.invoice import InvoiceDAO
from app.dao.organization import ContactInformationDAO
from app.dao.project import ProjectDAO
from app.dao.quote import QuoteDAO
from app.dao.sequence import INVOICE_SEQUENCE, QUOTE_SEQUENCE, SequenceDAO
from app.models.invoice import (
    CUSTOMER_VISIBLE_INVOICE_STATUSES,
    NOTIFIABLE_INVOICE_STATUSES,
    Invoice,
    InvoiceStatus,
)
from app.models.organization import ContactInformation
from app.models.project import Project
from app.models.quote import (
    CUSTOMER_VISIBLE_QUOTE_STATUSES,
    DocumentLanguage,
    Quote,
    QuoteStatus,
    format_document_identifier,
)
from app.services.document_tasks import GENERATE_PDF_TASK, INVOICE_STATUS_EMAIL_TASK
from app.services.task_queue import TaskQueue, task_queue as default_task_queue

logger = logging.getLogger(__name__)

# A document date may lie up to a day in the past (time zones, late edits)
DATE_GRACE = timedelta(hours=24)


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class DocumentService:
    """
    Shared rules of quotes and invoices.

    Subclasses set the DAO, sequence, field names and error messages.
    """

    kind = ""
    prefix = ""
    sequence = ""
    date_field = ""
    deadline_field = ""
    draft_status: Any = None
    sendable_statuses: tuple = ()
    messages: Dict[str, str] = {}

    def __init__(self, session: AsyncSession, task_queue: Optional[TaskQueue] = None):
        self.session = session
        self.task_queue = task_queue or default_task_queue
        self.project_dao = ProjectDAO(session)
        self.contact_dao = ContactInformationDAO(session)
        self.sequence_dao = SequenceDAO(session)
        self.dao = self._make_dao(session)

    def _make_dao(self, session: AsyncSession):
        raise NotImplementedError

    @property
    def label(self) -> str:
        return self.kind.capitalize()

    # ========================================================================
    # Helpers
    # ========================================================================

    async def _get_or_404(self, document_id: int):
        document = await self.dao.get_by_id(document_id)
        if document is None:
            raise ResourceNotFoundError(message=f"{self.label} not found", document_id=document_id)
        return document

    async def _get_project(self, project_id: int) -> Project:
        project = await self.project_dao.get_by_id(project_id)
        if project is None:
            raise ResourceNotFoundError(message="Project not found", project_id=project_id)
        return project

    async def _get_contact(self, project: Project) -> ContactInformation:
        contact = None
        if project.contact_information_id is not None:
            contact = await self.contact_dao.get_by_id(project.contact_information_id)
        if contact is None:
            raise ResourceNotFoundError(message="Contact information not found", project_id=project.id)
        return contact

    async def allocate_number(self) -> int:
        """Next number of this document type's sequence."""
        seed = await self.dao.max_number()
        return await self.sequence_dao.next_value(self.sequence, seed=seed)

    async def _insert(
        self,
        project_id: int,
        organization_id: int,
        items: List[Dict[str, Any]],
        language: DocumentLanguage = DocumentLanguage.EN,
    ):
        number = await self.allocate_number()
        document = await self.dao.create(
            **{
                "project_id": project_id,
                "organization_id": organization_id,
                f"{self.kind}_number": number,
                f"{self.kind}_identifier": format_document_identifier(self.prefix, number),
                "items": items,
                "status": self.draft_status,
                "language": language,
            }
        )
        logger.info(
            f"Created {self.kind} {number}",
            extra={f"{self.kind}_id": document.id, "project_id": project_id},
        )
        return document

    def validate_dates(
        self,
        current_date: Optional[datetime],
        current_deadline: Optional[datetime],
        new_date: Optional[datetime],
        new_deadline: Optional[datetime],
        now: Optional[datetime] = None,
    ) -> None:
        """
        Date sanity checks of a draft update.

        - The effective document date may not be more than a day old.
        - A new deadline may not be in the past.
        - A new deadline may not precede the effective document date.

        Raises:
            ValidationError: With the document type's message
        """
        now = now or datetime.utcnow()
        effective_date = new_date or current_date
        effective_deadline = new_deadline or current_deadline

        if effective_date is not None and effective_date < now - DATE_GRACE:
            raise ValidationError(message=self.messages["date_past"])

        if new_deadline is not None:
            if new_deadline < now:
                raise ValidationError(message=self.messages["deadline_past"])
            if effective_date is not None and effective_deadline < effective_date:
                raise ValidationError(message=self.messages["deadline_before_date"])

    # ========================================================================
    # CRUD
    # ========================================================================

    async def create(self, project_id: int, language: DocumentLanguage = DocumentLanguage.EN):
        """Create an empty draft for a project, English unless told otherwise."""
        project = await self._get_project(project_id)
        return await self._insert(project.id, project.organization_id, items=[], language=language)

    async def duplicate(self, document_id: int):
        """Copy the items and language of a document into a new draft."""
        source = await self._get_or_404(document_id)
        return await self._insert(
            source.project_id,
            source.organization_id,
            items=list(source.items or []),
            language=source.language,
        )

    async def get(self, document_id: int):
        return await self._get_or_404(document_id)

    async def delete(self, document_id: int) -> None:
        await self._get_or_404(document_id)
        await self.dao.delete(document_id)

    async def update(
        self,
        document_id: int,
        document_date: Optional[datetime] = None,
        deadline: Optional[datetime] = None,
        language: Optional[DocumentLanguage] = None,
        items: Optional[List[Dict[str, Any]]] = None,
    ):
        """
        Patch a draft. Omitted values keep their stored value.

        Raises:
            InvalidStateTransitionError: Document is not a draft
            ValidationError: Date rules violated
        """
        document = await self._get_or_404(document_id)
        if document.status != self.draft_status:
            raise InvalidStateTransitionError(
                message=self.messages["not_draft"],
                status=document.status.value,
            )

        document_date = to_utc_naive(document_date)
        deadline = to_utc_naive(deadline)
        self.validate_dates(
            getattr(document, self.date_field),
            getattr(document, self.deadline_field),
            document_date,
            deadline,
        )

        return await self.dao.update(
            document_id,
            **{
                self.date_field: document_date or getattr(document, self.date_field),
                self.deadline_field: deadline or getattr(document, self.deadline_field),
                "items": items if items is not None else document.items,
                "language": language or document.language,
            },
        )

    async def send(self, document_id: int):
        """
        Enqueue PDF generation and delivery.

        The status stays as it is; the task sets it to sent once the email
        went out.
        """
        document = await self._get_or_404(document_id)
        if document.status not in self.sendable_statuses:
            raise InvalidStateTransitionError(
                message=self.messages["not_sendable"],
                status=document.status.value,
            )
        self.task_queue.enqueue(
            GENERATE_PDF_TASK,
            session=self.session,
            kind=self.kind,
            document_id=document.id,
        )
        logger.info(
            f"Queued sending of {self.kind} {document.id}",
            extra={f"{self.kind}_id": document.id},
        )
        return document

    async def get_information(self, document_id: int, organization_id: Optional[int] = None) -> Dict[str, Any]:
        """
        The document with its project and billing contact.

        Args:
            organization_id: When given, the document must belong to it
        """
        document = await self._get_or_404(document_id)
        if organization_id is not None and document.organization_id != organization_id:
            raise AuthorizationError(document_id=document_id)
        project = await self._get_project(document.project_id)
        contact = await self._get_contact(project)
        return {
            self.kind: document,
            "project": project,
            "contact_information": contact,
        }


class QuoteService(DocumentService):
    """Service for quote operations."""

    kind = "quote"
    prefix = "Q"
    sequence = QUOTE_SEQUENCE
    date_field = "quote_date"
    deadline_field = "quote_valid_until"
    draft_status = QuoteStatus.DRAFT
    sendable_statuses = (QuoteStatus.DRAFT, QuoteStatus.SENT)
    messages = {
        "not_draft": "Only draft quotes can be updated",
        "not_sendable": "Only draft or sent quotes can be sent",
        "date_past": "Quote date cannot be in the past",
        "deadline_past": "Quote valid until cannot be in the past",
        "deadline_before_date": "Quote valid until cannot be before the quote date",
    }

    def _make_dao(self, session: AsyncSession) -> QuoteDAO:
        return QuoteDAO(session)

    async def list_quotes(
        self, project_id: Optional[int] = None, organization_id: Optional[int] = None
    ) -> List[Quote]:
        return await self.dao.list_quotes(project_id=project_id, organization_id=organization_id)

    async def list_for_organization(self, organization_id: int, project_id: Optional[int] = None) -> List[Quote]:
        """Quotes a customer may see: sent, accepted or rejected."""
        return await self.dao.list_quotes(
            project_id=project_id,
            organization_id=organization_id,
            statuses=CUSTOMER_VISIBLE_QUOTE_STATUSES,
        )

    async def _decide(self, organization_id: int, quote_id: int, outcome: QuoteStatus, verb: str) -> Quote:
        quote = await self._get_or_404(quote_id)
        if quote.organization_id != organization_id:
            raise AuthorizationError(quote_id=quote_id)
        if quote.status != QuoteStatus.SENT:
            raise InvalidStateTransitionError(
                message=f"Only sent quotes can be {verb}",
                status=quote.status.value,
            )
        logger.info(f"Quote {quote_id} {verb}", extra={"quote_id": quote_id})
        return await self.dao.update(quote_id, status=outcome)

    async def accept(self, organization_id: int, quote_id: int) -> Quote:
        """Customer accepts a sent quote."""
        return await self._decide(organization_id, quote_id, QuoteStatus.ACCEPTED, "accepted")

    async def reject(self, organization_id: int, quote_id: int) -> Quote:
        """Customer rejects a sent quote."""
        return await self._decide(organization_id, quote_id, QuoteStatus.REJECTED, "rejected")


class InvoiceService(DocumentService):
    """Service for invoice operations."""

    kind = "invoice"
    prefix = "I"
    sequence = INVOICE_SEQUENCE
    date_field = "invoice_date"
    deadline_field = "invoice_due_date"
    draft_status = InvoiceStatus.DRAFT
    sendable_statuses = (InvoiceStatus.DRAFT, InvoiceStatus.SENT)
    messages = {
        "not_draft": "Only draft invoices can be updated",
        "not_sendable": "Only draft or sent invoices can be sent",
        "date_past": "Invoice date cannot be in the past",
        "deadline_past": "Invoice due date cannot be in the past",
        "deadline_before_date": "Invoice due date cannot be before the invoice date",
    }

    def _make_dao(self, session: AsyncSession) -> InvoiceDAO:
        return InvoiceDAO(session)

    async def list_invoices(
        self, project_id: Optional[int] = None, organization_id: Optional[int] = None
    ) -> List[Invoice]:
        return await self.dao.list_invoices(project_id=project_id, organization_id=organization_id)

    async def list_for_organization(self, organization_id: int, project_id: Optional[int] = None) -> List[Invoice]:
        """Invoices a customer may see: everything but drafts."""
        return await self.dao.list_invoices(
            project_id=project_id,
            organization_id=organization_id,
            statuses=CUSTOMER_VISIBLE_INVOICE_STATUSES,
        )

    async def update_status(self, invoice_id: int, status: InvoiceStatus) -> Invoice:
        """
        Set an invoice to paid, overdue or cancelled and notify the contact.

        Any current status is accepted, draft included. The email is
        enqueued with this request's session and never blocks the change.

        Raises:
            ValidationError: Status is not one of paid, overdue, cancelled
            ResourceNotFoundError: Invoice, project or contact missing
        """
        status = InvoiceStatus(status)
        if status not in NOTIFIABLE_INVOICE_STATUSES:
            raise ValidationError(message="Invalid invoice status", status=status.value)

        invoice = await self._get_or_404(invoice_id)
        project = await self._get_project(invoice.project_id)
        await self._get_contact(project)

        self.task_queue.enqueue(
            INVOICE_STATUS_EMAIL_TASK,
            session=self.session,
            invoice_id=invoice.id,
            status=status.value,
        )
        logger.info(
            f"Invoice {invoice_id} marked {status.value}",
            extra={"invoice_id": invoice_id, "status": status.value},
        )
        return await self.dao.update(invoice_id, status=status)

    async def create_from_quote(self, quote_id: int, invoice_split: Iterable[float]) -> List[Invoice]:
        """
        Split a quote into one draft invoice per percentage.

        Each invoice carries every quote item with its quantity scaled by
        the percentage, e.g. [60, 40] on quantity 10 gives 6 and 4.

        Raises:
            ValidationError: Percentages do not add up to 100
        """
        quote = await QuoteDAO(self.session).get_by_id(quote_id)
        if quote is None:
            raise ResourceNotFoundError(message="Quote not found", quote_id=quote_id)
        project = await self._get_project(quote.project_id)
        await self._get_contact(project)

        invoice_split = list(invoice_split)
        if abs(sum(invoice_split) - 100) > 1e-6:
            raise ValidationError(message="Invoice split must add up to 100", invoice_split=invoice_split)

        invoices = []
        for percentage in invoice_split:
            items = [
                {
                    "name": item.get("name"),
                    "description": item.get("description") or "",
                    "quantity": item.get("quantity", 0) * percentage / 100,
                    "price_excl_tax": item.get("price_excl_tax"),
                    "tax": item.get("tax"),
                }
                for item in quote.items or []
            ]
            invoices.append(
                await self._insert(
                    quote.project_id,
                    quote.organization_id,
                    items=items,
                    language=quote.language or DocumentLanguage.EN,
                )
            )
        logger.info(
            f"Created {len(invoices)} invoice(s) from quote {quote_id}",
            extra={"quote_id": quote_id, "invoice_split": invoice_split},
        )
        return invoices
