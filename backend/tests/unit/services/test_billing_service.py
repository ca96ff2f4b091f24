"""
Tests for QuoteService and InvoiceService.

WHY: Documents only move forward, numbers are never reused, and the
customer-facing side effects (PDF, emails) are deferred. These tests pin:
1. Sequential numbering and identifiers
2. Date rules of draft updates
3. The status machine of quotes and invoices
4. What is enqueued, and with which payload
5. Splitting a quote into invoices
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AuthorizationError,
    InvalidStateTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from app.models.invoice import InvoiceStatus
from app.models.quote import DocumentLanguage, QuoteStatus
from app.services.billing_service import InvoiceService, QuoteService, to_utc_naive
from app.services.document_tasks import GENERATE_PDF_TASK, INVOICE_STATUS_EMAIL_TASK
from tests.factories import (
    InvoiceFactory,
    OrganizationFactory,
    PortalBuilder,
    ProjectFactory,
    QuoteFactory,
)


class TestNumbering:
    @pytest.mark.asyncio
    async def test_create_allocates_next_number(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        service = QuoteService(db_session, task_queue)

        first = await service.create(portal.project.id)
        second = await service.create(portal.project.id)

        year = datetime.utcnow().year
        assert second.quote_number == first.quote_number + 1
        assert first.quote_identifier == f"Q-{year}-{first.quote_number:06d}"
        assert first.status == QuoteStatus.DRAFT
        assert first.items == []

    @pytest.mark.asyncio
    async def test_numbering_continues_after_existing_data(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        existing = await InvoiceFactory.create(db_session, portal.project)

        created = await InvoiceService(db_session, task_queue).create(portal.project.id)

        assert created.invoice_number == existing.invoice_number + 1
        assert created.invoice_identifier.startswith("I-")

    @pytest.mark.asyncio
    async def test_duplicate_gets_fresh_number(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        source = await QuoteFactory.create(db_session, portal.project, status=QuoteStatus.ACCEPTED, language=DocumentLanguage.NL)

        copy = await QuoteService(db_session, task_queue).duplicate(source.id)

        assert copy.id != source.id
        assert copy.quote_number > source.quote_number
        assert copy.items == source.items
        assert copy.language == DocumentLanguage.NL
        assert copy.status == QuoteStatus.DRAFT

    @pytest.mark.asyncio
    async def test_create_for_unknown_project(self, db_session: AsyncSession, task_queue):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await QuoteService(db_session, task_queue).create(999)

        assert exc_info.value.message == "Project not found"


class TestDateRules:
    NOW = datetime(2026, 3, 10, 12, 0, 0)

    def service(self, cls=QuoteService):
        return cls.__new__(cls)

    def test_date_within_grace(self):
        self.service().validate_dates(None, None, self.NOW - timedelta(hours=23), None, now=self.NOW)

    def test_date_older_than_grace(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service().validate_dates(None, None, self.NOW - timedelta(hours=25), None, now=self.NOW)

        assert exc_info.value.message == "Quote date cannot be in the past"

    def test_stored_date_is_checked_too(self):
        """An old stored date blocks any update until it is moved forward."""
        with pytest.raises(ValidationError):
            self.service().validate_dates(self.NOW - timedelta(days=3), None, None, None, now=self.NOW)

    def test_deadline_in_past(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service().validate_dates(None, None, None, self.NOW - timedelta(minutes=1), now=self.NOW)

        assert exc_info.value.message == "Quote valid until cannot be in the past"

    def test_deadline_before_date(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service().validate_dates(
                None, None, self.NOW + timedelta(days=10), self.NOW + timedelta(days=5), now=self.NOW
            )

        assert exc_info.value.message == "Quote valid until cannot be before the quote date"

    def test_invoice_messages(self):
        with pytest.raises(ValidationError) as exc_info:
            self.service(InvoiceService).validate_dates(
                None, None, self.NOW + timedelta(days=10), self.NOW + timedelta(days=5), now=self.NOW
            )

        assert exc_info.value.message == "Invoice due date cannot be before the invoice date"

    def test_to_utc_naive(self):
        aware = datetime(2026, 3, 10, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        assert to_utc_naive(aware) == datetime(2026, 3, 10, 12, 0)
        assert to_utc_naive(None) is None


class TestQuoteLifecycle:
    @pytest.mark.asyncio
    async def test_update_draft(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)
        valid_until = datetime.utcnow() + timedelta(days=30)
        items = [{"name": "Hosting", "description": "", "quantity": 12, "price_excl_tax": 15.0, "tax": 21}]

        updated = await QuoteService(db_session, task_queue).update(
            quote.id, deadline=valid_until, items=items, language=DocumentLanguage.NL
        )

        assert updated.items == items
        assert updated.language == DocumentLanguage.NL
        assert updated.quote_valid_until == valid_until

    @pytest.mark.asyncio
    async def test_update_with_empty_items_clears_them(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)

        updated = await QuoteService(db_session, task_queue).update(quote.id, items=[])

        assert updated.items == []

    @pytest.mark.asyncio
    async def test_update_without_items_keeps_them(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)

        updated = await QuoteService(db_session, task_queue).update(quote.id, language=DocumentLanguage.NL)

        assert len(updated.items) == 2

    @pytest.mark.asyncio
    async def test_update_sent_quote(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project, status=QuoteStatus.SENT)

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            await QuoteService(db_session, task_queue).update(quote.id, items=[])

        assert exc_info.value.message == "Only draft quotes can be updated"

    @pytest.mark.asyncio
    async def test_send_enqueues_pdf_task_and_keeps_status(self, db_session: AsyncSession, task_queue):
        """
        WHY: The status flips to sent only after the PDF and email succeed.
        """
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)

        sent = await QuoteService(db_session, task_queue).send(quote.id)

        assert sent.status == QuoteStatus.DRAFT
        assert task_queue.enqueued == [(GENERATE_PDF_TASK, {"kind": "quote", "document_id": quote.id})]

    @pytest.mark.asyncio
    async def test_resend_is_allowed(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project, status=QuoteStatus.SENT)

        await QuoteService(db_session, task_queue).send(quote.id)

        assert task_queue.names() == [GENERATE_PDF_TASK]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [QuoteStatus.ACCEPTED, QuoteStatus.REJECTED, QuoteStatus.EXPIRED])
    async def test_send_after_decision(self, db_session: AsyncSession, task_queue, status):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project, status=status)

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            await QuoteService(db_session, task_queue).send(quote.id)

        assert exc_info.value.message == "Only draft or sent quotes can be sent"
        assert task_queue.enqueued == []

    @pytest.mark.asyncio
    async def test_accept_and_reject(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        first = await QuoteFactory.create(db_session, portal.project, status=QuoteStatus.SENT)
        second = await QuoteFactory.create(db_session, portal.project, status=QuoteStatus.SENT)
        service = QuoteService(db_session, task_queue)

        accepted = await service.accept(portal.organization.id, first.id)
        rejected = await service.reject(portal.organization.id, second.id)

        assert accepted.status == QuoteStatus.ACCEPTED
        assert rejected.status == QuoteStatus.REJECTED

    @pytest.mark.asyncio
    async def test_accept_draft(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)

        with pytest.raises(InvalidStateTransitionError) as exc_info:
            await QuoteService(db_session, task_queue).accept(portal.organization.id, quote.id)

        assert exc_info.value.message == "Only sent quotes can be accepted"

    @pytest.mark.asyncio
    async def test_accept_foreign_quote(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project, status=QuoteStatus.SENT)

        with pytest.raises(AuthorizationError):
            await QuoteService(db_session, task_queue).reject(portal.other_organization.id, quote.id)

    @pytest.mark.asyncio
    async def test_customer_list_hides_drafts(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        await QuoteFactory.create(db_session, portal.project)
        sent = await QuoteFactory.create(db_session, portal.project, status=QuoteStatus.SENT)
        expired = await QuoteFactory.create(db_session, portal.project, status=QuoteStatus.EXPIRED)

        visible = await QuoteService(db_session, task_queue).list_for_organization(portal.organization.id)

        assert [q.id for q in visible] == [sent.id]
        assert expired.id not in [q.id for q in visible]

    @pytest.mark.asyncio
    async def test_information(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)
        service = QuoteService(db_session, task_queue)

        info = await service.get_information(quote.id, portal.organization.id)

        assert info["quote"].id == quote.id
        assert info["project"].id == portal.project.id
        assert info["contact_information"].email == "billing@customer.example"
        with pytest.raises(AuthorizationError):
            await service.get_information(quote.id, portal.other_organization.id)


class TestInvoiceLifecycle:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED])
    async def test_update_status_from_draft(self, db_session: AsyncSession, task_queue, status):
        portal = await PortalBuilder.create(db_session)
        invoice = await InvoiceFactory.create(db_session, portal.project)

        updated = await InvoiceService(db_session, task_queue).update_status(invoice.id, status)

        assert updated.status == status
        assert task_queue.enqueued == [
            (INVOICE_STATUS_EMAIL_TASK, {"invoice_id": invoice.id, "status": status.value})
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [InvoiceStatus.DRAFT, InvoiceStatus.SENT])
    async def test_update_status_rejects_other_statuses(self, db_session: AsyncSession, task_queue, status):
        portal = await PortalBuilder.create(db_session)
        invoice = await InvoiceFactory.create(db_session, portal.project)

        with pytest.raises(ValidationError) as exc_info:
            await InvoiceService(db_session, task_queue).update_status(invoice.id, status)

        assert exc_info.value.message == "Invalid invoice status"

    @pytest.mark.asyncio
    async def test_update_status_needs_contact(self, db_session: AsyncSession, task_queue):
        org = await OrganizationFactory.create(db_session)
        project = await ProjectFactory.create(db_session, org)
        invoice = await InvoiceFactory.create(db_session, project)

        with pytest.raises(ResourceNotFoundError) as exc_info:
            await InvoiceService(db_session, task_queue).update_status(invoice.id, InvoiceStatus.PAID)

        assert exc_info.value.message == "Contact information not found"
        assert task_queue.enqueued == []

    @pytest.mark.asyncio
    async def test_send_invoice(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        invoice = await InvoiceFactory.create(db_session, portal.project)

        await InvoiceService(db_session, task_queue).send(invoice.id)

        assert task_queue.enqueued == [(GENERATE_PDF_TASK, {"kind": "invoice", "document_id": invoice.id})]

    @pytest.mark.asyncio
    async def test_customer_list_hides_drafts(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        await InvoiceFactory.create(db_session, portal.project)
        paid = await InvoiceFactory.create(db_session, portal.project, status=InvoiceStatus.PAID)

        visible = await InvoiceService(db_session, task_queue).list_for_organization(portal.organization.id)

        assert [i.id for i in visible] == [paid.id]


class TestCreateFromQuote:
    @pytest.mark.asyncio
    async def test_split_scales_quantities(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project, status=QuoteStatus.ACCEPTED, language=DocumentLanguage.NL)

        invoices = await InvoiceService(db_session, task_queue).create_from_quote(quote.id, [60, 40])

        assert len(invoices) == 2
        assert [i.items[0]["quantity"] for i in invoices] == [6, 4]
        assert [i.items[1]["quantity"] for i in invoices] == pytest.approx([1.2, 0.8])
        assert invoices[1].invoice_number == invoices[0].invoice_number + 1
        assert all(i.status == InvoiceStatus.DRAFT for i in invoices)
        assert all(i.language == DocumentLanguage.NL for i in invoices)
        assert invoices[0].items[0]["price_excl_tax"] == 95.0

    @pytest.mark.asyncio
    async def test_thirds_are_accepted(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)

        invoices = await InvoiceService(db_session, task_queue).create_from_quote(
            quote.id, [100 / 3, 100 / 3, 100 / 3]
        )

        assert len(invoices) == 3

    @pytest.mark.asyncio
    async def test_split_must_add_up(self, db_session: AsyncSession, task_queue):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)

        with pytest.raises(ValidationError) as exc_info:
            await InvoiceService(db_session, task_queue).create_from_quote(quote.id, [50, 40])

        assert exc_info.value.message == "Invoice split must add up to 100"

    @pytest.mark.asyncio
    async def test_unknown_quote(self, db_session: AsyncSession, task_queue):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            await InvoiceService(db_session, task_queue).create_from_quote(404, [100])

        assert exc_info.value.message == "Quote not found"
