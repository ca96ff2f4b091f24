"""
Tests for the deferred billing tasks.

WHY: A document may only become "sent" after its PDF is filed and the email
went out; any failure must leave the status untouched so the task queue
can retry. Status emails are best effort and must never raise.

HOW: The PDF endpoint is an httpx.MockTransport and emails go to the mock
provider, so nothing leaves the process.
"""

from datetime import datetime

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DocumentGenerationError, EmailServiceError, ResourceNotFoundError
from app.dao.file_entry import FileEntryDAO
from app.dao.invoice import InvoiceDAO
from app.dao.quote import QuoteDAO
from app.models.file_entry import ContentType
from app.models.invoice import InvoiceStatus
from app.models.quote import DocumentLanguage, QuoteStatus
from app.services import document_tasks
from app.services.document_tasks import (
    GENERATE_PDF_TASK,
    DocumentRenderer,
    DocumentTaskRunner,
    portal_url,
)
from app.services.email import EmailProvider, EmailResult, EmailService, MockEmailProvider
from tests.factories import InvoiceFactory, OrganizationFactory, PortalBuilder, ProjectFactory, QuoteFactory

BASE_URL = "https://app.sleads.test"
PDF_URL = "https://files.sleads.test/doc.pdf"


class FailingProvider(EmailProvider):
    name = "failing"

    def is_configured(self) -> bool:
        return True

    async def send(self, message):
        return EmailResult(success=False, error="mailbox full", provider=self.name)


def pdf_endpoint(status_code: int = 200, body: dict = None, calls: list = None):
    """MockTransport handler for the render endpoint and the stored PDF."""

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        if str(request.url) == PDF_URL:
            return httpx.Response(200, content=b"%PDF-1.7 test")
        return httpx.Response(
            status_code,
            json=body if body is not None else {"url": PDF_URL, "storageId": "storage-1"},
        )

    return handler


def make_runner(handler, provider: EmailProvider = None) -> DocumentTaskRunner:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return DocumentTaskRunner(
        renderer=DocumentRenderer(base_url=BASE_URL, http_client=client),
        email_service=EmailService(provider=provider or MockEmailProvider()),
    )


class TestPortalUrl:
    def test_builds_dashboard_link(self, monkeypatch):
        monkeypatch.setattr(document_tasks.settings, "PORTAL_BASE_URL", "https://sleads.nl/dashboard/")

        assert portal_url(3, 7, "quote", 11) == "https://sleads.nl/dashboard/3/projects/7/quotes/11"


class TestDocumentRenderer:
    @pytest.mark.asyncio
    async def test_calls_document_endpoint(self):
        calls = []
        client = httpx.AsyncClient(transport=httpx.MockTransport(pdf_endpoint(calls=calls)))

        rendered = await DocumentRenderer(base_url=BASE_URL + "/", http_client=client).render("invoice", 5)

        assert rendered.url == PDF_URL
        assert rendered.storage_id == "storage-1"
        assert str(calls[0].url) == f"{BASE_URL}/api/documents/5/pdf?type=invoice"

    @pytest.mark.asyncio
    async def test_upstream_error(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(pdf_endpoint(status_code=500)))

        with pytest.raises(DocumentGenerationError):
            await DocumentRenderer(base_url=BASE_URL, http_client=client).render("quote", 1)

    @pytest.mark.asyncio
    async def test_missing_url(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(pdf_endpoint(body={"storageId": "x"})))

        with pytest.raises(DocumentGenerationError):
            await DocumentRenderer(base_url=BASE_URL, http_client=client).render("quote", 1)

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))

        with pytest.raises(DocumentGenerationError):
            await DocumentRenderer(base_url=BASE_URL, http_client=client).render("quote", 1)


class TestGeneratePdfAndUpload:
    @pytest.mark.asyncio
    async def test_quote_is_filed_emailed_and_sent(self, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project, quote_valid_until=datetime(2030, 1, 31))

        url = await make_runner(pdf_endpoint()).generate_pdf_and_upload(db_session, "quote", quote.id)

        stored = await QuoteDAO(db_session).get_by_id(quote.id)
        await db_session.refresh(stored)
        assert url == PDF_URL
        assert stored.status == QuoteStatus.SENT
        assert stored.quote_file_url == PDF_URL

        files = await FileEntryDAO(db_session).list_in_scope(project_id=portal.project.id)
        assert [f.name for f in files] == [f"/quotes/{quote.quote_identifier}.pdf"]
        assert files[0].content_type == ContentType.FILE
        assert files[0].user_can_edit is False
        assert files[0].user_can_delete is False
        assert files[0].storage_id == "storage-1"

        [email] = MockEmailProvider.sent_emails
        assert email.to_email == "billing@customer.example"
        assert email.subject == f"Your quote {quote.quote_identifier} from Sleads"
        assert email.attachments[0].filename == f"{quote.quote_identifier}.pdf"
        assert email.attachments[0].content == b"%PDF-1.7 test"

    @pytest.mark.asyncio
    async def test_dutch_invoice(self, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        invoice = await InvoiceFactory.create(db_session, portal.project, language=DocumentLanguage.NL)

        await make_runner(pdf_endpoint()).generate_pdf_and_upload(db_session, "invoice", invoice.id)

        stored = await InvoiceDAO(db_session).get_by_id(invoice.id)
        await db_session.refresh(stored)
        assert stored.status == InvoiceStatus.SENT
        assert MockEmailProvider.sent_emails[0].subject == f"Uw factuur {invoice.invoice_identifier} van Sleads"

    @pytest.mark.asyncio
    async def test_render_failure_keeps_status(self, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)

        with pytest.raises(DocumentGenerationError):
            await make_runner(pdf_endpoint(status_code=502)).generate_pdf_and_upload(db_session, "quote", quote.id)

        stored = await QuoteDAO(db_session).get_by_id(quote.id)
        assert stored.status == QuoteStatus.DRAFT
        assert MockEmailProvider.sent_emails == []

    @pytest.mark.asyncio
    async def test_email_failure_raises_before_marking_sent(self, db_session: AsyncSession):
        """
        WHY: The raise makes the task queue retry; the attempt's session is
        rolled back, so the filed PDF row disappears with it.
        """
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)

        with pytest.raises(EmailServiceError):
            await make_runner(pdf_endpoint(), FailingProvider()).generate_pdf_and_upload(
                db_session, "quote", quote.id
            )

        stored = await QuoteDAO(db_session).get_by_id(quote.id)
        await db_session.refresh(stored)
        assert stored.status == QuoteStatus.DRAFT

    @pytest.mark.asyncio
    async def test_missing_contact(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        project = await ProjectFactory.create(db_session, org)
        quote = await QuoteFactory.create(db_session, project)

        with pytest.raises(ResourceNotFoundError) as exc_info:
            await make_runner(pdf_endpoint()).generate_pdf_and_upload(db_session, "quote", quote.id)

        assert exc_info.value.message == "Contact information not found"

    @pytest.mark.asyncio
    async def test_unknown_kind(self, db_session: AsyncSession):
        with pytest.raises(ValueError):
            await make_runner(pdf_endpoint()).generate_pdf_and_upload(db_session, "receipt", 1)


class TestInvoiceStatusEmail:
    @pytest.mark.asyncio
    async def test_paid_email(self, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        invoice = await InvoiceFactory.create(
            db_session, portal.project, status=InvoiceStatus.PAID, invoice_file_url=PDF_URL
        )

        sent = await make_runner(pdf_endpoint()).send_invoice_status_email(db_session, invoice.id, "paid")

        [email] = MockEmailProvider.sent_emails
        assert sent is True
        assert email.subject == f"Payment Received - Invoice {invoice.invoice_identifier} from Sleads"
        assert len(email.attachments) == 1

    @pytest.mark.asyncio
    async def test_without_pdf_has_no_attachment(self, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        invoice = await InvoiceFactory.create(db_session, portal.project, language=DocumentLanguage.NL)

        await make_runner(pdf_endpoint()).send_invoice_status_email(db_session, invoice.id, "overdue")

        [email] = MockEmailProvider.sent_emails
        assert email.subject.startswith("Betalingsherinnering")
        assert email.attachments == []

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self, db_session: AsyncSession):
        """A failing provider or a missing invoice returns False, never raises."""
        portal = await PortalBuilder.create(db_session)
        invoice = await InvoiceFactory.create(db_session, portal.project)

        failing = make_runner(pdf_endpoint(), FailingProvider())

        assert await failing.send_invoice_status_email(db_session, invoice.id, "cancelled") is False
        assert await failing.send_invoice_status_email(db_session, 9999, "paid") is False


class TestRegisteredTasks:
    @pytest.mark.asyncio
    async def test_task_delegates_to_runner(self, db_session: AsyncSession, task_queue):
        """
        The registered task resolves the module-level runner at run time.

        WHY: Tests and deployments swap the runner without re-registering.
        """
        portal = await PortalBuilder.create(db_session)
        quote = await QuoteFactory.create(db_session, portal.project)
        document_tasks.set_document_task_runner(make_runner(pdf_endpoint()))

        url = await task_queue.get(GENERATE_PDF_TASK)(db_session, kind="quote", document_id=quote.id)

        assert url == PDF_URL
        assert document_tasks.get_document_task_runner() is document_tasks._runner
