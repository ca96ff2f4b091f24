"""
Deferred billing tasks: PDF generation and billing emails.

WHAT: The two tasks the billing service enqueues.

- generate_pdf_and_upload(kind, document_id): renders the quote or invoice
  PDF through the document endpoint, files it under /quotes or /invoices,
  emails it to the project's contact and marks the document sent.
- send_invoice_status_email(invoice_id, status): tells the contact that an
  invoice was paid, became overdue or was cancelled.

WHY: Both call slow external services. They run on the task queue
(app.services.task_queue) so the admin's request returns at once, and a
document only becomes "sent" once its email actually went out.

HOW: DocumentTaskRunner holds the collaborators (renderer, email service)
so tests can inject an httpx.MockTransport and the mock email provider.
The registered task functions delegate to the module-level runner.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple, Type

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import DocumentGenerationError, ResourceNotFoundError
from app.dao.base import BaseDAO
from app.dao.file_entry import FileEntryDAO
from app.dao.invoice import InvoiceDAO
from app.dao.organization import ContactInformationDAO
from app.dao.project import ProjectDAO
from app.dao.quote import QuoteDAO
from app.models.file_entry import ContentType
from app.models.invoice import InvoiceStatus
from app.models.organization import ContactInformation
from app.models.project import Project
from app.models.quote import QuoteStatus
from app.services.email import EmailAttachment, EmailService, get_email_service, raise_for_result
from app.services.task_queue import task_queue

logger = logging.getLogger(__name__)

GENERATE_PDF_TASK = "generate_pdf_and_upload"
INVOICE_STATUS_EMAIL_TASK = "send_invoice_status_email"


@dataclass(frozen=True)
class DocumentKind:
    """Where a document type keeps its fields and files."""

    name: str
    dao_class: Type[BaseDAO]
    folder: str
    deadline_field: str
    sent_status: Enum

    def field(self, document: Any, suffix: str) -> Any:
        return getattr(document, f"{self.name}_{suffix}")

    @property
    def label(self) -> str:
        return self.name.capitalize()


DOCUMENT_KINDS = {
    "quote": DocumentKind(
        name="quote",
        dao_class=QuoteDAO,
        folder="/quotes",
        deadline_field="quote_valid_until",
        sent_status=QuoteStatus.SENT,
    ),
    "invoice": DocumentKind(
        name="invoice",
        dao_class=InvoiceDAO,
        folder="/invoices",
        deadline_field="invoice_due_date",
        sent_status=InvoiceStatus.SENT,
    ),
}


def document_kind(kind: str) -> DocumentKind:
    try:
        return DOCUMENT_KINDS[kind]
    except KeyError:
        raise ValueError(f"Unknown document kind: {kind}") from None


def portal_url(organization_id: int, project_id: int, kind: str, document_id: int) -> str:
    """Link to a quote or invoice in the customer dashboard."""
    base = settings.PORTAL_BASE_URL.rstrip("/")
    return f"{base}/{organization_id}/projects/{project_id}/{kind}s/{document_id}"


# ============================================================================
# PDF rendering
# ============================================================================


@dataclass
class RenderedDocument:
    """Result of the PDF endpoint: public url plus storage pointer."""

    url: str
    storage_id: Optional[str] = None


class DocumentRenderer:
    """
    Client for the external document endpoint that renders and stores PDFs.

    The endpoint is GET {base_url}/api/documents/{id}/pdf?type=quote|invoice
    and answers {"url": ..., "storageId": ...}.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 60.0,
    ):
        self._base_url = (base_url or settings.NEXT_PUBLIC_BASE_URL).rstrip("/")
        self._http_client = http_client
        self._timeout = timeout

    async def _get(self, url: str, **kwargs: Any) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.get(url, timeout=self._timeout, **kwargs)
        async with httpx.AsyncClient() as client:
            return await client.get(url, timeout=self._timeout, **kwargs)

    async def render(self, kind: str, document_id: int) -> RenderedDocument:
        """
        Render and store the PDF of a document.

        Raises:
            DocumentGenerationError: Endpoint unreachable or non-2xx
        """
        url = f"{self._base_url}/api/documents/{document_id}/pdf"
        try:
            response = await self._get(url, params={"type": kind})
        except httpx.HTTPError as e:
            raise DocumentGenerationError(kind=kind, document_id=document_id, error=str(e)) from e

        if not response.is_success:
            raise DocumentGenerationError(
                kind=kind,
                document_id=document_id,
                upstream_status=response.status_code,
            )

        data = response.json()
        if not data.get("url"):
            raise DocumentGenerationError(kind=kind, document_id=document_id, reason="missing_url")
        return RenderedDocument(url=data["url"], storage_id=data.get("storageId"))

    async def fetch_pdf(self, url: str) -> bytes:
        """Download a stored PDF. Raises httpx.HTTPError on failure."""
        response = await self._get(url)
        response.raise_for_status()
        return response.content


# ============================================================================
# Task runner
# ============================================================================


class DocumentTaskRunner:
    """
    Executes the billing tasks against a session.

    Args:
        renderer: PDF endpoint client
        email_service: Email service (defaults to the global one)
    """

    def __init__(
        self,
        renderer: Optional[DocumentRenderer] = None,
        email_service: Optional[EmailService] = None,
    ):
        self._renderer = renderer or DocumentRenderer()
        self._email_service = email_service

    @property
    def email_service(self) -> EmailService:
        return self._email_service or get_email_service()

    async def _load(
        self, session: AsyncSession, kind: DocumentKind, document_id: int
    ) -> Tuple[Any, Project, ContactInformation]:
        document = await kind.dao_class(session).get_by_id(document_id)
        if document is None:
            raise ResourceNotFoundError(message=f"{kind.label} not found", document_id=document_id)

        project = await ProjectDAO(session).get_by_id(document.project_id)
        if project is None:
            raise ResourceNotFoundError(message="Project not found", project_id=document.project_id)

        contact = None
        if project.contact_information_id is not None:
            contact = await ContactInformationDAO(session).get_by_id(project.contact_information_id)
        if contact is None:
            raise ResourceNotFoundError(message="Contact information not found", project_id=project.id)

        return document, project, contact

    async def _attachment(self, file_url: Optional[str], filename: str) -> list[EmailAttachment]:
        if not file_url:
            return []
        try:
            content = await self._renderer.fetch_pdf(file_url)
        except httpx.HTTPError as e:
            logger.error(f"Failed to attach PDF {filename}, sending without it: {e}", exc_info=e)
            return []
        return [EmailAttachment(filename=filename, content=content)]

    async def generate_pdf_and_upload(self, session: AsyncSession, kind: str, document_id: int) -> str:
        """
        Render, file, email and mark a quote or invoice as sent.

        Any failure raises, so the task queue retries the whole attempt and
        the document keeps its previous status.

        Returns:
            URL of the stored PDF
        """
        info = document_kind(kind)
        document, project, contact = await self._load(session, info, document_id)

        rendered = await self._renderer.render(info.name, document_id)
        logger.info(
            f"Rendered {info.name} {document_id} PDF",
            extra={"kind": info.name, "document_id": document_id, "storage_id": rendered.storage_id},
        )

        identifier = info.field(document, "identifier") or str(document_id)
        await FileEntryDAO(session).create(
            name=f"{info.folder}/{identifier}.pdf",
            content_type=ContentType.FILE,
            url=rendered.url,
            storage_id=rendered.storage_id,
            user_can_edit=False,
            user_can_delete=False,
            project_id=project.id,
            organization_id=project.organization_id,
        )
        dao = info.dao_class(session)
        await dao.update(document_id, **{f"{info.name}_file_url": rendered.url})

        result = await self.email_service.send_document_email(
            kind=info.name,
            to_email=contact.email,
            contact_name=contact.name,
            organization_name=contact.organization_name,
            language=document.language.value,
            identifier=identifier,
            items=document.items or [],
            portal_url=portal_url(project.organization_id, project.id, info.name, document_id),
            document_date=info.field(document, "date"),
            deadline=getattr(document, info.deadline_field),
            file_url=rendered.url,
            attachments=await self._attachment(rendered.url, f"{identifier}.pdf"),
            metadata={"document_id": document_id},
        )
        raise_for_result(result)

        await dao.update(document_id, status=info.sent_status)
        logger.info(
            f"{info.label} {identifier} sent to {contact.email}",
            extra={"kind": info.name, "document_id": document_id},
        )
        return rendered.url

    async def send_invoice_status_email(
        self, session: AsyncSession, invoice_id: int, status: str
    ) -> bool:
        """
        Notify the contact about a paid, overdue or cancelled invoice.

        Best effort: every failure is logged and swallowed so a status
        change is never retried or dead-lettered because of its email.

        Returns:
            True if the email was sent
        """
        try:
            info = DOCUMENT_KINDS["invoice"]
            invoice, project, contact = await self._load(session, info, invoice_id)
            identifier = invoice.invoice_identifier or str(invoice_id)
            result = await self.email_service.send_document_email(
                kind=f"invoice_{InvoiceStatus(status).value}",
                to_email=contact.email,
                contact_name=contact.name,
                organization_name=contact.organization_name,
                language=invoice.language.value,
                identifier=identifier,
                items=invoice.items or [],
                portal_url=portal_url(project.organization_id, project.id, "invoice", invoice_id),
                document_date=invoice.invoice_date,
                deadline=invoice.invoice_due_date,
                file_url=invoice.invoice_file_url,
                attachments=await self._attachment(invoice.invoice_file_url, f"{identifier}.pdf"),
                metadata={"document_id": invoice_id, "status": status},
            )
            raise_for_result(result)
        except Exception as e:
            logger.error(
                f"Failed to send invoice {status} email for invoice {invoice_id}: {e}",
                exc_info=e,
                extra={"invoice_id": invoice_id, "status": status},
            )
            return False
        return True


_runner: Optional[DocumentTaskRunner] = None


def get_document_task_runner() -> DocumentTaskRunner:
    """Get or create the global runner."""
    global _runner

    if _runner is None:
        _runner = DocumentTaskRunner()

    return _runner


def set_document_task_runner(runner: Optional[DocumentTaskRunner]) -> None:
    """Replace the global runner (None resets to the default on next use)."""
    global _runner
    _runner = runner


# ============================================================================
# Registered tasks
# ============================================================================


@task_queue.task(GENERATE_PDF_TASK)
async def generate_pdf_and_upload(session: AsyncSession, kind: str, document_id: int) -> str:
    return await get_document_task_runner().generate_pdf_and_upload(session, kind, document_id)


@task_queue.task(INVOICE_STATUS_EMAIL_TASK)
async def send_invoice_status_email(session: AsyncSession, invoice_id: int, status: str) -> bool:
    return await get_document_task_runner().send_invoice_status_email(session, invoice_id, status)
