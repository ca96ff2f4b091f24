"""
Email service for sending transactional emails.

WHAT: A single interface for sending the portal's billing emails through
Brevo (primary) or Resend, with a mock provider for development.

WHY: Quotes and invoices reach customers by email, with the generated PDF
attached. The task code only knows "send this document email"; which
provider delivers it is configuration.

HOW: EmailService picks the first configured provider (Brevo, then Resend,
then Mock) and renders bodies with EmailTemplateService. Providers speak
their REST APIs through httpx and never raise; they return an EmailResult
that the caller inspects.
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import EmailServiceError
from app.services.email_template_service import (
    EmailTemplateService,
    get_email_template_service,
)

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"
RESEND_API_URL = "https://api.resend.com/emails"


# ============================================================================
# Email Types and Messages
# ============================================================================


class EmailType(str, Enum):
    """Types of transactional emails, used for logging."""

    QUOTE = "quote"
    """A quote was sent to the customer."""

    INVOICE = "invoice"
    """An invoice was sent to the customer."""

    INVOICE_STATUS = "invoice_status"
    """Invoice became paid, overdue, or cancelled."""


@dataclass
class EmailAttachment:
    """A file attached to an email."""

    filename: str
    content: bytes

    def as_base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


@dataclass
class EmailMessage:
    """
    Represents an email to be sent.

    WHAT: Data container for email content and metadata.
    """

    to_email: str
    """Recipient email address."""

    subject: str
    """Email subject line."""

    html_content: str
    """HTML email body."""

    text_content: Optional[str] = None
    """Plain text fallback."""

    to_name: Optional[str] = None
    """Recipient display name."""

    from_email: Optional[str] = None
    """Sender email (defaults to EMAIL_FROM)."""

    from_name: Optional[str] = None
    """Sender display name (defaults to EMAIL_FROM_NAME)."""

    reply_to: Optional[str] = None
    """Reply-to address."""

    email_type: EmailType = EmailType.QUOTE
    """Type of email for logging."""

    attachments: List[EmailAttachment] = field(default_factory=list)
    """Files to attach, usually the document PDF."""

    metadata: Optional[Dict[str, Any]] = None
    """Additional metadata for logging."""


@dataclass
class EmailResult:
    """Result of an email send operation."""

    success: bool
    """Whether email was sent successfully."""

    message_id: Optional[str] = None
    """Provider message ID for tracking."""

    error: Optional[str] = None
    """Error message if send failed."""

    provider: Optional[str] = None
    """Which provider was used."""


# ============================================================================
# Email Provider Interface
# ============================================================================


class EmailProvider(ABC):
    """
    Abstract base class for email providers.

    WHY: Provider abstraction allows switching between Brevo and Resend by
    configuration, and testing with the mock provider.
    """

    name = "abstract"

    @abstractmethod
    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        Args:
            message: The email message to send

        Returns:
            EmailResult with success status and provider details
        """

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if API keys are present."""


class HTTPEmailProvider(EmailProvider):
    """
    Shared plumbing for providers with a JSON REST API.

    Subclasses build the request body and headers and read the message id
    out of the response.
    """

    url = ""

    def __init__(
        self,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._api_key = api_key
        self._http_client = http_client

    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _sender(self, message: EmailMessage) -> tuple[str, str]:
        return (
            message.from_email or settings.EMAIL_FROM,
            message.from_name or settings.EMAIL_FROM_NAME,
        )

    @abstractmethod
    def _headers(self) -> Dict[str, str]:
        """Authentication headers."""

    @abstractmethod
    def _payload(self, message: EmailMessage) -> Dict[str, Any]:
        """Request body for one message."""

    @abstractmethod
    def _message_id(self, data: Dict[str, Any]) -> Optional[str]:
        """Message id from the provider's response body."""

    async def _post(self, client: httpx.AsyncClient, message: EmailMessage) -> httpx.Response:
        return await client.post(
            self.url,
            headers={**self._headers(), "Content-Type": "application/json"},
            json=self._payload(message),
            timeout=30.0,
        )

    async def send(self, message: EmailMessage) -> EmailResult:
        if not self.is_configured():
            return EmailResult(
                success=False,
                error=f"{self.name} API key not configured",
                provider=self.name,
            )

        try:
            if self._http_client is not None:
                response = await self._post(self._http_client, message)
            else:
                async with httpx.AsyncClient() as client:
                    response = await self._post(client, message)
        except httpx.HTTPError as e:
            logger.error(f"{self.name} send error: {e}")
            return EmailResult(success=False, error=str(e), provider=self.name)

        if response.status_code in (200, 201, 202):
            return EmailResult(
                success=True,
                message_id=self._message_id(response.json()),
                provider=self.name,
            )
        return EmailResult(
            success=False,
            error=f"{self.name} API error: {response.status_code} - {response.text}",
            provider=self.name,
        )


class BrevoProvider(HTTPEmailProvider):
    """Brevo (formerly Sendinblue) transactional email API."""

    name = "brevo"
    url = BREVO_API_URL

    def __init__(self, api_key: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None):
        super().__init__(api_key or settings.BREVO_API_KEY, http_client)

    def _headers(self) -> Dict[str, str]:
        return {"api-key": self._api_key, "Accept": "application/json"}

    def _payload(self, message: EmailMessage) -> Dict[str, Any]:
        from_email, from_name = self._sender(message)
        recipient = {"email": message.to_email}
        if message.to_name:
            recipient["name"] = message.to_name

        payload: Dict[str, Any] = {
            "sender": {"name": from_name, "email": from_email},
            "to": [recipient],
            "subject": message.subject,
            "htmlContent": message.html_content,
        }
        if message.text_content:
            payload["textContent"] = message.text_content
        if message.reply_to:
            payload["replyTo"] = {"email": message.reply_to}
        if message.attachments:
            payload["attachment"] = [
                {"name": a.filename, "content": a.as_base64()} for a in message.attachments
            ]
        return payload

    def _message_id(self, data: Dict[str, Any]) -> Optional[str]:
        return data.get("messageId")


class ResendProvider(HTTPEmailProvider):
    """Resend email API."""

    name = "resend"
    url = RESEND_API_URL

    def __init__(self, api_key: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None):
        super().__init__(api_key or settings.RESEND_API_KEY, http_client)

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    def _payload(self, message: EmailMessage) -> Dict[str, Any]:
        from_email, from_name = self._sender(message)
        payload: Dict[str, Any] = {
            "from": f"{from_name} <{from_email}>",
            "to": [message.to_email],
            "subject": message.subject,
            "html": message.html_content,
        }
        if message.text_content:
            payload["text"] = message.text_content
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        if message.attachments:
            payload["attachments"] = [
                {"filename": a.filename, "content": a.as_base64()} for a in message.attachments
            ]
        return payload

    def _message_id(self, data: Dict[str, Any]) -> Optional[str]:
        return data.get("id")


class MockEmailProvider(EmailProvider):
    """
    Mock email provider for testing and development.

    WHY: Allows testing email flows without sending real emails.
    Logs emails instead of sending them.
    """

    name = "mock"

    sent_emails: List[EmailMessage] = []
    """Class-level list to track sent emails for testing."""

    def is_configured(self) -> bool:
        """Mock provider is always configured."""
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        logger.info(
            f"[MOCK EMAIL] To: {message.to_email}, "
            f"Subject: {message.subject}, "
            f"Type: {message.email_type.value}, "
            f"Attachments: {len(message.attachments)}"
        )

        MockEmailProvider.sent_emails.append(message)

        return EmailResult(
            success=True,
            message_id=f"mock-{datetime.utcnow().timestamp()}",
            provider="mock",
        )

    @classmethod
    def clear_sent_emails(cls):
        """Clear sent emails list (for test cleanup)."""
        cls.sent_emails = []


def default_provider() -> EmailProvider:
    """First configured provider: Brevo, then Resend, then the mock."""
    for provider in (BrevoProvider(), ResendProvider()):
        if provider.is_configured():
            return provider
    logger.warning("No email provider configured, using mock provider")
    return MockEmailProvider()


# ============================================================================
# Email Service
# ============================================================================


class EmailService:
    """
    High-level email service for the billing emails.

    WHAT: Renders a document email and sends it through the provider.

    HOW: send_email is the single entry point that logs every send;
    send_document_email builds the message from a quote or invoice.
    """

    def __init__(
        self,
        provider: Optional[EmailProvider] = None,
        template_service: Optional[EmailTemplateService] = None,
    ):
        """
        Initialize email service.

        Args:
            provider: Email provider to use (auto-detected if not provided)
            template_service: Template service for rendering (auto-created if not provided)
        """
        self._provider = provider or default_provider()
        self._template_service = template_service or get_email_template_service()

    @property
    def provider(self) -> EmailProvider:
        return self._provider

    async def send_email(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        Args:
            message: Email message to send

        Returns:
            EmailResult with send status
        """
        logger.info(
            f"Sending {message.email_type.value} email to {message.to_email}",
            extra={
                "email_type": message.email_type.value,
                "to": message.to_email,
            },
        )

        result = await self._provider.send(message)

        if result.success:
            logger.info(
                f"Email sent successfully: {result.message_id}",
                extra={
                    "message_id": result.message_id,
                    "provider": result.provider,
                },
            )
        else:
            logger.error(
                f"Email send failed: {result.error}",
                extra={
                    "email_type": message.email_type.value,
                    "to": message.to_email,
                    "error": result.error,
                },
            )

        return result

    async def send_document_email(
        self,
        kind: str,
        to_email: str,
        contact_name: str,
        organization_name: str,
        language: str,
        identifier: str,
        items: List[Dict[str, Any]],
        portal_url: str,
        document_date: Optional[datetime] = None,
        deadline: Optional[datetime] = None,
        file_url: Optional[str] = None,
        attachments: Optional[List[EmailAttachment]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> EmailResult:
        """
        Send a quote or invoice email.

        Args:
            kind: quote, invoice, invoice_paid, invoice_overdue, invoice_cancelled
            to_email: Contact's email address
            contact_name: Contact's display name
            organization_name: Customer organization
            language: "en" or "nl"
            identifier: Q-YYYY-NNNNNN or I-YYYY-NNNNNN
            items: Line items of the document
            portal_url: Link to the document in the customer portal
            document_date: Quote or invoice date
            deadline: Valid-until or due date
            file_url: Link to the stored PDF
            attachments: Files to attach
            metadata: Extra fields for logging

        Returns:
            EmailResult with send status

        Raises:
            EmailServiceError: If the template fails to render
        """
        subject, html_content, text_content = self._template_service.render_document_email(
            kind=kind,
            language=language,
            identifier=identifier,
            contact_name=contact_name,
            organization_name=organization_name,
            items=items,
            portal_url=portal_url,
            document_date=document_date,
            deadline=deadline,
            file_url=file_url,
        )

        if kind == "quote":
            email_type = EmailType.QUOTE
        elif kind == "invoice":
            email_type = EmailType.INVOICE
        else:
            email_type = EmailType.INVOICE_STATUS

        message = EmailMessage(
            to_email=to_email,
            to_name=contact_name,
            subject=subject,
            html_content=html_content,
            text_content=text_content,
            email_type=email_type,
            attachments=list(attachments or []),
            metadata={"identifier": identifier, "kind": kind, **(metadata or {})},
        )
        return await self.send_email(message)


def raise_for_result(result: EmailResult) -> EmailResult:
    """Turn a failed EmailResult into an EmailServiceError."""
    if not result.success:
        raise EmailServiceError(
            message="Failed to send email",
            provider=result.provider,
            error=result.error,
        )
    return result


# Module-level singleton
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """
    Get or create the global email service instance.

    Returns:
        EmailService instance
    """
    global _email_service

    if _email_service is None:
        _email_service = EmailService()

    return _email_service
