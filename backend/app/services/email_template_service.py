"""
Email Template Service for rendering Jinja2 email templates.

WHAT: Loads and renders the bilingual (en/nl) billing emails.

WHY: Quote and invoice emails share one layout and one line-item table;
only wording and a call-to-action change per email kind. Keeping the
wording in a translation table and the markup in templates lets either
change without touching the task code.

HOW: Jinja2 environment with FileSystemLoader on app/templates/email.
Each render_* method returns (subject, html, text).
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape, TemplateNotFound

from app.core.config import settings
from app.core.exceptions import EmailServiceError


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

SUPPORTED_LANGUAGES = ("en", "nl")

# Subject line per email kind and language; {identifier} is the document code
SUBJECTS: Dict[str, Dict[str, str]] = {
    "quote": {
        "en": "Your quote {identifier} from Sleads",
        "nl": "Uw offerte {identifier} van Sleads",
    },
    "invoice": {
        "en": "Your invoice {identifier} from Sleads",
        "nl": "Uw factuur {identifier} van Sleads",
    },
    "invoice_paid": {
        "en": "Payment Received - Invoice {identifier} from Sleads",
        "nl": "Betaling ontvangen - Factuur {identifier} van Sleads",
    },
    "invoice_overdue": {
        "en": "Payment Reminder - Overdue Invoice {identifier} from Sleads",
        "nl": "Betalingsherinnering - Achterstallige factuur {identifier} van Sleads",
    },
    "invoice_cancelled": {
        "en": "Invoice Cancelled {identifier} from Sleads",
        "nl": "Factuur geannuleerd {identifier} van Sleads",
    },
}

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "en": {
        "greeting": "Hi",
        "quote_intro": "We're excited to share your personalized quote with you. "
        "Below you'll find a detailed overview of all items and pricing.",
        "invoice_intro": "Please find your invoice below. The PDF is attached to this email.",
        "invoice_paid_intro": "Thank you! We have received your payment for the invoice below.",
        "invoice_overdue_intro": "Our records show that the invoice below has passed its due date. "
        "Please arrange payment at your earliest convenience.",
        "invoice_cancelled_intro": "The invoice below has been cancelled. No payment is required.",
        "document_number": "Number",
        "date": "Date",
        "valid_until": "Valid until",
        "due_date": "Due date",
        "item": "Item",
        "quantity": "Qty",
        "price": "Price",
        "tax": "Tax",
        "subtotal": "Subtotal",
        "tax_total": "Tax (VAT)",
        "grand_total": "Grand total",
        "quote_cta": "Accept or reject this quote in your portal",
        "invoice_cta": "View this invoice in your portal",
        "view_in_portal": "View in portal",
        "download_pdf": "Download PDF",
        "footer": "If you have any questions, please don't hesitate to reach out to us.",
    },
    "nl": {
        "greeting": "Hallo",
        "quote_intro": "We zijn blij om uw gepersonaliseerde offerte met u te delen. "
        "Hieronder vindt u een gedetailleerd overzicht van alle items en prijzen.",
        "invoice_intro": "Hieronder vindt u uw factuur. De PDF is als bijlage toegevoegd.",
        "invoice_paid_intro": "Bedankt! We hebben uw betaling voor onderstaande factuur ontvangen.",
        "invoice_overdue_intro": "Volgens onze administratie is de vervaldatum van onderstaande "
        "factuur verstreken. Wilt u de betaling zo spoedig mogelijk voldoen?",
        "invoice_cancelled_intro": "Onderstaande factuur is geannuleerd. U hoeft niets te betalen.",
        "document_number": "Nummer",
        "date": "Datum",
        "valid_until": "Geldig tot",
        "due_date": "Vervaldatum",
        "item": "Item",
        "quantity": "Aantal",
        "price": "Prijs",
        "tax": "BTW",
        "subtotal": "Subtotaal",
        "tax_total": "BTW",
        "grand_total": "Totaal",
        "quote_cta": "Accepteer of weiger deze offerte in uw portaal",
        "invoice_cta": "Bekijk deze factuur in uw portaal",
        "view_in_portal": "Bekijk in portaal",
        "download_pdf": "Download PDF",
        "footer": "Heeft u vragen? Neem gerust contact met ons op.",
    },
}


@dataclass
class ItemTotals:
    """Money totals of a list of line items."""

    rows: List[Dict[str, Any]]
    subtotal: Decimal
    tax: Decimal
    total: Decimal


def summarize_items(items: List[Dict[str, Any]]) -> ItemTotals:
    """
    Compute per-line and overall totals, rounded to cents.

    Args:
        items: Line items with quantity, price_excl_tax and tax (percent)

    Returns:
        ItemTotals with display rows
    """
    rows = []
    subtotal = Decimal(0)
    tax_total = Decimal(0)
    for item in items:
        quantity = Decimal(str(item.get("quantity", 0)))
        price = Decimal(str(item.get("price_excl_tax", 0)))
        tax_rate = Decimal(str(item.get("tax", 0)))
        line = (quantity * price).quantize(CENT, ROUND_HALF_UP)
        line_tax = (line * tax_rate / 100).quantize(CENT, ROUND_HALF_UP)
        subtotal += line
        tax_total += line_tax
        rows.append(
            {
                "name": item.get("name", ""),
                "description": item.get("description", ""),
                "quantity": item.get("quantity", 0),
                "price": price.quantize(CENT),
                "tax": item.get("tax", 0),
                "line_total": line,
            }
        )
    return ItemTotals(rows=rows, subtotal=subtotal, tax=tax_total, total=subtotal + tax_total)


def build_subject(kind: str, language: str, identifier: str) -> str:
    """Subject line for an email kind, falling back to English."""
    templates = SUBJECTS[kind]
    return templates.get(language, templates["en"]).format(identifier=identifier).strip()


class EmailTemplateService:
    """
    Service for rendering email templates.

    Example:
        template_service = EmailTemplateService()
        subject, html, text = template_service.render_document_email(
            kind="quote",
            language="nl",
            identifier="Q-2025-000001",
            ...
        )
    """

    def __init__(self, template_dir: Optional[Path] = None):
        """
        Initialize template service.

        Args:
            template_dir: Path to templates directory (defaults to app/templates/email)
        """
        if template_dir is None:
            template_dir = Path(__file__).parent.parent / "templates" / "email"

        self._template_dir = template_dir
        self._env = self._create_environment()

    def _create_environment(self) -> Environment:
        env = Environment(
            loader=FileSystemLoader(str(self._template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters["money"] = self._money_filter
        env.filters["date"] = self._date_filter
        return env

    @staticmethod
    def _money_filter(value: Any) -> str:
        return f"€ {Decimal(str(value)).quantize(CENT):,.2f}"

    @staticmethod
    def _date_filter(value: Optional[datetime]) -> str:
        if value is None:
            return "-"
        return value.strftime("%d-%m-%Y")

    def _get_base_context(self) -> Dict[str, Any]:
        return {
            "year": datetime.utcnow().year,
            "site_url": settings.SITE_URL,
            "platform_name": settings.EMAIL_FROM_NAME,
        }

    def render_template(
        self,
        template_name: str,
        context: Dict[str, Any],
    ) -> str:
        """
        Render a template with given context.

        Args:
            template_name: Name of template file (e.g., "document.html")
            context: Template variables

        Returns:
            Rendered HTML string

        Raises:
            EmailServiceError: If template not found or render fails
        """
        try:
            template = self._env.get_template(template_name)
            full_context = {**self._get_base_context(), **context}
            return template.render(**full_context)
        except TemplateNotFound:
            logger.error(f"Email template not found: {template_name}")
            raise EmailServiceError(
                message=f"Email template not found: {template_name}",
                template=template_name,
            )
        except Exception as e:
            logger.error(f"Error rendering template {template_name}: {e}")
            raise EmailServiceError(
                message="Failed to render email template",
                template=template_name,
                error=str(e),
            )

    def render_document_email(
        self,
        kind: str,
        language: str,
        identifier: str,
        contact_name: str,
        organization_name: str,
        items: List[Dict[str, Any]],
        portal_url: str,
        document_date: Optional[datetime] = None,
        deadline: Optional[datetime] = None,
        file_url: Optional[str] = None,
    ) -> tuple[str, str, str]:
        """
        Render a quote or invoice email.

        Args:
            kind: One of the SUBJECTS keys (quote, invoice, invoice_paid, ...)
            language: "en" or "nl"
            identifier: Display code, e.g. Q-2025-000001
            contact_name: Recipient's name
            organization_name: Customer organization
            items: Line items
            portal_url: Link to the document in the customer portal
            document_date: Quote or invoice date
            deadline: Valid-until (quote) or due date (invoice)
            file_url: Link to the generated PDF

        Returns:
            Tuple of (subject, html_content, text_content)
        """
        if language not in SUPPORTED_LANGUAGES:
            language = "en"
        t = TRANSLATIONS[language]
        totals = summarize_items(items)
        is_quote = kind == "quote"

        context = {
            "t": t,
            "language": language,
            "kind": kind,
            "is_quote": is_quote,
            "intro": t[f"{kind}_intro"],
            "call_to_action": t["quote_cta"] if is_quote else t["invoice_cta"],
            "deadline_label": t["valid_until"] if is_quote else t["due_date"],
            "identifier": identifier,
            "contact_name": contact_name,
            "organization_name": organization_name,
            "document_date": document_date,
            "deadline": deadline,
            "rows": totals.rows,
            "subtotal": totals.subtotal,
            "tax_total": totals.tax,
            "grand_total": totals.total,
            "portal_url": portal_url,
            "file_url": file_url,
        }

        subject = build_subject(kind, language, identifier)
        html = self.render_template("document.html", context)
        text = self.render_template("document.txt", context)
        return subject, html, text


# Module-level singleton
_template_service: Optional[EmailTemplateService] = None


def get_email_template_service() -> EmailTemplateService:
    """Get or create the global template service instance."""
    global _template_service

    if _template_service is None:
        _template_service = EmailTemplateService()

    return _template_service
