"""
Quote and invoice schemas for API request/response validation.

WHAT: Line items, draft updates, status changes and document responses.

WHY: Line items are stored as JSON on the document, so this is the only
place their shape is enforced. Tax is a Dutch VAT rate: 0, 9 or 21 percent.

HOW: Uses Pydantic v2 with Field validators and model_config.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.invoice import InvoiceStatus
from app.models.quote import DocumentLanguage, QuoteStatus
from app.schemas.organization import ContactInformationResponse
from app.schemas.project import ProjectSummary


# ============================================================================
# Line items
# ============================================================================


class LineItem(BaseModel):
    """One priced line of a quote or invoice."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=5000)
    quantity: float = Field(..., ge=0)
    price_excl_tax: float = Field(..., description="Unit price excluding tax")
    tax: Literal[0, 9, 21] = Field(..., description="VAT percentage")


# ============================================================================
# Request Schemas
# ============================================================================


class DocumentCreate(BaseModel):
    """Create an empty draft for a project."""

    project_id: int


class _DocumentUpdate(BaseModel):
    language: Optional[DocumentLanguage] = None
    items: Optional[List[LineItem]] = Field(
        default=None,
        description="Replaces every line item; omit to keep them, [] removes them all",
    )


class QuoteUpdate(_DocumentUpdate):
    """Draft-only update. Dates are checked against now and each other."""

    quote_date: Optional[datetime] = None
    quote_valid_until: Optional[datetime] = None


class InvoiceUpdate(_DocumentUpdate):
    """Draft-only update. Dates are checked against now and each other."""

    invoice_date: Optional[datetime] = None
    invoice_due_date: Optional[datetime] = None


class InvoiceStatusUpdate(BaseModel):
    """Explicit status change; each of these emails the contact."""

    status: InvoiceStatus = Field(..., description="paid, overdue or cancelled")


class InvoicesFromQuote(BaseModel):
    """
    Split a quote into invoices by percentage.

    Example: [60, 40] creates two invoices carrying 60% and 40% of every
    item's quantity.
    """

    quote_id: int
    invoice_split: List[float] = Field(..., min_length=1)

    @field_validator("invoice_split")
    @classmethod
    def positive_parts(cls, value: List[float]) -> List[float]:
        if any(part <= 0 for part in value):
            raise ValueError("Every part of the split must be positive")
        return value


# ============================================================================
# Response Schemas
# ============================================================================


class _DocumentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    organization_id: int
    language: DocumentLanguage
    items: List[LineItem]
    created_at: datetime
    updated_at: datetime


class QuoteResponse(_DocumentResponse):
    quote_number: int
    quote_identifier: str
    quote_file_url: Optional[str] = None
    quote_date: Optional[datetime] = None
    quote_valid_until: Optional[datetime] = None
    status: QuoteStatus


class InvoiceResponse(_DocumentResponse):
    invoice_number: int
    invoice_identifier: str
    invoice_file_url: Optional[str] = None
    invoice_date: Optional[datetime] = None
    invoice_due_date: Optional[datetime] = None
    status: InvoiceStatus


class QuoteInformation(BaseModel):
    """Everything the quote PDF renders."""

    quote: QuoteResponse
    project: ProjectSummary
    contact_information: ContactInformationResponse


class InvoiceInformation(BaseModel):
    """Everything the invoice PDF renders."""

    invoice: InvoiceResponse
    project: ProjectSummary
    contact_information: ContactInformationResponse
