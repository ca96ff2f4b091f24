"""
Extra cost schemas for API request/response validation.

WHY: Amount and price are free numbers, negative included, because a
reimbursement is booked as a negative cost. Tax follows the line item
rates: 0, 9 or 21 percent.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.quote import DocumentLanguage


class ExtraCostCreate(BaseModel):
    """Book a cost on a project; the organization follows from the project."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "project_id": 1,
                "name": "Stock photos",
                "description": "Licence for 5 hero images",
                "amount": 5,
                "price_excl_tax": 12.5,
                "tax": 21,
                "show_separately_on_invoice": False,
            }
        },
    )

    project_id: int
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=5000)
    amount: float = Field(..., description="Quantity, negative for reimbursements")
    price_excl_tax: float = Field(..., description="Unit price excluding tax")
    tax: Literal[0, 9, 21] = Field(..., description="VAT percentage")
    show_separately_on_invoice: bool = False


class ExtraCostUpdate(BaseModel):
    """Partial update of an uninvoiced cost. Omitted values keep the stored value."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    amount: Optional[float] = None
    price_excl_tax: Optional[float] = None
    tax: Optional[Literal[0, 9, 21]] = None
    show_separately_on_invoice: Optional[bool] = None


class ExtraCostInvoiceRequest(BaseModel):
    """Bill every outstanding cost of a project on a new draft invoice."""

    project_id: int
    language: DocumentLanguage = DocumentLanguage.EN


class ExtraCostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    organization_id: int
    name: str
    description: str
    amount: float
    price_excl_tax: float
    tax: int
    invoiced_date: Optional[datetime] = None
    invoice_id: Optional[int] = None
    voided: bool
    show_separately_on_invoice: bool
    created_at: datetime
    updated_at: datetime
