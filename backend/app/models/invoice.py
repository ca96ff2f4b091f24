"""
Invoice model.

WHAT: A bill for a project, sent to the project's billing contact.

WHY: Invoices move draft -> sent -> paid/overdue/cancelled. Staff may also
set paid, overdue or cancelled directly from draft through the explicit
status update; each of those transitions emails the customer.

HOW: invoice_number comes from the "invoice" sequence counter and is
unique. The display identifier is I-<year>-<number>.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped

from app.models.base import Base
from app.models.quote import DocumentLanguage


class InvoiceStatus(str, Enum):
    """
    Invoice lifecycle status.

    - DRAFT: Being prepared, line items editable
    - SENT: PDF generated and emailed to the customer
    - PAID / OVERDUE / CANCELLED: Set by staff, each triggers an email
    """

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


# Statuses reachable through the explicit status update
NOTIFIABLE_INVOICE_STATUSES = (
    InvoiceStatus.PAID,
    InvoiceStatus.OVERDUE,
    InvoiceStatus.CANCELLED,
)

# Statuses a customer may see in their dashboard
CUSTOMER_VISIBLE_INVOICE_STATUSES = (
    InvoiceStatus.SENT,
    InvoiceStatus.PAID,
    InvoiceStatus.OVERDUE,
    InvoiceStatus.CANCELLED,
)


class Invoice(Base):
    """
    Invoice model.

    Attributes:
        invoice_number: Sequential business number, unique
        invoice_identifier: Display code, e.g. I-2025-000001
        invoice_file_url: URL of the generated PDF once sent
        language: Language of the document and its emails
        invoice_date: Date printed on the invoice
        invoice_due_date: Payment deadline
        items: Line items (name, description, quantity, price_excl_tax, tax)
        status: Lifecycle status
    """

    __tablename__ = "invoices"

    id: Mapped[int] = Column(Integer, primary_key=True, index=True)

    project_id: Mapped[int] = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_id: Mapped[int] = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    invoice_number: Mapped[int] = Column(
        Integer,
        nullable=False,
        unique=True,
        comment="Sequential business number",
    )
    invoice_identifier: Mapped[str] = Column(String(32), nullable=False, index=True)
    invoice_file_url: Mapped[Optional[str]] = Column(String(2048), nullable=True)

    language: Mapped[DocumentLanguage] = Column(
        SQLEnum(
            DocumentLanguage,
            name="document_language",
            create_type=False,
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=DocumentLanguage.EN,
    )

    invoice_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    invoice_due_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)

    items: Mapped[list] = Column(JSON, nullable=False, default=list)

    status: Mapped[InvoiceStatus] = Column(
        SQLEnum(
            InvoiceStatus,
            name="invoice_status",
            create_type=False,
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=InvoiceStatus.DRAFT,
        index=True,
    )

    created_at: Mapped[datetime] = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    @property
    def is_editable(self) -> bool:
        """Only draft invoices may have their items or dates changed."""
        return self.status == InvoiceStatus.DRAFT

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, number={self.invoice_number}, status={self.status})>"
