"""
Extra cost model.

WHAT: Work or expenses booked on a project outside any quote, waiting to
be billed on a later invoice.

WHY: Small jobs (an extra page, a stock photo licence, a reimbursement)
add up between invoices. Each is booked as it happens and billed in one
go. Once billed, a cost is frozen: it can no longer be edited, voided or
deleted.

HOW: A cost counts as invoiced as soon as invoiced_date or invoice_id is
set. Amount is the quantity and price_excl_tax the unit price; both may be
negative for reimbursements. Voided costs stay on record but are never
billed.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped

from app.models.base import Base


class ExtraCost(Base):
    """
    Extra cost model.

    Attributes:
        amount: Quantity, negative for reimbursements
        price_excl_tax: Unit price excluding tax
        tax: VAT percentage, 0, 9 or 21
        invoiced_date: When the cost was billed
        invoice_id: Invoice the cost was billed on
        voided: Excluded from billing without deleting the record
        show_separately_on_invoice: Own line instead of the grouped
            "Extra costs" line of its tax rate
    """

    __tablename__ = "extra_costs"
    __table_args__ = (CheckConstraint("tax IN (0, 9, 21)", name="ck_extra_costs_tax"),)

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

    name: Mapped[str] = Column(String(255), nullable=False)
    description: Mapped[str] = Column(Text, nullable=False, default="")
    amount: Mapped[float] = Column(Float, nullable=False)
    price_excl_tax: Mapped[float] = Column(Float, nullable=False)
    tax: Mapped[int] = Column(Integer, nullable=False)

    invoiced_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True, index=True)
    invoice_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("invoices.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    voided: Mapped[bool] = Column(Boolean, nullable=False, default=False)
    show_separately_on_invoice: Mapped[bool] = Column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    @property
    def is_invoiced(self) -> bool:
        return self.invoiced_date is not None or self.invoice_id is not None

    @property
    def total_excl_tax(self) -> float:
        return self.amount * self.price_excl_tax

    def __repr__(self) -> str:
        return f"<ExtraCost(id={self.id}, project_id={self.project_id}, name={self.name})>"
