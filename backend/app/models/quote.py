"""
Quote model.

WHAT: A priced offer for a project, sent to the project's billing contact.

WHY: Quotes move forward through draft -> sent -> accepted/rejected. Line
items can only change while the quote is a draft; once sent the PDF the
customer received is the binding version.

HOW: quote_number comes from the "quote" sequence counter
(app.dao.sequence) and is unique. The display identifier Q-<year>-<number>
is derived at creation and stored.
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


class QuoteStatus(str, Enum):
    """
    Quote lifecycle status.

    - DRAFT: Being prepared, line items editable
    - SENT: PDF generated and emailed to the customer
    - ACCEPTED / REJECTED: Customer decision, only reachable from SENT
    - EXPIRED: Set manually by staff, never automatically
    """

    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class DocumentLanguage(str, Enum):
    """Language a quote or invoice (and its email) is written in."""

    EN = "en"
    NL = "nl"


# Statuses a customer may see in their dashboard
CUSTOMER_VISIBLE_QUOTE_STATUSES = (
    QuoteStatus.SENT,
    QuoteStatus.ACCEPTED,
    QuoteStatus.REJECTED,
)


def format_document_identifier(prefix: str, number: int, year: Optional[int] = None) -> str:
    """
    Build the display identifier of a quote or invoice.

    Example:
        >>> format_document_identifier("Q", 42, 2025)
        'Q-2025-000042'
    """
    year = year or datetime.utcnow().year
    return f"{prefix}-{year}-{number:06d}"


class Quote(Base):
    """
    Quote model.

    Attributes:
        quote_number: Sequential business number, unique
        quote_identifier: Display code, e.g. Q-2025-000001
        quote_file_url: URL of the generated PDF once sent
        language: Language of the document and its email
        quote_date: Date printed on the quote
        quote_valid_until: Last day the offer holds
        items: Line items (name, description, quantity, price_excl_tax, tax)
        status: Lifecycle status
    """

    __tablename__ = "quotes"

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

    quote_number: Mapped[int] = Column(
        Integer,
        nullable=False,
        unique=True,
        comment="Sequential business number",
    )
    quote_identifier: Mapped[str] = Column(String(32), nullable=False, index=True)
    quote_file_url: Mapped[Optional[str]] = Column(String(2048), nullable=True)

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

    quote_date: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    quote_valid_until: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)

    items: Mapped[list] = Column(JSON, nullable=False, default=list)

    status: Mapped[QuoteStatus] = Column(
        SQLEnum(
            QuoteStatus,
            name="quote_status",
            create_type=False,
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=QuoteStatus.DRAFT,
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
        """Only draft quotes may have their items or dates changed."""
        return self.status == QuoteStatus.DRAFT

    def __repr__(self) -> str:
        return f"<Quote(id={self.id}, number={self.quote_number}, status={self.status})>"
