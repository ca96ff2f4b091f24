"""
Database models package.

WHY: Centralizing model imports ensures Alembic can discover all models
for migration generation and makes it easier to import models elsewhere.
"""

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin
from app.models.user import User, UserRole
from app.models.organization import (
    Organization,
    Member,
    MemberRole,
    ContactInformation,
)
from app.models.project import Project
from app.models.file_entry import FileEntry, ContentType
from app.models.cms import CMSPage, CMSField, CMSSplit, CMSFieldValue
from app.models.quote import (
    Quote,
    QuoteStatus,
    DocumentLanguage,
    CUSTOMER_VISIBLE_QUOTE_STATUSES,
)
from app.models.invoice import (
    Invoice,
    InvoiceStatus,
    NOTIFIABLE_INVOICE_STATUSES,
    CUSTOMER_VISIBLE_INVOICE_STATUSES,
)
from app.models.extra_cost import ExtraCost
from app.models.agenda import AgendaItem, AgendaItemType
from app.models.sequence import SequenceCounter
from app.models.task import DeadLetterTask

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "User",
    "UserRole",
    "Organization",
    "Member",
    "MemberRole",
    "ContactInformation",
    "Project",
    "FileEntry",
    "ContentType",
    "CMSPage",
    "CMSField",
    "CMSSplit",
    "CMSFieldValue",
    "Quote",
    "QuoteStatus",
    "DocumentLanguage",
    "CUSTOMER_VISIBLE_QUOTE_STATUSES",
    "Invoice",
    "InvoiceStatus",
    "NOTIFIABLE_INVOICE_STATUSES",
    "CUSTOMER_VISIBLE_INVOICE_STATUSES",
    "ExtraCost",
    "AgendaItem",
    "AgendaItemType",
    "SequenceCounter",
    "DeadLetterTask",
]
