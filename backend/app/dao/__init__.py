"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from app.dao.base import BaseDAO
from app.dao.user import UserDAO
from app.dao.organization import OrganizationDAO, MemberDAO, ContactInformationDAO
from app.dao.project import ProjectDAO
from app.dao.file_entry import FileEntryDAO
from app.dao.cms import CMSPageDAO, CMSFieldDAO, CMSSplitDAO, CMSFieldValueDAO
from app.dao.quote import QuoteDAO
from app.dao.invoice import InvoiceDAO
from app.dao.extra_cost import ExtraCostDAO
from app.dao.agenda import AgendaItemDAO
from app.dao.sequence import SequenceDAO, QUOTE_SEQUENCE, INVOICE_SEQUENCE
from app.dao.task import DeadLetterTaskDAO

__all__ = [
    "BaseDAO",
    "UserDAO",
    "OrganizationDAO",
    "MemberDAO",
    "ContactInformationDAO",
    "ProjectDAO",
    "FileEntryDAO",
    "CMSPageDAO",
    "CMSFieldDAO",
    "CMSSplitDAO",
    "CMSFieldValueDAO",
    "QuoteDAO",
    "InvoiceDAO",
    "ExtraCostDAO",
    "AgendaItemDAO",
    "SequenceDAO",
    "QUOTE_SEQUENCE",
    "INVOICE_SEQUENCE",
    "DeadLetterTaskDAO",
]
