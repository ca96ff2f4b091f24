"""
File manager entry model.

WHAT: One row per file, text document, link or folder in a project's or an
organization's file manager.

WHY: The file manager is a flat table of slash-delimited paths rather than
a tree of parent pointers. A folder's path is a strict prefix of its
descendants' paths, so "everything under /a" is a prefix query on name and
ancestor lookups are exact-name matches.

HOW: Permission flags live on every row. Whether a customer may act on a
path is decided by app.services.file_permissions, which consults the flags
of the ancestor folders as well as the row itself.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped

from app.models.base import Base


class ContentType(str, Enum):
    """Kind of file manager entry."""

    FILE = "file"  # Binary blob in external storage, referenced by url/storage_id
    URL = "url"  # External link
    TEXT = "text"  # Inline text content, editable in the portal
    FOLDER = "folder"


class FileEntry(Base):
    """
    File manager entry.

    Attributes:
        name: Absolute slash-delimited path, e.g. /public/images/logo.png
        content_type: Kind of entry
        content: Inline content for text entries
        url: Public URL for file and url entries
        storage_id: Opaque pointer into blob storage
        user_can_edit: Customers may edit this entry (and create below it)
        user_can_delete: Customers may delete this entry (and below it)
        project_id: Owning project, or None for the organization bucket
        organization_id: Owning organization
    """

    __tablename__ = "files"

    id: Mapped[int] = Column(Integer, primary_key=True, index=True)

    name: Mapped[str] = Column(
        String(1024),
        nullable=False,
        index=True,
        comment="Absolute slash-delimited path",
    )
    content_type: Mapped[ContentType] = Column(
        SQLEnum(
            ContentType,
            name="file_content_type",
            create_type=False,
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        index=True,
    )
    content: Mapped[Optional[str]] = Column(Text, nullable=True)
    url: Mapped[Optional[str]] = Column(String(2048), nullable=True, index=True)
    storage_id: Mapped[Optional[str]] = Column(String(255), nullable=True)

    user_can_edit: Mapped[bool] = Column(Boolean, nullable=False, default=False)
    user_can_delete: Mapped[bool] = Column(Boolean, nullable=False, default=False)

    project_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    organization_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=True,
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
    def is_folder(self) -> bool:
        return self.content_type == ContentType.FOLDER

    def __repr__(self) -> str:
        return f"<FileEntry(id={self.id}, name={self.name}, type={self.content_type})>"
