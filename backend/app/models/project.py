"""
Project model for client projects.

WHAT: SQLAlchemy model representing a website or app built for an organization.

WHY: Projects are the central business entity that:
1. Own a file manager bucket, a headless CMS and the billing documents
2. Carry the per-project CMS key and Smart Objects key used by the
   customer's own site to call the public endpoints
3. Expose progress and phase to the customer dashboard

HOW: Organization-scoped model. Deleting a project cascades to its files,
CMS pages, splits, quotes and invoices at the database level.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped

from app.models.base import Base

# WHY: New projects start in planning with a little progress so the
# customer dashboard never shows an empty bar
DEFAULT_PROJECT_PHASE = "planning"
DEFAULT_PROJECT_PROGRESS = 5


class Project(Base):
    """
    Client project model.

    Attributes:
        id: Primary key
        organization_id: Organization that owns this project
        name: Project name
        description: Free-text description
        url: Public URL of the delivered site
        cms_key: Secret the customer's site uses to register CMS fields
        cms_is_listening: Whether CMS field registration is currently open
        selected_languages: Language codes the CMS stores values for
        smart_objects_key: Key for the Smart Objects proxy
        smart_objects_url: Target URL of the Smart Objects proxy
        enable_smart_objects: Feature flag for Smart Objects
        enable_cms: Feature flag for the CMS
        progress: Percentage shown on the dashboard
        phase: Free-form phase label (planning, design, development, ...)
        contact_information_id: Billing contact for quotes and invoices
    """

    __tablename__ = "projects"

    id: Mapped[int] = Column(Integer, primary_key=True, index=True)

    organization_id: Mapped[int] = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Organization that owns this project",
    )

    name: Mapped[str] = Column(String(255), nullable=False, index=True)
    description: Mapped[str] = Column(Text, nullable=False, default="")
    url: Mapped[Optional[str]] = Column(String(1024), nullable=True)

    # CMS
    cms_key: Mapped[Optional[str]] = Column(
        String(255),
        nullable=True,
        unique=True,
        comment="Secret used by the customer's site to register CMS fields",
    )
    cms_is_listening: Mapped[bool] = Column(Boolean, nullable=False, default=False)
    selected_languages: Mapped[Optional[list]] = Column(
        JSON,
        nullable=True,
        comment="Language codes the CMS stores values for",
    )
    enable_cms: Mapped[bool] = Column(Boolean, nullable=False, default=False)

    # Smart Objects
    smart_objects_key: Mapped[Optional[str]] = Column(String(255), nullable=True)
    smart_objects_url: Mapped[Optional[str]] = Column(String(1024), nullable=True)
    enable_smart_objects: Mapped[bool] = Column(Boolean, nullable=False, default=False)

    # Dashboard
    progress: Mapped[int] = Column(Integer, nullable=False, default=DEFAULT_PROJECT_PROGRESS)
    phase: Mapped[str] = Column(String(64), nullable=False, default=DEFAULT_PROJECT_PHASE)

    contact_information_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("contact_information.id", ondelete="SET NULL"),
        nullable=True,
        comment="Billing contact for quotes and invoices",
    )

    created_at: Mapped[datetime] = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"<Project(id={self.id}, name={self.name}, org={self.organization_id})>"
