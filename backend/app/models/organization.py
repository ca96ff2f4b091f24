"""
Organization, membership and contact information models.

WHY: Organizations are the tenants of the portal. A user reaches an
organization's projects, files, quotes and invoices only through a Member
row, whose role (owner, admin, member) is independent of the user's
platform-wide role.
"""

from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin


class MemberRole(str, Enum):
    """
    Role of a user within one organization.

    WHY: Stored lowercase because the portal frontend sends and compares
    these exact strings.
    """

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class Organization(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Organization model representing a tenant in the multi-tenant system.

    WHY: Every project, file bucket, quote and invoice is scoped to exactly
    one organization, and every org-scoped query filters on its id.
    """

    __tablename__ = "organizations"

    name = Column(String(255), nullable=False, index=True)
    # WHY: Slugs appear in dashboard URLs
    slug = Column(String(255), nullable=False, unique=True, index=True)
    logo = Column(String(1024), nullable=True)

    members = relationship(
        "Member",
        back_populates="organization",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name})>"


class Member(Base, PrimaryKeyMixin, TimestampMixin):
    """Links a user to an organization with a role."""

    __tablename__ = "members"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_members_organization_user"),
    )

    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(
        SQLEnum(
            MemberRole,
            name="member_role",
            create_type=False,
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=MemberRole.MEMBER,
    )

    organization = relationship("Organization", back_populates="members")

    def __repr__(self) -> str:
        return f"<Member(org={self.organization_id}, user={self.user_id}, role={self.role})>"


class ContactInformation(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Billing contact of an organization.

    WHY: Quotes and invoices are addressed to a project's contact, so each
    project points at one of these records. One record per organization may
    be flagged as the default.
    """

    __tablename__ = "contact_information"

    organization_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    organization_name = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(64), nullable=False, default="")
    address = Column(String(1024), nullable=False, default="")
    # WHY: A contact may optionally be tied to a portal user who is a member
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<ContactInformation(id={self.id}, email={self.email})>"
