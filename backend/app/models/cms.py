"""
Headless CMS models.

WHAT: Pages, fields, splits (A/B variants) and per-language field values.

WHY: A customer's site registers the content slots it renders (fields)
per page; editors then fill in values per language. Splits are project-wide
variants whose value rows only hold the languages that differ from the
default row, so storage grows with actual customization.

HOW: A CMSFieldValue with split_id NULL is the default row for a field on a
page. At most one row exists per (field, page, split). A unique constraint
covers split rows; since NULLs compare distinct, a partial unique index
covers the default rows.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin


class CMSPage(Base, PrimaryKeyMixin, TimestampMixin):
    """A page of a customer's site, identified by slug within a project."""

    __tablename__ = "cms_pages"

    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, index=True)
    project_id = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    listening_mode = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<CMSPage(id={self.id}, slug={self.slug})>"


class CMSField(Base, PrimaryKeyMixin, TimestampMixin):
    """A content slot on a page. default_value is the free-text fallback."""

    __tablename__ = "cms_fields"
    __table_args__ = (UniqueConstraint("cms_page_id", "key", name="uq_cms_fields_page_key"),)

    cms_page_id = Column(
        Integer,
        ForeignKey("cms_pages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    key = Column(String(255), nullable=False)
    default_value = Column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return f"<CMSField(id={self.id}, key={self.key})>"


class CMSSplit(Base, PrimaryKeyMixin, TimestampMixin):
    """A named content variant applied across every page of a project."""

    __tablename__ = "cms_splits"

    project_id = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    split = Column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<CMSSplit(id={self.id}, split={self.split})>"


class CMSFieldValue(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Language map for one field on one page, for the default or a split.

    value maps language code to string (or null when cleared).
    """

    __tablename__ = "cms_field_values"
    __table_args__ = (
        UniqueConstraint("cms_field_id", "page_id", "split_id", name="uq_cms_field_values_field_page_split"),
        Index(
            "uq_cms_field_values_field_page_default",
            "cms_field_id",
            "page_id",
            unique=True,
            postgresql_where=text("split_id IS NULL"),
            sqlite_where=text("split_id IS NULL"),
        ),
    )

    cms_field_id = Column(
        Integer,
        ForeignKey("cms_fields.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    page_id = Column(
        Integer,
        ForeignKey("cms_pages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    split_id = Column(
        Integer,
        ForeignKey("cms_splits.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    value = Column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<CMSFieldValue(field={self.cms_field_id}, split={self.split_id})>"
