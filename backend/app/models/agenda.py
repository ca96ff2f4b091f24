"""
Project agenda model.

WHAT: Meetings, deliverables and other dated events on a project's
calendar, shared between the agency and the customer.

WHY: Both sides plan on the same agenda. Items the agency puts there are
commitments, so customers may add their own items but cannot change or
remove the agency's.
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


class AgendaItemType(str, Enum):
    MEETING = "meeting"
    DELIVERABLE = "deliverable"
    CANCELLED = "cancelled"
    OTHER = "other"


class AgendaItem(Base):
    """
    Agenda item of a project.

    Attributes:
        created_by_admin: Created by agency staff; customers may not edit it
        location: Where a meeting takes place
        teams_link: Online meeting link
    """

    __tablename__ = "project_agenda_items"

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

    title: Mapped[str] = Column(String(255), nullable=False)
    description: Mapped[str] = Column(Text, nullable=False, default="")
    start_date: Mapped[datetime] = Column(DateTime, nullable=False)
    end_date: Mapped[datetime] = Column(DateTime, nullable=False)
    created_by_admin: Mapped[bool] = Column(Boolean, nullable=False, default=False)
    location: Mapped[Optional[str]] = Column(String(512), nullable=True)
    teams_link: Mapped[Optional[str]] = Column(String(2048), nullable=True)

    type: Mapped[AgendaItemType] = Column(
        SQLEnum(
            AgendaItemType,
            name="agenda_item_type",
            create_type=False,
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=AgendaItemType.OTHER,
    )

    created_at: Mapped[datetime] = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    def __repr__(self) -> str:
        return f"<AgendaItem(id={self.id}, project_id={self.project_id}, type={self.type})>"
