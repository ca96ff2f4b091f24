"""
Sequence counter model.

WHY: Quote and invoice numbers must be strictly increasing and never
handed out twice. Reading MAX(number) and inserting max + 1 races when two
documents are created at once, so each document type owns a counter row
that is incremented atomically (see app.dao.sequence).
"""

from sqlalchemy import Column, Integer, String

from app.models.base import Base


class SequenceCounter(Base):
    """Last number handed out for one named sequence."""

    __tablename__ = "sequence_counters"

    name = Column(String(64), primary_key=True)
    value = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<SequenceCounter(name={self.name}, value={self.value})>"
