"""
Dead-letter record for deferred tasks.

WHY: Deferred tasks run outside the request that enqueued them. When a
task keeps failing (for example the PDF endpoint is down and a quote cannot
leave draft) the failure must outlive the process logs so staff can see
and replay it.
"""

from sqlalchemy import JSON, Column, Integer, String, Text

from app.models.base import Base, TimestampMixin, PrimaryKeyMixin


class DeadLetterTask(Base, PrimaryKeyMixin, TimestampMixin):
    """A deferred task that exhausted its attempts."""

    __tablename__ = "dead_letter_tasks"

    task_name = Column(String(255), nullable=False, index=True)
    payload = Column(JSON, nullable=False, default=dict)
    error = Column(Text, nullable=False)
    attempts = Column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<DeadLetterTask(id={self.id}, task={self.task_name}, attempts={self.attempts})>"
