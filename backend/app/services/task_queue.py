"""
Deferred task queue.

WHAT: Named async tasks that run after the request which enqueued them,
with retries and a dead-letter record for tasks that keep failing.

WHY: "Send quote" must not wait for the PDF service and the email
provider, and must not send anything if the request's own transaction
rolls back. Tasks enqueued with a session are therefore held until that
session commits, then handed to the scheduler.

HOW:
    @task_queue.task("generate_pdf_and_upload")
    async def generate(session, kind, document_id): ...

    task_queue.enqueue("generate_pdf_and_upload", session=db,
                       kind="quote", document_id=quote.id)

Each attempt runs in its own session_scope (commit on success, rollback on
error). A failed attempt is rescheduled after retry_delay * attempt seconds;
after max_attempts the task is written to dead_letter_tasks.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from apscheduler.triggers.date import DateTrigger
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.core.config import settings
from app.dao.task import DeadLetterTaskDAO
from app.db.session import AsyncSessionLocal, session_scope
from app.services.scheduler import ensure_scheduler

logger = logging.getLogger(__name__)

TaskFunc = Callable[..., Awaitable[Any]]

PENDING_KEY = "pending_tasks"


class UnknownTaskError(LookupError):
    """Raised when enqueueing a task name nobody registered."""


class TaskQueue:
    """
    Registry of deferred tasks plus the logic to run them.

    Args:
        scheduler: APScheduler instance (defaults to the global one)
        session_factory: Factory for the per-attempt session
        max_attempts: Attempts before a task is dead-lettered
        retry_delay_seconds: Base delay; attempt n waits n times this
    """

    def __init__(
        self,
        scheduler=None,
        session_factory=AsyncSessionLocal,
        max_attempts: Optional[int] = None,
        retry_delay_seconds: Optional[float] = None,
    ):
        self._scheduler = scheduler
        self._session_factory = session_factory
        self.max_attempts = max_attempts or settings.TASK_MAX_ATTEMPTS
        self.retry_delay_seconds = (
            settings.TASK_RETRY_DELAY_SECONDS if retry_delay_seconds is None else retry_delay_seconds
        )
        self._registry: Dict[str, TaskFunc] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def task(self, name: str) -> Callable[[TaskFunc], TaskFunc]:
        """Decorator registering an async function under a task name."""

        def decorator(func: TaskFunc) -> TaskFunc:
            self.register(name, func)
            return func

        return decorator

    def register(self, name: str, func: TaskFunc) -> None:
        if name in self._registry and self._registry[name] is not func:
            logger.warning(f"Task '{name}' re-registered")
        self._registry[name] = func

    def get(self, name: str) -> TaskFunc:
        try:
            return self._registry[name]
        except KeyError:
            raise UnknownTaskError(name) from None

    @property
    def registered(self) -> List[str]:
        return sorted(self._registry)

    # ------------------------------------------------------------------
    # Enqueueing
    # ------------------------------------------------------------------

    def enqueue(self, name: str, session: Optional[AsyncSession] = None, **payload: Any) -> None:
        """
        Schedule a task.

        Args:
            name: Registered task name
            session: When given, the task is held until this session commits
                and dropped if it rolls back
            **payload: Keyword arguments for the task function (JSON-safe)
        """
        self.get(name)

        if session is None:
            self._schedule(name, payload, attempt=1)
            return

        pending = session.sync_session.info.setdefault(PENDING_KEY, [])
        pending.append((self, name, payload))
        logger.debug(f"Task '{name}' deferred until commit", extra={"task": name})

    def _schedule(self, name: str, payload: Dict[str, Any], attempt: int, delay: float = 0) -> None:
        scheduler = self._scheduler or ensure_scheduler()
        run_date = datetime.now(timezone.utc) + timedelta(seconds=delay)
        scheduler.add_job(
            self.run_task,
            trigger=DateTrigger(run_date=run_date),
            args=[name, payload, attempt],
            id=f"task:{name}:{uuid.uuid4().hex}",
            name=name,
        )
        logger.info(
            f"Scheduled task '{name}' (attempt {attempt})",
            extra={"task": name, "attempt": attempt, "payload": payload},
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run_task(self, name: str, payload: Dict[str, Any], attempt: int = 1) -> bool:
        """
        Run one attempt of a task.

        Returns:
            True on success, False if the attempt failed (and was retried
            or dead-lettered)
        """
        func = self.get(name)
        logger.info(f"Running task '{name}' (attempt {attempt})", extra={"task": name, "attempt": attempt})

        try:
            async with session_scope(self._session_factory) as session:
                await func(session, **payload)
        except Exception as e:
            await self._handle_failure(name, payload, attempt, e)
            return False

        logger.info(f"Task '{name}' succeeded", extra={"task": name, "attempt": attempt})
        return True

    async def _handle_failure(
        self, name: str, payload: Dict[str, Any], attempt: int, error: Exception
    ) -> None:
        if attempt < self.max_attempts:
            delay = self.retry_delay_seconds * attempt
            logger.warning(
                f"Task '{name}' failed (attempt {attempt}/{self.max_attempts}), "
                f"retrying in {delay}s: {error}",
                extra={"task": name, "attempt": attempt},
            )
            self._schedule(name, payload, attempt + 1, delay=delay)
            return

        logger.error(
            f"Task '{name}' failed after {attempt} attempts, moving to dead letter: {error}",
            exc_info=error,
            extra={"task": name, "attempt": attempt, "payload": payload},
        )
        async with session_scope(self._session_factory) as session:
            await DeadLetterTaskDAO(session).create(
                task_name=name,
                payload=payload,
                error=f"{error.__class__.__name__}: {error}",
                attempts=attempt,
            )


# ============================================================================
# Commit hooks
# ============================================================================


@event.listens_for(Session, "after_commit")
def _dispatch_pending_tasks(session: Session) -> None:
    pending = session.info.pop(PENDING_KEY, None)
    for queue, name, payload in pending or ():
        queue._schedule(name, payload, attempt=1)


@event.listens_for(Session, "after_rollback")
def _discard_pending_tasks(session: Session) -> None:
    pending = session.info.pop(PENDING_KEY, None)
    if pending:
        logger.info(
            f"Discarded {len(pending)} task(s) after rollback",
            extra={"tasks": [name for _, name, _ in pending]},
        )


# Module-level queue shared by the application
task_queue = TaskQueue()


def get_task_queue() -> TaskQueue:
    """FastAPI dependency returning the application task queue."""
    return task_queue
