"""
Tests for the deferred task queue.

WHY: Tasks enqueued inside a request must run only if that request
commits, and a task that keeps failing must end up in dead_letter_tasks
instead of retrying forever.

HOW: A real TaskQueue with a FakeScheduler; jobs handed to the scheduler
are inspected and run by hand.
"""

import pytest
from apscheduler.triggers.date import DateTrigger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.task import DeadLetterTask
from app.services.task_queue import PENDING_KEY, TaskQueue, UnknownTaskError
from tests.factories import OrganizationFactory
from tests.fakes import FakeScheduler


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def queue(scheduler, session_factory) -> TaskQueue:
    queue = TaskQueue(
        scheduler=scheduler,
        session_factory=session_factory,
        max_attempts=2,
        retry_delay_seconds=0,
    )
    queue.calls = []

    @queue.task("record")
    async def record(session, value):
        queue.calls.append(value)

    @queue.task("explode")
    async def explode(session, value):
        raise RuntimeError(f"boom {value}")

    return queue


class TestRegistration:
    def test_registered_names(self, queue):
        assert queue.registered == ["explode", "record"]

    def test_unknown_task(self, queue):
        with pytest.raises(UnknownTaskError):
            queue.enqueue("missing", value=1)

        with pytest.raises(UnknownTaskError):
            queue.get("missing")


class TestEnqueue:
    def test_without_session_schedules_immediately(self, queue, scheduler):
        queue.enqueue("record", value=1)

        [job] = scheduler.jobs
        assert job["func"] == queue.run_task
        assert job["args"] == ["record", {"value": 1}, 1]
        assert job["name"] == "record"
        assert job["id"].startswith("task:record:")
        assert isinstance(job["trigger"], DateTrigger)

    @pytest.mark.asyncio
    async def test_held_until_commit(self, queue, scheduler, db_session: AsyncSession):
        """
        WHY: The quote must be saved before its PDF task can find it.
        """
        queue.enqueue("record", session=db_session, value=2)

        assert scheduler.jobs == []
        assert len(db_session.sync_session.info[PENDING_KEY]) == 1

        await OrganizationFactory.create(db_session)

        assert [job["args"] for job in scheduler.jobs] == [["record", {"value": 2}, 1]]
        assert PENDING_KEY not in db_session.sync_session.info

    @pytest.mark.asyncio
    async def test_discarded_on_rollback(self, queue, scheduler, db_session: AsyncSession):
        await OrganizationFactory.create(db_session)
        # Open a transaction so the rollback reaches the database
        await db_session.execute(select(DeadLetterTask))
        queue.enqueue("record", session=db_session, value=3)

        await db_session.rollback()
        await db_session.commit()

        assert scheduler.jobs == []


class TestRunTask:
    @pytest.mark.asyncio
    async def test_success(self, queue, scheduler):
        assert await queue.run_task("record", {"value": 4}) is True
        assert queue.calls == [4]
        assert scheduler.jobs == []

    @pytest.mark.asyncio
    async def test_failure_is_retried(self, queue, scheduler):
        assert await queue.run_task("explode", {"value": 5}, attempt=1) is False

        [job] = scheduler.jobs
        assert job["args"] == ["explode", {"value": 5}, 2]

    @pytest.mark.asyncio
    async def test_last_attempt_goes_to_dead_letter(self, queue, scheduler, session_factory):
        assert await queue.run_task("explode", {"value": 6}, attempt=2) is False

        assert scheduler.jobs == []
        async with session_factory() as session:
            [dead] = (await session.execute(select(DeadLetterTask))).scalars().all()
        assert dead.task_name == "explode"
        assert dead.payload == {"value": 6}
        assert dead.error == "RuntimeError: boom 6"
        assert dead.attempts == 2
