"""
Sequence counter Data Access Object.

WHAT: Hands out strictly increasing numbers for quotes and invoices.

WHY: Two documents created at the same moment must never share a number.
The increment is one UPDATE ... RETURNING statement, so the row lock taken
by the database serializes concurrent allocators; the unique constraints
on quote_number and invoice_number back this up.

HOW: The counter row is created on first use with an insert that ignores
conflicts, seeded from the highest number already stored so existing data
keeps counting from where it was.
"""

from sqlalchemy import update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.base import BaseDAO
from app.models.sequence import SequenceCounter

QUOTE_SEQUENCE = "quote"
INVOICE_SEQUENCE = "invoice"

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SequenceDAO(BaseDAO[SequenceCounter]):
    """Data Access Object for SequenceCounter model."""

    def __init__(self, session: AsyncSession):
        super().__init__(SequenceCounter, session)

    async def ensure_counter(self, name: str, seed: int = 0) -> None:
        """
        Create the counter row if it does not exist yet.

        Args:
            name: Sequence name
            seed: Starting value (last number already used)
        """
        dialect = self.session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Sequence counters are not supported on {dialect}")

        await self.session.execute(
            insert(SequenceCounter)
            .values(name=name, value=seed)
            .on_conflict_do_nothing(index_elements=["name"])
        )

    async def next_value(self, name: str, seed: int = 0) -> int:
        """
        Atomically increment a counter and return the new value.

        Args:
            name: Sequence name
            seed: Last number already used, applied only when the counter
                is created

        Returns:
            The allocated number (1 for a fresh, unseeded sequence)
        """
        await self.ensure_counter(name, seed)
        result = await self.session.execute(
            update(SequenceCounter)
            .where(SequenceCounter.name == name)
            .values(value=SequenceCounter.value + 1)
            .returning(SequenceCounter.value)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one()
