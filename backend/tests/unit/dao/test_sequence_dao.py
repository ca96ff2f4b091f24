"""
Tests for SequenceDAO.

WHY: Quote and invoice numbers come from these counters. They must
increase by one per call, start after existing data, and be independent
per sequence name.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.sequence import INVOICE_SEQUENCE, QUOTE_SEQUENCE, SequenceDAO


class TestSequenceDAO:
    @pytest.mark.asyncio
    async def test_fresh_sequence_starts_at_one(self, db_session: AsyncSession):
        dao = SequenceDAO(db_session)

        assert await dao.next_value(QUOTE_SEQUENCE) == 1
        assert await dao.next_value(QUOTE_SEQUENCE) == 2

    @pytest.mark.asyncio
    async def test_seed_applies_on_creation_only(self, db_session: AsyncSession):
        """
        The seed is the last number already used; a later, larger seed is
        ignored because the counter row exists.
        """
        dao = SequenceDAO(db_session)

        assert await dao.next_value(INVOICE_SEQUENCE, seed=41) == 42
        assert await dao.next_value(INVOICE_SEQUENCE, seed=500) == 43

    @pytest.mark.asyncio
    async def test_sequences_are_independent(self, db_session: AsyncSession):
        dao = SequenceDAO(db_session)

        await dao.next_value(QUOTE_SEQUENCE)
        await dao.next_value(QUOTE_SEQUENCE)

        assert await dao.next_value(INVOICE_SEQUENCE) == 1
