"""
Tests for the CMS field value table.

WHY: At most one value row may exist per (field, page, split), default row
included. Reads merge every row they find, so a second row for the same
slot would keep overriding after its twin was removed.
"""

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.dao.cms import CMSFieldValueDAO
from tests.factories import CMSFactory, PortalBuilder


class TestCMSFieldValueUniqueness:
    @pytest.mark.asyncio
    async def test_second_default_row_is_rejected(self, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        page = await CMSFactory.page(db_session, portal.project)
        field = await CMSFactory.field(db_session, page, "title")
        await CMSFactory.value(db_session, field, {"en": "Hello"})

        with pytest.raises(IntegrityError):
            await CMSFieldValueDAO(db_session).create(
                cms_field_id=field.id, page_id=page.id, split_id=None, value={"en": "Again"}
            )

    @pytest.mark.asyncio
    async def test_second_split_row_is_rejected(self, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        page = await CMSFactory.page(db_session, portal.project)
        field = await CMSFactory.field(db_session, page, "title")
        split = await CMSFactory.split(db_session, portal.project)
        await CMSFactory.value(db_session, field, {"en": "Hi"}, split=split)

        with pytest.raises(IntegrityError):
            await CMSFieldValueDAO(db_session).create(
                cms_field_id=field.id, page_id=page.id, split_id=split.id, value={"en": "Hey"}
            )

    @pytest.mark.asyncio
    async def test_default_and_split_rows_coexist(self, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        page = await CMSFactory.page(db_session, portal.project)
        field = await CMSFactory.field(db_session, page, "title")
        split_a = await CMSFactory.split(db_session, portal.project, name="a")
        split_b = await CMSFactory.split(db_session, portal.project, name="b")

        await CMSFactory.value(db_session, field, {"en": "Hello"})
        await CMSFactory.value(db_session, field, {"en": "A"}, split=split_a)
        await CMSFactory.value(db_session, field, {"en": "B"}, split=split_b)

        dao = CMSFieldValueDAO(db_session)
        assert len(await dao.get_for_page(page.id, None)) == 1
        assert len(await dao.get_for_page(page.id, split_a.id)) == 1
        assert len(await dao.get_for_page(page.id, split_b.id)) == 1
