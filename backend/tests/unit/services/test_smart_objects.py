"""
Tests for the Smart Objects passthrough.

WHY: This is generic write access to portal tables. The allowlist, the
"<table>:<id>" addressing, null dropping and the key check are what keep
it safe.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import InvalidAPIKeyError, InvalidRequestError, ValidationError
from app.services.smart_objects import (
    EXPOSED_MODELS,
    SmartObjectsService,
    check_api_key,
    describe_schema,
    parse_object_id,
)
from tests.factories import OrganizationFactory, ProjectFactory


class TestKeyAndIds:
    def test_check_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "SLEADS_SO_KEY", "secret")

        check_api_key("secret")
        for bad in (None, "", "Secret"):
            with pytest.raises(InvalidAPIKeyError):
                check_api_key(bad)

    def test_unconfigured_key_rejects_everything(self, monkeypatch):
        monkeypatch.setattr(settings, "SLEADS_SO_KEY", None)

        with pytest.raises(InvalidAPIKeyError):
            check_api_key("anything")

    def test_parse_object_id(self):
        assert parse_object_id("projects:12") == ("projects", 12)

    @pytest.mark.parametrize("value", ["users:1", "projects", "projects:abc", "members:2", ":3"])
    def test_parse_rejects(self, value):
        with pytest.raises(InvalidRequestError):
            parse_object_id(value)

    def test_allowlist(self):
        assert set(EXPOSED_MODELS) == {
            "organizations",
            "projects",
            "files",
            "cms_pages",
            "cms_fields",
            "cms_splits",
            "cms_field_values",
            "quotes",
            "invoices",
        }

    def test_schema_lists_columns(self):
        schema = describe_schema()

        names = [c["name"] for c in schema["projects"]["columns"]]
        assert "cms_key" in names
        assert "users" not in schema


class TestPaging:
    @pytest.mark.asyncio
    async def test_cursor_walk(self, db_session: AsyncSession):
        for i in range(3):
            await OrganizationFactory.create(db_session, name=f"Org {i}")
        service = SmartObjectsService(db_session)

        first = await service.get_page("organizations", num_items=2)
        second = await service.get_page("organizations", cursor=first["continueCursor"], num_items=2)

        assert first["isDone"] is False
        assert [o["name"] for o in first["page"]] == ["Org 0", "Org 1"]
        assert first["page"][0]["id"].startswith("organizations:")
        assert second["isDone"] is True
        assert [o["name"] for o in second["page"]] == ["Org 2"]

    @pytest.mark.asyncio
    async def test_empty_page_keeps_cursor(self, db_session: AsyncSession):
        page = await SmartObjectsService(db_session).get_page("quotes", cursor="50")

        assert page == {"continueCursor": "50", "isDone": True, "page": []}

    @pytest.mark.asyncio
    async def test_bad_table_or_cursor(self, db_session: AsyncSession):
        service = SmartObjectsService(db_session)

        with pytest.raises(InvalidRequestError):
            await service.get_page("users")
        with pytest.raises(InvalidRequestError):
            await service.get_page("projects", cursor="abc")


class TestObjects:
    @pytest.mark.asyncio
    async def test_create_get_update_delete(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        service = SmartObjectsService(db_session)

        created = await service.create_object(
            "projects",
            {"organization_id": org.id, "name": "Landing page", "description": "", "url": None, "id": 999},
        )
        await service.update_object(created, {"name": "Landing v2", "phase": None})
        fetched = await service.get_object(created)

        assert created.startswith("projects:")
        assert created != "projects:999"
        assert fetched["name"] == "Landing v2"
        assert fetched["phase"] == "planning"

        await service.delete_object(created)
        assert await service.get_object(created) == {}

    @pytest.mark.asyncio
    async def test_enum_and_date_strings_are_converted(self, db_session: AsyncSession):
        org = await OrganizationFactory.create(db_session)
        project = await ProjectFactory.create(db_session, org)
        service = SmartObjectsService(db_session)

        created = await service.create_object(
            "invoices",
            {
                "project_id": project.id,
                "organization_id": org.id,
                "invoice_number": 77,
                "invoice_identifier": "I-2026-000077",
                "items": [],
                "status": "paid",
                "language": "nl",
                "invoice_date": "2026-02-01T10:00:00",
            },
        )
        fetched = await service.get_object(created)

        assert fetched["status"] == "paid"
        assert fetched["invoice_date"] == "2026-02-01T10:00:00"

    @pytest.mark.asyncio
    async def test_unknown_column(self, db_session: AsyncSession):
        with pytest.raises(InvalidRequestError):
            await SmartObjectsService(db_session).create_object("organizations", {"name": "x", "hacked": True})

    @pytest.mark.asyncio
    async def test_bad_enum_value(self, db_session: AsyncSession):
        with pytest.raises(InvalidRequestError):
            await SmartObjectsService(db_session).create_object("quotes", {"status": "approved"})

    @pytest.mark.asyncio
    async def test_update_missing_object(self, db_session: AsyncSession):
        with pytest.raises(ValidationError) as exc_info:
            await SmartObjectsService(db_session).update_object("projects:4242", {"name": "x"})

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Object not found"
