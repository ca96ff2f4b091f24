"""
Integration tests for the project agenda endpoints.

WHY: Staff items are locked for customers; customer items stay editable
by the customer who shares the organization.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.factories import AgendaFactory, PortalBuilder, ProjectFactory, auth_headers

MEETING = {
    "title": "Design review",
    "description": "Homepage mockups",
    "start_date": "2026-03-02T10:00:00",
    "end_date": "2026-03-02T11:00:00",
    "type": "meeting",
    "teams_link": "https://teams.microsoft.com/l/meetup-join/abc",
}


class TestStaffAgenda:
    @pytest.mark.asyncio
    async def test_staff_item_is_locked_for_customers(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        oid = portal.organization.id

        created = await client.post(
            f"/api/projects/{portal.project.id}/agenda", json=MEETING, headers=auth_headers(portal.admin)
        )
        item_id = created.json()["id"]
        customer_update = await client.patch(
            f"/api/organizations/{oid}/agenda/{item_id}",
            json={"title": "Moved"},
            headers=auth_headers(portal.customer),
        )
        customer_delete = await client.delete(
            f"/api/organizations/{oid}/agenda/{item_id}", headers=auth_headers(portal.customer)
        )
        staff_update = await client.patch(
            f"/api/agenda/{item_id}", json={"title": "Moved"}, headers=auth_headers(portal.admin)
        )

        assert created.status_code == 201
        assert created.json()["created_by_admin"] is True
        assert customer_update.status_code == 403
        assert customer_update.json()["message"] == "Unauthorized: Cannot update admin-created events"
        assert customer_delete.status_code == 403
        assert staff_update.json()["title"] == "Moved"

    @pytest.mark.asyncio
    async def test_end_before_start_is_rejected(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)

        response = await client.post(
            f"/api/projects/{portal.project.id}/agenda",
            json={**MEETING, "end_date": "2026-03-02T09:00:00"},
            headers=auth_headers(portal.admin),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Request validation failed"

    @pytest.mark.asyncio
    async def test_list_by_organization(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        item = await AgendaFactory.create(db_session, portal.project)
        foreign = await ProjectFactory.create(db_session, portal.other_organization)
        await AgendaFactory.create(db_session, foreign)

        response = await client.get(
            "/api/agenda", params={"organization_id": portal.organization.id}, headers=auth_headers(portal.admin)
        )

        assert [i["id"] for i in response.json()] == [item.id]


class TestOrganizationAgenda:
    @pytest.mark.asyncio
    async def test_customer_manages_own_item(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        headers = auth_headers(portal.customer)
        oid = portal.organization.id

        created = await client.post(
            f"/api/organizations/{oid}/projects/{portal.project.id}/agenda", json=MEETING, headers=headers
        )
        item_id = created.json()["id"]
        updated = await client.patch(
            f"/api/organizations/{oid}/agenda/{item_id}",
            json={"type": "cancelled", "title": ""},
            headers=headers,
        )
        listed = await client.get(
            f"/api/organizations/{oid}/agenda", params={"project_id": portal.project.id}, headers=headers
        )
        deleted = await client.delete(f"/api/organizations/{oid}/agenda/{item_id}", headers=headers)
        missing = await client.get(f"/api/organizations/{oid}/agenda/{item_id}", headers=headers)

        assert created.json()["created_by_admin"] is False
        assert updated.json()["type"] == "cancelled"
        assert updated.json()["title"] == "Design review"
        assert [i["id"] for i in listed.json()] == [item_id]
        assert deleted.status_code == 204
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_foreign_project_is_refused(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        foreign = await ProjectFactory.create(db_session, portal.other_organization)

        response = await client.post(
            f"/api/organizations/{portal.organization.id}/projects/{foreign.id}/agenda",
            json=MEETING,
            headers=auth_headers(portal.customer),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_outsider_is_rejected(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)

        response = await client.get(
            f"/api/organizations/{portal.organization.id}/agenda", headers=auth_headers(portal.outsider)
        )

        assert response.status_code == 403
