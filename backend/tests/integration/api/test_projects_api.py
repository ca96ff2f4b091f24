"""
Integration tests for the project endpoints.

WHY: Staff responses carry the CMS and Smart Objects keys; customer
responses must never include them.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.project_service import CMS_KEY_PREFIX, SMART_OBJECTS_KEY_PREFIX
from tests.factories import PortalBuilder, ProjectFactory, auth_headers


class TestStaffProjects:
    @pytest.mark.asyncio
    async def test_create_project(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)

        response = await client.post(
            "/api/projects",
            json={
                "organization_id": portal.organization.id,
                "name": "Webshop",
                "contact_information_id": portal.contact.id,
                "enable_cms": True,
            },
            headers=auth_headers(portal.admin),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["phase"] == "planning"
        assert data["progress"] == 5
        assert data["enable_cms"] is True
        assert data["cms_key"] is None

        files = await client.get(
            "/api/files", params={"project_id": data["id"]}, headers=auth_headers(portal.admin)
        )
        assert sorted(f["name"] for f in files.json()) == ["/invoices", "/public", "/quotes"]

    @pytest.mark.asyncio
    async def test_create_with_unknown_contact(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)

        response = await client.post(
            "/api/projects",
            json={"organization_id": portal.organization.id, "name": "x", "contact_information_id": 9999},
            headers=auth_headers(portal.admin),
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Contact information not found"

    @pytest.mark.asyncio
    async def test_customer_cannot_create(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)

        response = await client.post(
            "/api/projects",
            json={
                "organization_id": portal.organization.id,
                "name": "x",
                "contact_information_id": portal.contact.id,
            },
            headers=auth_headers(portal.customer),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_progress_and_delete(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        headers = auth_headers(portal.admin)
        url = f"/api/projects/{portal.project.id}"

        patched = await client.patch(url, json={"name": "", "url": "https://new.example"}, headers=headers)
        progressed = await client.put(f"{url}/progress", json={"progress": 80, "phase": "testing"}, headers=headers)
        deleted = await client.delete(url, headers=headers)
        missing = await client.get(url, headers=headers)

        assert patched.json()["name"] == "Test Project"
        assert patched.json()["url"] == "https://new.example"
        assert (progressed.json()["progress"], progressed.json()["phase"]) == (80, "testing")
        assert deleted.status_code == 204
        assert missing.status_code == 404

    @pytest.mark.asyncio
    async def test_progress_out_of_range(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)

        response = await client.put(
            f"/api/projects/{portal.project.id}/progress",
            json={"progress": 120},
            headers=auth_headers(portal.admin),
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_keys(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        headers = auth_headers(portal.admin)
        url = f"/api/projects/{portal.project.id}"

        cms = await client.post(f"{url}/cms-key", headers=headers)
        so = await client.post(
            f"{url}/smart-objects-key", json={"smart_objects_url": "https://proxy.example"}, headers=headers
        )
        moved = await client.put(
            f"{url}/smart-objects-url", json={"smart_objects_url": "https://proxy2.example"}, headers=headers
        )

        assert cms.json()["cms_key"].startswith(CMS_KEY_PREFIX)
        assert so.json()["smart_objects_key"].startswith(SMART_OBJECTS_KEY_PREFIX)
        assert moved.json()["smart_objects_key"] == so.json()["smart_objects_key"]
        assert moved.json()["smart_objects_url"] == "https://proxy2.example"


class TestProjectListing:
    @pytest.mark.asyncio
    async def test_admin_lists_everything(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        await ProjectFactory.create(db_session, portal.other_organization, name="Elsewhere")

        response = await client.get("/api/projects", headers=auth_headers(portal.admin))

        assert len(response.json()) == 2

    @pytest.mark.asyncio
    async def test_member_lists_own_organization(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session, cms_key="SLEADS-CMS-secret")
        await ProjectFactory.create(db_session, portal.other_organization, name="Elsewhere")

        response = await client.get(
            "/api/projects",
            params={"organization_id": portal.organization.id},
            headers=auth_headers(portal.customer),
        )

        assert response.status_code == 200
        [project] = response.json()
        assert project["id"] == portal.project.id
        assert "cms_key" not in project

    @pytest.mark.asyncio
    async def test_customer_without_scope_is_rejected(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)

        response = await client.get("/api/projects", headers=auth_headers(portal.customer))

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_outsider_scope_is_rejected(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)

        response = await client.get(
            "/api/projects",
            params={"organization_id": portal.organization.id},
            headers=auth_headers(portal.outsider),
        )

        assert response.status_code == 403


class TestMemberProjects:
    @pytest.mark.asyncio
    async def test_get_organization_project(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session, cms_key="SLEADS-CMS-secret")

        response = await client.get(
            f"/api/organizations/{portal.organization.id}/projects/{portal.project.id}",
            headers=auth_headers(portal.customer),
        )

        assert response.status_code == 200
        assert "cms_key" not in response.json()

    @pytest.mark.asyncio
    async def test_project_of_another_organization(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        foreign = await ProjectFactory.create(db_session, portal.other_organization)

        response = await client.get(
            f"/api/organizations/{portal.organization.id}/projects/{foreign.id}",
            headers=auth_headers(portal.customer),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_membership_check(self, client: AsyncClient, db_session: AsyncSession):
        portal = await PortalBuilder.create(db_session)
        url = f"/api/projects/{portal.project.id}/membership"

        staff = await client.get(url, headers=auth_headers(portal.admin))
        member = await client.get(url, headers=auth_headers(portal.customer))
        outsider = await client.get(url, headers=auth_headers(portal.outsider))

        assert staff.json() == {"is_member": True}
        assert member.json() == {"is_member": True}
        assert outsider.status_code == 403
