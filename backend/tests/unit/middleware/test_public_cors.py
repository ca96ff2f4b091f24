"""
Tests for the public CORS middleware.

WHY: Customer sites on arbitrary origins call the CMS and Smart Objects
endpoints from the browser, while the portal API only trusts
TRUSTED_ORIGINS. Preflights and error responses on public paths must
still carry the open headers.
"""

import pytest
from httpx import AsyncClient

from app.middleware.public_cors import PUBLIC_CORS_HEADERS, is_public_path


class TestIsPublicPath:
    @pytest.mark.parametrize(
        "path",
        [
            "/cms/register",
            "/cms/get-fields/",
            "/get-schema",
            "/get-dynamic-table-data/projects",
            "/get-object/projects:1",
            "/create-dynamic-table-data/projects",
            "/update-object/projects:1",
            "/delete-object/projects:1",
        ],
    )
    def test_public(self, path):
        assert is_public_path(path) is True

    @pytest.mark.parametrize("path", ["/api/projects", "/api/cms/pages/1", "/health", "/"])
    def test_portal(self, path):
        assert is_public_path(path) is False


class TestPublicCORSMiddleware:
    @pytest.mark.asyncio
    async def test_preflight_from_any_origin(self, client: AsyncClient):
        """
        OPTIONS on a public path is answered directly with open CORS.
        """
        response = await client.options(
            "/cms/register",
            headers={
                "Origin": "https://bakery.example",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        for name, value in PUBLIC_CORS_HEADERS.items():
            assert response.headers[name] == value

    @pytest.mark.asyncio
    async def test_error_response_has_cors_headers(self, client: AsyncClient):
        """
        WHY: Without the header the browser hides the error body from the site.
        """
        response = await client.get("/get-schema", params={"apiKey": "wrong"})

        assert response.status_code == 401
        assert response.headers["Access-Control-Allow-Origin"] == "*"

    @pytest.mark.asyncio
    async def test_portal_origin_is_not_opened(self, client: AsyncClient):
        response = await client.get("/api/auth/me", headers={"Origin": "https://evil.example"})

        assert response.headers.get("Access-Control-Allow-Origin") != "*"
