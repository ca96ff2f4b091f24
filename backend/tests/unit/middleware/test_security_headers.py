"""
Tests for security headers middleware.

WHY: Portal API responses get the strict browser policies. Public
endpoints are fetched cross-origin by customer sites, so they only get the
headers that do not interfere with that.
"""

import pytest
from httpx import AsyncClient

from app.middleware.security_headers import API_HEADERS, BASE_HEADERS


class TestSecurityHeadersMiddleware:
    """Test security headers middleware."""

    @pytest.mark.asyncio
    async def test_api_response_gets_strict_headers(self, client: AsyncClient):
        """
        Portal responses carry HSTS, frame denial and no-store.

        WHY: Error responses count too; a 401 must not be cached or framed.
        """
        response = await client.get("/api/auth/me")

        assert response.status_code == 401
        for name, value in {**BASE_HEADERS, **API_HEADERS}.items():
            assert response.headers[name] == value

    @pytest.mark.asyncio
    async def test_public_response_gets_base_headers_only(self, client: AsyncClient):
        response = await client.get("/get-schema", params={"apiKey": "wrong"})

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "X-Frame-Options" not in response.headers
        assert "Content-Security-Policy" not in response.headers

    @pytest.mark.asyncio
    async def test_health_is_not_an_api_path(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
        assert "Strict-Transport-Security" not in response.headers
