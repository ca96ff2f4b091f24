"""
Tests for the exception hierarchy and the two error envelopes.

WHY: The portal frontend shows exc.message in a toast and matches on the
structured body, while customer sites calling the public endpoints expect
a flat {"error": message}. These tests ensure:
1. Exceptions serialize correctly without leaking keys or secrets
2. HTTP status codes map correctly
3. Each path family gets its own error body
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from app.core.exceptions import (
    AppException,
    AuthenticationError,
    AuthorizationError,
    DocumentGenerationError,
    EmailServiceError,
    InvalidAPIKeyError,
    InvalidRequestError,
    InvalidStateTransitionError,
    PermissionDeniedError,
    ResourceAlreadyExistsError,
    ResourceNotFoundError,
    TokenExpiredError,
    ValidationError,
)
from app.core.exception_handlers import register_exception_handlers


class TestAppException:
    """Test base AppException class."""

    def test_default_message(self):
        exc = AppException()
        assert exc.message == "An unexpected error occurred"
        assert exc.status_code == 500

    def test_custom_message_and_status(self):
        exc = AppException(message="Custom error message", status_code=418)
        assert exc.message == "Custom error message"
        assert exc.status_code == 418
        assert str(exc) == "Custom error message"

    def test_to_dict(self):
        exc = AppException(message="Test error", project_id=3)

        assert exc.to_dict() == {
            "error": "AppException",
            "message": "Test error",
            "status_code": 500,
            "details": {"project_id": 3},
        }

    def test_to_dict_filters_keys_and_secrets(self):
        """
        Verify key material never reaches a response body.

        WHY: CMS keys and Smart Objects keys end up in exception context
        when a check fails.
        """
        exc = ValidationError(
            message="Invalid CMS key",
            project_id=1,
            cms_key="SLEADS-CMS-abc",
            api_key="key123",
            token="abc",
            password="hunter22",
        )

        details = exc.to_dict()["details"]

        assert details == {"project_id": 1}

    def test_to_dict_no_context(self):
        assert AppException(message="Test error").to_dict()["details"] is None


class TestStatusCodes:
    """Status code of every exception family."""

    @pytest.mark.parametrize(
        "exc_class, status_code",
        [
            (AuthenticationError, 401),
            (TokenExpiredError, 401),
            (InvalidAPIKeyError, 401),
            (AuthorizationError, 403),
            (PermissionDeniedError, 403),
            (ValidationError, 400),
            (InvalidRequestError, 400),
            (InvalidStateTransitionError, 400),
            (ResourceNotFoundError, 404),
            (ResourceAlreadyExistsError, 409),
            (DocumentGenerationError, 502),
            (EmailServiceError, 502),
        ],
    )
    def test_status_code(self, exc_class, status_code):
        assert exc_class().status_code == status_code

    def test_authorization_message_is_generic(self):
        """
        Role and membership failures all read "Unauthorized".

        WHY: The caller should not learn which check rejected them.
        """
        assert AuthorizationError().message == "Unauthorized"

    def test_document_generation_is_external(self):
        assert issubclass(DocumentGenerationError, AppException)
        assert DocumentGenerationError().message == "Failed to generate PDF"


class Payload(BaseModel):
    quantity: int


class TestErrorEnvelopes:
    """Exception handlers on a minimal app with a portal and a public route."""

    @pytest.fixture
    def client(self):
        app = FastAPI()
        register_exception_handlers(app)

        @app.get("/api/things/{thing_id}")
        async def portal_thing(thing_id: int):
            raise ResourceNotFoundError(message="Thing not found", thing_id=thing_id)

        @app.post("/api/things")
        async def portal_create(payload: Payload):
            return payload

        @app.get("/cms/get-fields/")
        async def public_fields():
            raise InvalidRequestError()

        @app.post("/create-dynamic-table-data/{table}")
        async def public_create(table: str, payload: Payload):
            return payload

        @app.get("/get-object/{object_id}")
        async def public_object(object_id: str):
            raise DocumentGenerationError(message="Upstream exploded")

        @app.get("/delete-object/{object_id}")
        async def public_crash(object_id: str):
            raise RuntimeError("database is locked")

        return TestClient(app, raise_server_exceptions=False)

    def test_portal_error_is_structured(self, client):
        response = client.get("/api/things/5")

        assert response.status_code == 404
        assert response.json() == {
            "error": "ResourceNotFoundError",
            "message": "Thing not found",
            "status_code": 404,
            "details": {"thing_id": 5},
        }

    def test_portal_validation_error_lists_fields(self, client):
        response = client.post("/api/things", json={"quantity": "many"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "ValidationError"
        assert data["details"]["errors"][0]["field"] == "body.quantity"

    def test_public_error_is_flat(self, client):
        """
        Public endpoints answer {"error": message} only.

        WHY: Customer site SDKs read body.error directly.
        """
        response = client.get("/cms/get-fields/")

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request"}

    def test_public_validation_error_is_invalid_request(self, client):
        response = client.post("/create-dynamic-table-data/projects", json={"quantity": "many"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid request"}

    def test_public_server_error_carries_message(self, client):
        response = client.get("/get-object/projects:1")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "message": "Upstream exploded"}

    def test_public_unhandled_exception(self, client):
        response = client.get("/delete-object/projects:1")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "message": "database is locked"}

    def test_public_unknown_route_is_flat(self, client):
        response = client.get("/cms/nothing-here")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}
