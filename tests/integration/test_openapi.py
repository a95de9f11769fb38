"""
Integration tests for OpenAPI documentation.

Verifies the OpenAPI schema is generated for every installed route family.
"""

import pytest
from fastapi.testclient import TestClient

CONFIRM_PATH = "/confirm-user-registration/{username}/{registration_key}"


@pytest.fixture
def schema(client: TestClient) -> dict:
    response = client.get("/openapi.json")
    assert response.status_code == 200
    return response.json()


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_title_and_version(self, schema: dict) -> None:
        assert schema["info"]["title"] == "regflow"
        assert "reCAPTCHA" in schema["info"]["description"]
        assert schema["info"]["version"] == "0.1.0"

    def test_register_endpoint_in_schema(self, schema: dict) -> None:
        register = schema["paths"]["/register-user"]

        assert register["post"]["summary"] == "Register a new user"
        assert {"201", "400", "409"} <= set(register["post"]["responses"])

    def test_confirm_endpoint_in_schema(self, schema: dict) -> None:
        confirm = schema["paths"][CONFIRM_PATH]

        assert confirm["get"]["summary"] == "Confirm a pending registration"
        names = [p["name"] for p in confirm["get"]["parameters"]]
        assert names == ["username", "registration_key"]

    def test_session_endpoints_in_schema(self, schema: dict) -> None:
        assert "get" in schema["paths"]["/session"]
        assert "post" in schema["paths"]["/logout"]

    def test_register_request_uses_wire_names(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["RegisterRequest"]["properties"]

        assert {"email", "username", "password", "reCaptchaResponse"} <= set(props)

    def test_error_response_schema(self, schema: dict) -> None:
        assert "ErrorResponse" in schema["components"]["schemas"]

    def test_routes_tagged_by_family(self, schema: dict) -> None:
        tag_names = [t["name"] for t in schema.get("tags", [])]

        assert tag_names == ["registration", "session"]
        assert schema["paths"]["/register-user"]["post"]["tags"] == ["registration"]
        assert schema["paths"][CONFIRM_PATH]["get"]["tags"] == ["registration"]
        assert schema["paths"]["/logout"]["post"]["tags"] == ["session"]


class TestSwaggerUI:
    """Tests for Swagger UI availability."""

    def test_docs_endpoint_accessible(self, client: TestClient) -> None:
        response = client.get("/docs")
        assert response.status_code == 200
        assert "swagger" in response.text.lower()

    def test_redoc_endpoint_accessible(self, client: TestClient) -> None:
        response = client.get("/redoc")
        assert response.status_code == 200
        assert "redoc" in response.text.lower()
