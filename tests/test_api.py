"""
HTTP-level tests for the Saleor auth middleware and debug endpoint.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from saleor_app_auth.config.provider import APLConfig, AppConfig, JWTConfig
from saleor_app_auth.main import create_app
from saleor_app_auth.modules.auth.errors import TokenExpiredError

from conftest import SHOP_URL, dashboard_claims, make_unsigned_token


class StubConfigProvider:
    """In-memory configuration for tests."""

    def __init__(self, debug_endpoint_enabled=True):
        self.app_config = AppConfig(app_env="test", debug_endpoint_enabled=debug_endpoint_enabled)

    def get_apl_config(self) -> APLConfig:
        return APLConfig(backend="file")

    def get_jwt_config(self) -> JWTConfig:
        return JWTConfig()

    def get_app_config(self) -> AppConfig:
        return self.app_config


@pytest.fixture
def verifier():
    verifier = AsyncMock()
    verifier.verify = AsyncMock(return_value={})
    return verifier


@pytest.fixture
def app(file_apl, verifier):
    return create_app(config_provider=StubConfigProvider(), apl=file_apl, verifier=verifier)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def installed(file_apl, shop_auth_data):
    asyncio.run(file_apl.set(shop_auth_data))


def dashboard_headers(token=None, url=SHOP_URL):
    headers = {"saleor-api-url": url}
    if token is not None:
        headers["authorization-bearer"] = token
    return headers


class TestHealth:
    """Test the unauthenticated health check."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["apl_type"] == "file"
        assert body["apl_ready"] is True


class TestMiddleware:
    """Test request authentication at the HTTP boundary."""

    def test_missing_saleor_api_url_is_400(self, client):
        response = client.get("/api/auth/context")

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["code"] == "BAD_REQUEST"
        assert error["reason"] == "missing_saleor_api_url"
        assert error["hint"]

    def test_unknown_tenant_is_401_with_troubleshooting(self, client):
        response = client.get("/api/auth/context", headers=dashboard_headers("jwt"))

        assert response.status_code == 401
        body = response.json()
        assert body["status"] == 401
        error = body["error"]
        assert error["reason"] == "not_installed"
        assert error["message"] == f"No authentication data found for {SHOP_URL}"
        assert error["data"]["original_error"] == f"No credential data found for {SHOP_URL}"
        assert error["data"]["troubleshooting"]

    def test_record_without_url_is_401(self, client, auth_file):
        auth_file.write_text(
            json.dumps({"saleorApiUrl": None, "token": "t", "appId": "a"}), encoding="utf-8"
        )

        response = client.get("/api/auth/context", headers=dashboard_headers("jwt"))

        assert response.status_code == 401
        assert response.json()["error"]["reason"] == "not_installed"

    @pytest.mark.usefixtures("installed")
    def test_missing_token_is_401(self, client, verifier):
        response = client.get("/api/auth/context", headers=dashboard_headers())

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["message"] == "Missing authorization token in request headers"
        verifier.verify.assert_not_called()

    @pytest.mark.usefixtures("installed")
    def test_valid_token_attaches_context(self, client, verifier):
        token = make_unsigned_token(dashboard_claims())

        response = client.get("/api/auth/context", headers=dashboard_headers(token))

        assert response.status_code == 200
        body = response.json()
        assert body["saleor_api_url"] == SHOP_URL
        assert body["app_id"] == "app1"
        assert body["has_app_token"] is True
        assert body["state"] == "validated"
        assert body["email"] == "staff@shop.example"
        assert "MANAGE_APPS" in body["granted_permissions"]
        assert '"t1"' not in response.text
        verifier.verify.assert_called_once()

    @pytest.mark.usefixtures("installed")
    def test_authorization_header_fallback(self, client):
        token = make_unsigned_token(dashboard_claims())

        response = client.get(
            "/api/auth/context",
            headers={"saleor-api-url": SHOP_URL, "Authorization": f"Bearer {token}"},
        )

        assert response.status_code == 200

    @pytest.mark.usefixtures("installed")
    def test_missing_permission_is_403(self, client):
        token = make_unsigned_token(dashboard_claims(user_permissions=["MANAGE_ORDERS"]))

        response = client.get("/api/auth/context", headers=dashboard_headers(token))

        assert response.status_code == 403
        error = response.json()["error"]
        assert error["code"] == "FORBIDDEN"
        assert error["data"]["missing_permissions"] == ["MANAGE_APPS"]

    @pytest.mark.usefixtures("installed")
    def test_expired_token_is_401(self, client, verifier):
        verifier.verify.side_effect = TokenExpiredError("Token is expired")
        token = make_unsigned_token(dashboard_claims())

        response = client.get("/api/auth/context", headers=dashboard_headers(token))

        assert response.status_code == 401
        assert response.json()["error"]["reason"] == "token_expired"

    @pytest.mark.usefixtures("installed")
    def test_unexpected_failure_is_generic_500(self, client, app):
        app.state.pipeline.resolver.apl.get = AsyncMock(side_effect=RuntimeError("db exploded"))

        response = client.get("/api/auth/context", headers=dashboard_headers("jwt"))

        assert response.status_code == 500
        assert "db exploded" not in response.text
        assert response.json()["error"]["code"] == "INTERNAL_SERVER_ERROR"


class TestDebugEndpoint:
    """Test the operator debug endpoint."""

    @pytest.mark.usefixtures("installed")
    def test_get_reports_state(self, client):
        response = client.get("/api/debug/auth", headers={"saleor-api-url": SHOP_URL})

        assert response.status_code == 200
        body = response.json()
        assert body["auth_debug_info"]["auth_data_exists"] is True
        assert body["auth_debug_info"]["auth_data"]["token_length"] == 2
        assert body["apl_health"]["is_healthy"] is True
        assert body["environment"] == {
            "app_env": "test",
            "apl_type": "file",
            "has_secret_key": False,
            "allowed_domain_pattern": None,
        }
        assert '"t1"' not in response.text

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE"])
    def test_other_methods_are_405(self, client, method):
        response = client.request(method, "/api/debug/auth")

        assert response.status_code == 405
        assert response.json() == {"error": "Method not allowed"}

    def test_failure_is_500(self, client, app):
        app.state.debugger.check_apl_health = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get("/api/debug/auth")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Internal server error"
        assert body["message"] == "boom"
        assert body["timestamp"]

    def test_disabled_endpoint_is_protected(self, file_apl, verifier):
        app = create_app(
            config_provider=StubConfigProvider(debug_endpoint_enabled=False),
            apl=file_apl,
            verifier=verifier,
        )

        with TestClient(app) as client:
            response = client.get("/api/debug/auth")

        assert response.status_code == 404
