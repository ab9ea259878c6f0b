# backend/tests/routers/test_error_handling.py
"""
Integration tests for error handling across the API.

These tests verify:
- Consistent error response format (ErrorDetail schema)
- Correct HTTP status codes for authentication failures
- Validation error details
- Service exceptions mapped by the global handlers
"""

from datetime import timedelta

from fintrack.services.auth.jwt_handler import JWTHandler
from fintrack.services.exceptions import FXRateNotFoundError
from tests.conftest import create_asset, create_holding, create_portfolio, create_user, get_auth_headers


def assert_error_format(body: dict) -> None:
    assert set(body) == {"error", "message", "details"}
    assert isinstance(body["error"], str)
    assert isinstance(body["message"], str)


class TestAuthenticationErrors:
    """401 responses."""

    def test_missing_token(self, client):
        response = client.get("/portfolios")

        assert response.status_code == 401
        body = response.json()
        assert_error_format(body)
        assert body["error"] == "UnauthorizedError"
        assert body["message"] == "Not authenticated"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, client):
        response = client.get("/portfolios", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 401
        assert_error_format(response.json())

    def test_expired_token(self, client, db):
        user = create_user(db)
        token = JWTHandler.create_access_token(
            user_id=user.id,
            email=user.email,
            expires_delta=timedelta(seconds=-10),
        )

        response = client.get("/portfolios", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Token has expired"

    def test_unknown_user(self, client):
        token = JWTHandler.create_access_token(user_id=4242, email="ghost@example.com")

        response = client.get("/portfolios", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["message"] == "User not found"

    def test_inactive_user(self, client, db):
        user = create_user(db, is_active=False)

        response = client.get("/portfolios", headers=get_auth_headers(user))

        assert response.status_code == 401
        assert response.json()["message"] == "User account is inactive"


class TestRequestValidationErrors:
    """422 responses."""

    def test_validation_error_format(self, client, db):
        user = create_user(db)

        response = client.post("/portfolios", json={}, headers=get_auth_headers(user))

        assert response.status_code == 422
        body = response.json()
        assert body["error"] == "ValidationError"
        assert body["message"] == "Request validation failed"
        assert body["details"][0]["field"] == "body.name"
        assert {"field", "message", "type"} <= set(body["details"][0])

    def test_non_integer_path_parameter(self, client, db):
        user = create_user(db)

        response = client.get("/portfolios/abc", headers=get_auth_headers(user))

        assert response.status_code == 422


class TestServiceErrors:
    """Service exceptions mapped by the global handlers."""

    def test_fx_error_is_service_unavailable(self, client, db, stub_fx, monkeypatch):
        user = create_user(db)
        portfolio = create_portfolio(db, user)
        create_holding(db, portfolio, create_asset(db, symbol="AAPL", currency="USD"))

        def fail(currencies):
            raise FXRateNotFoundError("USD", "EUR")

        monkeypatch.setattr(stub_fx, "build_rate_table", fail)

        response = client.get(
            f"/portfolios/{portfolio.id}/performance",
            headers=get_auth_headers(user),
        )

        assert response.status_code == 503
        body = response.json()
        assert_error_format(body)
        assert body["error"] == "FXRateNotFoundError"
        assert body["details"] == {"base_currency": "USD", "quote_currency": "EUR"}

    def test_unknown_route(self, client):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"
