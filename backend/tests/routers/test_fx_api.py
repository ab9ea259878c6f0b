# backend/tests/routers/test_fx_api.py
"""
Integration tests for GET /fx/rates.
"""

from decimal import Decimal

from tests.conftest import create_user, get_auth_headers


class TestFxRates:
    """Tests for GET /fx/rates."""

    def test_rates(self, client, db):
        user = create_user(db)

        response = client.get("/fx/rates", headers=get_auth_headers(user))

        assert response.status_code == 200
        data = response.json()
        assert data["base_currency"] == "EUR"
        assert Decimal(data["usd_rate"]) == Decimal("0.85")
        assert list(data["rates"]) == ["EUR", "GBP", "USD"]
        assert Decimal(data["rates"]["GBP"]) == Decimal("1.17")

    def test_requires_authentication(self, client):
        response = client.get("/fx/rates")

        assert response.status_code == 401
