# backend/tests/routers/test_calibration_api.py
"""
Integration tests for calibration endpoints.

- POST   /calibration/set-reference
- GET    /calibration/status
- DELETE /calibration/reset
- GET/PUT/DELETE /calibration/assets[/{asset_id}]
"""

from decimal import Decimal

import pytest

from tests.conftest import (
    create_asset,
    create_holding,
    create_portfolio,
    create_user,
    get_auth_headers,
)


@pytest.fixture
def user(db):
    return create_user(db)


@pytest.fixture
def headers(user):
    return get_auth_headers(user)


@pytest.fixture
def eur_portfolio(db, user):
    """90 x SAP.DE at 100 EUR: raw value 9000.00 EUR."""
    portfolio = create_portfolio(db, user)
    asset = create_asset(db, symbol="SAP.DE", currency="EUR", current_price=Decimal("100"))
    create_holding(db, portfolio, asset, Decimal("90"), Decimal("80"))
    return portfolio


class TestSetReference:
    """Tests for POST /calibration/set-reference."""

    def test_calibrate(self, client, headers, eur_portfolio):
        response = client.post(
            "/calibration/set-reference",
            json={"reference_value": "9972.84"},
            headers=headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["portfolio_id"] == eur_portfolio.id
        assert Decimal(data["calculated_value"]) == Decimal("9000.00")
        assert Decimal(data["adjustment_factor"]) == Decimal("1.1080933333")
        assert data["adjustment_percent"] == "+10.81%"
        assert data["message"] == "Calibration saved: EUR prices adjusted by +10.81%"

    def test_portfolio_values_to_reference_afterwards(self, client, headers, eur_portfolio):
        client.post("/calibration/set-reference", json={"reference_value": "9972.84"}, headers=headers)

        response = client.get(f"/portfolios/{eur_portfolio.id}/performance", headers=headers)

        assert response.json()["total_value_eur"] == "9972.84"

    def test_empty_portfolio(self, client, db, user, headers):
        portfolio = create_portfolio(db, user)

        response = client.post(
            "/calibration/set-reference",
            json={"reference_value": "1000"},
            headers=headers,
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "CalibrationNotPossibleError"
        assert data["details"]["portfolio_id"] == portfolio.id
        assert Decimal(data["details"]["calculated_value"]) == Decimal("0")

    def test_no_portfolio(self, client, headers):
        response = client.post(
            "/calibration/set-reference",
            json={"reference_value": "1000"},
            headers=headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "PortfolioNotFoundError"

    def test_other_users_portfolio(self, client, db, eur_portfolio):
        intruder = create_user(db, email="intruder@example.com")

        response = client.post(
            "/calibration/set-reference",
            json={"reference_value": "1000", "portfolio_id": eur_portfolio.id},
            headers=get_auth_headers(intruder),
        )

        assert response.status_code == 404

    @pytest.mark.parametrize("value", ["0", "-5", "abc"])
    def test_invalid_reference(self, client, headers, eur_portfolio, value):
        response = client.post(
            "/calibration/set-reference",
            json={"reference_value": value},
            headers=headers,
        )

        assert response.status_code == 422

    def test_requires_authentication(self, client):
        response = client.post("/calibration/set-reference", json={"reference_value": "1000"})

        assert response.status_code == 401


class TestStatusAndReset:
    """Tests for GET /calibration/status and DELETE /calibration/reset."""

    def test_status_uncalibrated(self, client, headers):
        response = client.get("/calibration/status", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["calibrated"] is False
        assert Decimal(data["adjustment_factor"]) == Decimal("1")
        assert data["adjustment_percent"] == "+0.00%"
        assert data["reference_portfolio_value"] is None
        assert data["last_calibration_at"] is None

    def test_status_calibrated(self, client, headers, eur_portfolio):
        client.post("/calibration/set-reference", json={"reference_value": "9972.84"}, headers=headers)

        data = client.get("/calibration/status", headers=headers).json()

        assert data["calibrated"] is True
        assert Decimal(data["reference_portfolio_value"]) == Decimal("9972.84")
        assert data["last_calibration_at"] is not None

    def test_reset(self, client, headers, eur_portfolio):
        client.post("/calibration/set-reference", json={"reference_value": "9972.84"}, headers=headers)

        response = client.delete("/calibration/reset", headers=headers)

        assert response.status_code == 200
        assert response.json()["calibrated"] is False
        performance = client.get(f"/portfolios/{eur_portfolio.id}/performance", headers=headers)
        assert performance.json()["total_value_eur"] == "9000.00"

    def test_reset_twice(self, client, headers):
        first = client.delete("/calibration/reset", headers=headers)
        second = client.delete("/calibration/reset", headers=headers)

        assert first.status_code == second.status_code == 200
        assert first.json() == second.json()


class TestAssetCalibration:
    """Tests for the per-asset calibration endpoints."""

    def test_set_and_list(self, client, db, headers):
        asset = create_asset(db, symbol="AAPL", currency="USD", current_price=Decimal("200"))

        response = client.put(
            f"/calibration/assets/{asset.id}",
            json={"reference_price": "210"},
            headers=headers,
        )

        assert response.status_code == 200
        assert Decimal(response.json()["adjustment_factor"]) == Decimal("1.05")
        assert response.json()["adjustment_percent"] == "+5.00%"

        listing = client.get("/calibration/assets", headers=headers).json()
        assert [c["symbol"] for c in listing] == ["AAPL"]

    def test_unknown_asset(self, client, headers):
        response = client.put(
            "/calibration/assets/999",
            json={"reference_price": "210"},
            headers=headers,
        )

        assert response.status_code == 404

    def test_asset_without_price(self, client, db, headers):
        asset = create_asset(db, current_price=None)

        response = client.put(
            f"/calibration/assets/{asset.id}",
            json={"reference_price": "210"},
            headers=headers,
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "current_price"}

    def test_delete(self, client, db, headers):
        asset = create_asset(db)
        client.put(f"/calibration/assets/{asset.id}", json={"reference_price": "110"}, headers=headers)

        first = client.delete(f"/calibration/assets/{asset.id}", headers=headers)
        second = client.delete(f"/calibration/assets/{asset.id}", headers=headers)

        assert first.status_code == second.status_code == 204
        assert client.get("/calibration/assets", headers=headers).json() == []
