# backend/tests/routers/test_assets_api.py
"""
Integration tests for Asset API endpoints.

- GET  /assets
- POST /assets
- GET  /assets/{id}
- POST /assets/refresh-prices
"""

from decimal import Decimal

from fintrack.models import AssetType
from fintrack.services.exceptions import ProviderUnavailableError
from tests.conftest import (
    create_asset,
    create_portfolio,
    create_user,
    get_auth_headers,
    make_quote,
)


class TestImportAsset:
    """Tests for POST /assets."""

    def test_import_new_symbol(self, client, db):
        user = create_user(db)

        response = client.post(
            "/assets",
            json={"symbol": "aapl", "name": "Apple Inc."},
            headers=get_auth_headers(user),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["symbol"] == "AAPL"
        assert data["asset_type"] == "STOCK"
        assert data["currency"] == "USD"
        assert Decimal(data["current_price"]) == Decimal("190.50")
        assert Decimal(data["previous_close"]) == Decimal("187.25")

    def test_import_existing_symbol_returns_200(self, client, db):
        user = create_user(db)
        headers = get_auth_headers(user)
        payload = {"symbol": "AAPL", "name": "Apple Inc."}

        first = client.post("/assets", json=payload, headers=headers)
        second = client.post("/assets", json=payload, headers=headers)

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]

    def test_import_while_provider_down(self, client, db, stub_quotes):
        user = create_user(db)
        stub_quotes.quotes["SAP.DE"] = ProviderUnavailableError("yahoo", "timeout")

        response = client.post(
            "/assets",
            json={"symbol": "SAP.DE", "name": "SAP SE", "currency": "eur"},
            headers=get_auth_headers(user),
        )

        assert response.status_code == 201
        assert response.json()["currency"] == "EUR"
        assert response.json()["current_price"] is None

    def test_invalid_asset_type(self, client, db):
        user = create_user(db)

        response = client.post(
            "/assets",
            json={"symbol": "AAPL", "name": "Apple", "asset_type": "REIT"},
            headers=get_auth_headers(user),
        )

        assert response.status_code == 422

    def test_requires_authentication(self, client):
        response = client.post("/assets", json={"symbol": "AAPL", "name": "Apple"})
        assert response.status_code == 401

    def test_imported_asset_can_be_held(self, client, db):
        user = create_user(db)
        portfolio = create_portfolio(db, user)
        headers = get_auth_headers(user)

        asset_id = client.post(
            "/assets", json={"symbol": "AAPL", "name": "Apple Inc."}, headers=headers
        ).json()["id"]
        response = client.post(
            f"/portfolios/{portfolio.id}/holdings",
            json={"asset_id": asset_id, "quantity": "2", "avg_buy_price": "150"},
            headers=headers,
        )
        performance = client.get(f"/portfolios/{portfolio.id}/performance", headers=headers)

        assert response.status_code == 201
        # 2 x 190.50 USD x 0.85
        assert performance.json()["total_value_eur"] == "323.85"


class TestListAndGetAssets:
    """Tests for GET /assets and GET /assets/{id}."""

    def test_list_with_filters(self, client, db):
        user = create_user(db)
        create_asset(db, symbol="AAPL", name="Apple Inc.", currency="USD")
        create_asset(db, symbol="BTC", name="Bitcoin", currency="USD", asset_type=AssetType.CRYPTO)
        create_asset(db, symbol="SAP.DE", name="SAP SE")
        headers = get_auth_headers(user)

        everything = client.get("/assets", headers=headers).json()
        crypto = client.get("/assets", params={"asset_type": "CRYPTO"}, headers=headers).json()
        search = client.get("/assets", params={"search": "sap"}, headers=headers).json()

        assert everything["total"] == 3
        assert [a["symbol"] for a in everything["items"]] == ["AAPL", "BTC", "SAP.DE"]
        assert [a["symbol"] for a in crypto["items"]] == ["BTC"]
        assert [a["symbol"] for a in search["items"]] == ["SAP.DE"]

    def test_pagination(self, client, db):
        user = create_user(db)
        for symbol in ("A", "B", "C"):
            create_asset(db, symbol=symbol)

        data = client.get(
            "/assets", params={"skip": 2, "limit": 5}, headers=get_auth_headers(user)
        ).json()

        assert data["total"] == 3
        assert data["skip"] == 2
        assert data["limit"] == 5
        assert [a["symbol"] for a in data["items"]] == ["C"]

    def test_get_asset(self, client, db):
        user = create_user(db)
        asset = create_asset(db, symbol="SAP.DE", current_price=Decimal("175.2"))

        response = client.get(f"/assets/{asset.id}", headers=get_auth_headers(user))

        assert response.status_code == 200
        assert response.json()["symbol"] == "SAP.DE"
        assert Decimal(response.json()["current_price"]) == Decimal("175.2")

    def test_get_unknown_asset(self, client, db):
        user = create_user(db)

        response = client.get("/assets/999", headers=get_auth_headers(user))

        assert response.status_code == 404
        assert response.json()["error"] == "AssetNotFoundError"


class TestRefreshPrices:
    """Tests for POST /assets/refresh-prices."""

    def test_refresh_all(self, client, db, stub_quotes):
        user = create_user(db)
        apple = create_asset(db, symbol="AAPL", currency="USD", current_price=Decimal("180"))
        create_asset(db, symbol="GONE", currency="USD")

        response = client.post("/assets/refresh-prices", headers=get_auth_headers(user))

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Refreshed 1 assets"
        assert data["updated"] == 1
        assert data["errors"] == ["GONE: no quote available"]
        db.refresh(apple)
        assert apple.current_price == Decimal("190.50")
        assert apple.previous_close == Decimal("187.25")

    def test_refresh_subset(self, client, db, stub_quotes):
        user = create_user(db)
        apple = create_asset(db, symbol="AAPL", currency="USD")
        create_asset(db, symbol="MSFT", currency="USD")
        stub_quotes.quotes["MSFT"] = make_quote("MSFT", "420")

        response = client.post(
            "/assets/refresh-prices",
            json={"asset_ids": [apple.id]},
            headers=get_auth_headers(user),
        )

        assert response.json()["updated"] == 1
        assert stub_quotes.requests == [("AAPL", AssetType.STOCK)]

    def test_requires_authentication(self, client):
        response = client.post("/assets/refresh-prices")
        assert response.status_code == 401
