# backend/tests/services/test_asset_service.py
"""
Tests for AssetService.

This module tests:
- Listing, searching and paginating the asset registry
- Importing symbols (new, existing, without a quote)
- Price refresh: updates, per-symbol errors, subsets, currency mismatches
"""

from decimal import Decimal

import pytest

from fintrack.models import Asset, AssetType
from fintrack.services.asset_service import AssetService
from fintrack.services.exceptions import (
    AssetNotFoundError,
    ProviderUnavailableError,
    ValidationError,
)
from tests.conftest import StubQuoteSource, create_asset, make_quote


@pytest.fixture
def quotes() -> StubQuoteSource:
    return StubQuoteSource()


@pytest.fixture
def service(quotes) -> AssetService:
    return AssetService(quote_source=quotes, max_workers=4)


# =============================================================================
# READ
# =============================================================================

class TestListAssets:
    """Tests for list_assets and get_asset."""

    def test_ordered_by_symbol_with_total(self, db, service):
        create_asset(db, symbol="SAP.DE")
        create_asset(db, symbol="AAPL", currency="USD")
        create_asset(db, symbol="BTC", currency="USD", asset_type=AssetType.CRYPTO)

        assets, total = service.list_assets(db)

        assert total == 3
        assert [a.symbol for a in assets] == ["AAPL", "BTC", "SAP.DE"]

    def test_filter_by_type(self, db, service):
        create_asset(db, symbol="AAPL", currency="USD")
        create_asset(db, symbol="BTC", currency="USD", asset_type=AssetType.CRYPTO)

        assets, total = service.list_assets(db, asset_type=AssetType.CRYPTO)

        assert total == 1
        assert assets[0].symbol == "BTC"

    def test_search_matches_symbol_or_name(self, db, service):
        create_asset(db, symbol="AAPL", name="Apple Inc.", currency="USD")
        create_asset(db, symbol="SAP.DE", name="SAP SE")
        create_asset(db, symbol="MSFT", name="Microsoft", currency="USD")

        by_name, _ = service.list_assets(db, search="apple")
        by_symbol, _ = service.list_assets(db, search="sap")

        assert [a.symbol for a in by_name] == ["AAPL"]
        assert [a.symbol for a in by_symbol] == ["SAP.DE"]

    def test_pagination_keeps_total(self, db, service):
        for symbol in ("A", "B", "C", "D"):
            create_asset(db, symbol=symbol)

        assets, total = service.list_assets(db, skip=1, limit=2)

        assert total == 4
        assert [a.symbol for a in assets] == ["B", "C"]

    def test_get_asset(self, db, service):
        asset = create_asset(db, symbol="AAPL", currency="USD")
        assert service.get_asset(db, asset.id).symbol == "AAPL"

    def test_get_unknown_asset(self, db, service):
        with pytest.raises(AssetNotFoundError):
            service.get_asset(db, 999)


# =============================================================================
# IMPORT
# =============================================================================

class TestImportAsset:
    """Tests for import_asset."""

    def test_new_symbol_is_seeded_with_prices(self, db, service, quotes):
        quotes.quotes["AAPL"] = make_quote("AAPL", "190.50", "187.25")

        result = service.import_asset(db, symbol=" aapl ", name="Apple Inc.")

        assert result.was_created
        asset = result.asset
        assert asset.id is not None
        assert asset.symbol == "AAPL"
        assert asset.type == AssetType.STOCK
        assert asset.currency == "USD"
        assert asset.current_price == Decimal("190.50")
        assert asset.previous_close == Decimal("187.25")
        assert asset.change_percent == Decimal("1.74")
        assert quotes.requests == [("AAPL", AssetType.STOCK)]

    def test_currency_comes_from_quote(self, db, service, quotes):
        quotes.quotes["SHEL.L"] = make_quote("SHEL.L", "24.50", currency="GBP")

        result = service.import_asset(db, symbol="SHEL.L", name="Shell", currency="USD")

        assert result.asset.currency == "GBP"

    def test_existing_symbol_is_returned(self, db, service, quotes):
        existing = create_asset(db, symbol="AAPL", currency="USD")

        result = service.import_asset(db, symbol="aapl", name="Apple again")

        assert not result.was_created
        assert result.asset.id == existing.id
        assert result.asset.name == "AAPL"
        assert quotes.requests == []

    def test_provider_failure_imports_without_prices(self, db, service, quotes):
        quotes.quotes["SAP.DE"] = ProviderUnavailableError("yahoo", "timeout")

        result = service.import_asset(db, symbol="SAP.DE", name="SAP SE", currency="eur")

        assert result.was_created
        assert result.asset.current_price is None
        assert result.asset.previous_close is None
        assert result.asset.currency == "EUR"

    def test_unknown_symbol_defaults_to_usd(self, db, service):
        result = service.import_asset(db, symbol="NEWCO", name="New Co")

        assert result.asset.currency == "USD"
        assert result.asset.current_price is None

    def test_crypto_type_is_passed_to_source(self, db, service, quotes):
        quotes.quotes["BTC"] = make_quote("BTC", "65000", "64000")

        result = service.import_asset(db, symbol="BTC", name="Bitcoin", asset_type=AssetType.CRYPTO)

        assert result.asset.type == AssetType.CRYPTO
        assert quotes.requests == [("BTC", AssetType.CRYPTO)]

    @pytest.mark.parametrize("symbol,name,field", [("  ", "Name", "symbol"), ("AAPL", " ", "name")])
    def test_blank_values_rejected(self, db, service, symbol, name, field):
        with pytest.raises(ValidationError) as exc_info:
            service.import_asset(db, symbol=symbol, name=name)

        assert exc_info.value.field == field
        assert db.query(Asset).count() == 0


# =============================================================================
# PRICE REFRESH
# =============================================================================

class TestRefreshPrices:
    """Tests for refresh_prices."""

    def test_updates_every_asset(self, db, service, quotes):
        apple = create_asset(db, symbol="AAPL", currency="USD", current_price=Decimal("180"))
        sap = create_asset(db, symbol="SAP.DE", currency="EUR", current_price=Decimal("170"))
        quotes.quotes["AAPL"] = make_quote("AAPL", "190.50", "187.25")
        quotes.quotes["SAP.DE"] = make_quote("SAP.DE", "175.20", "174.00", currency="EUR")

        result = service.refresh_prices(db)

        assert result.updated == 2
        assert result.errors == []
        db.refresh(apple)
        db.refresh(sap)
        assert apple.current_price == Decimal("190.50")
        assert apple.previous_close == Decimal("187.25")
        assert sap.current_price == Decimal("175.20")
        assert sap.previous_close == Decimal("174.00")

    def test_failures_keep_previous_prices(self, db, service, quotes):
        apple = create_asset(db, symbol="AAPL", currency="USD", current_price=Decimal("180"))
        create_asset(db, symbol="GONE", currency="USD", current_price=Decimal("5"))
        down = create_asset(db, symbol="DOWN", currency="USD", current_price=Decimal("7"))
        quotes.quotes["AAPL"] = make_quote("AAPL", "190.50", "187.25")
        quotes.quotes["DOWN"] = ProviderUnavailableError("yahoo", "HTTP 503")

        result = service.refresh_prices(db)

        assert result.updated == 1
        assert sorted(result.errors) == [
            "DOWN: Market data provider 'yahoo' error: HTTP 503",
            "GONE: no quote available",
        ]
        db.refresh(apple)
        db.refresh(down)
        assert apple.current_price == Decimal("190.50")
        assert down.current_price == Decimal("7")

    def test_subset_of_assets(self, db, service, quotes):
        apple = create_asset(db, symbol="AAPL", currency="USD")
        create_asset(db, symbol="MSFT", currency="USD")
        quotes.quotes["AAPL"] = make_quote("AAPL", "190.50")
        quotes.quotes["MSFT"] = make_quote("MSFT", "420.00")

        result = service.refresh_prices(db, asset_ids=[apple.id])

        assert result.updated == 1
        assert quotes.requests == [("AAPL", AssetType.STOCK)]

    def test_currency_mismatch_is_skipped(self, db, service, quotes):
        asset = create_asset(db, symbol="SHEL.L", currency="USD", current_price=Decimal("30"))
        quotes.quotes["SHEL.L"] = make_quote("SHEL.L", "24.50", currency="GBP")

        result = service.refresh_prices(db)

        assert result.updated == 0
        assert result.errors == ["SHEL.L: quoted in GBP, expected USD"]
        db.refresh(asset)
        assert asset.current_price == Decimal("30")

    def test_quote_without_currency_is_applied(self, db, service, quotes):
        asset = create_asset(db, symbol="XYZ", currency="EUR", current_price=Decimal("1"))
        quotes.quotes["XYZ"] = make_quote("XYZ", "2.00", currency=None)

        result = service.refresh_prices(db)

        assert result.updated == 1
        db.refresh(asset)
        assert asset.current_price == Decimal("2.00")

    def test_empty_registry(self, db, service, quotes):
        result = service.refresh_prices(db)

        assert result.updated == 0
        assert result.errors == []
        assert quotes.requests == []
