# backend/tests/routers/test_health_api.py
"""
Integration tests for the root and health endpoints.
"""

from decimal import Decimal
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from tests.conftest import create_asset


class TestHealthEndpoints:
    """Tests for /, /health, /health/live and /health/ready."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["docs"] == "/docs"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "healthy"
        assert data["checks"]["database"]["critical"] is True
        assert data["checks"]["fx_rates"]["critical"] is False
        assert set(data["checks"]["fx_rates"]["cache"]) == {"reference_documents", "currency_rates"}

    def test_health_reports_price_data(self, client, db):
        create_asset(db, symbol="AAPL", currency="USD", current_price=Decimal("190.5"))
        create_asset(db, symbol="NEWCO", currency="USD", current_price=None)

        database = client.get("/health").json()["checks"]["database"]

        assert database["dialect"] == "sqlite"
        assert database["assets"]["total"] == 2
        assert database["assets"]["priced"] == 1
        assert database["assets"]["last_price_update"] is not None

    def test_health_without_assets(self, client):
        database = client.get("/health").json()["checks"]["database"]

        assert database["assets"] == {"total": 0, "priced": 0, "last_price_update": None}

    def test_unreachable_database_is_503(self, client):
        from fintrack.database import get_db
        from fintrack.main import app

        broken = MagicMock()
        broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
        app.dependency_overrides[get_db] = lambda: broken

        response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["checks"]["database"]["status"] == "unhealthy"
        assert "connection refused" in data["checks"]["database"]["error"]

    def test_liveness(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    def test_readiness(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready"}
