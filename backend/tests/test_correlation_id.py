# backend/tests/test_correlation_id.py
"""
Tests for correlation ID middleware and context management.
"""

import uuid

from fintrack.middleware.correlation import MAX_CORRELATION_ID_LENGTH
from fintrack.utils.context import clear_correlation_id, get_correlation_id, set_correlation_id


class TestCorrelationIdContext:
    """Tests for correlation ID context functions."""

    def test_get_returns_none_when_not_set(self):
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_set_and_get_correlation_id(self):
        set_correlation_id("test-correlation-123")
        assert get_correlation_id() == "test-correlation-123"
        clear_correlation_id()

    def test_clear_correlation_id(self):
        set_correlation_id("test-correlation-456")
        clear_correlation_id()
        assert get_correlation_id() is None


class TestCorrelationIdMiddleware:
    """Tests for correlation ID middleware."""

    def test_generates_id_when_missing(self, client):
        response = client.get("/health/live")

        correlation_id = response.headers["X-Correlation-ID"]
        assert str(uuid.UUID(correlation_id)) == correlation_id

    def test_echoes_client_id(self, client):
        response = client.get("/health/live", headers={"X-Correlation-ID": "my-trace-123"})

        assert response.headers["X-Correlation-ID"] == "my-trace-123"

    def test_falls_back_to_request_id(self, client):
        response = client.get("/health/live", headers={"X-Request-ID": "req-456"})

        assert response.headers["X-Correlation-ID"] == "req-456"

    def test_replaces_oversized_id(self, client):
        oversized = "x" * (MAX_CORRELATION_ID_LENGTH + 1)

        response = client.get("/health/live", headers={"X-Correlation-ID": oversized})

        assert response.headers["X-Correlation-ID"] != oversized

    def test_present_on_error_responses(self, client):
        response = client.get("/portfolios")

        assert response.status_code == 401
        assert "X-Correlation-ID" in response.headers

    def test_context_cleared_after_request(self, client):
        client.get("/health/live", headers={"X-Correlation-ID": "done-789"})

        assert get_correlation_id() is None
