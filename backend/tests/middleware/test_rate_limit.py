# backend/tests/middleware/test_rate_limit.py
"""
Tests for rate limit key selection and the 429 handler.
"""

import asyncio
import json
from unittest.mock import MagicMock

from starlette.requests import Request

from fintrack.middleware.rate_limit import (
    RETRY_AFTER_SECONDS,
    _get_client_ip,
    rate_limit_exceeded_handler,
)


def make_request(client_host: str, headers: dict[str, str] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/portfolios",
        "headers": [
            (name.lower().encode(), value.encode())
            for name, value in (headers or {}).items()
        ],
        "client": (client_host, 12345),
        "query_string": b"",
    }
    return Request(scope)


class TestClientIp:
    """Tests for _get_client_ip."""

    def test_direct_client(self):
        assert _get_client_ip(make_request("203.0.113.7")) == "203.0.113.7"

    def test_forwarded_for_from_trusted_proxy(self):
        request = make_request("127.0.0.1", {"X-Forwarded-For": "198.51.100.1, 10.0.0.1"})

        assert _get_client_ip(request) == "198.51.100.1"

    def test_real_ip_from_trusted_proxy(self):
        request = make_request("127.0.0.1", {"X-Real-IP": "198.51.100.2"})

        assert _get_client_ip(request) == "198.51.100.2"

    def test_forwarded_for_from_untrusted_client_is_ignored(self):
        request = make_request("203.0.113.7", {"X-Forwarded-For": "198.51.100.1"})

        assert _get_client_ip(request) == "203.0.113.7"


class TestRateLimitExceededHandler:
    """Tests for the 429 response."""

    def test_response_format(self):
        exc = MagicMock()
        exc.detail = "10 per 1 minute"

        response = asyncio.run(rate_limit_exceeded_handler(make_request("203.0.113.7"), exc))

        assert response.status_code == 429
        assert response.headers["Retry-After"] == str(RETRY_AFTER_SECONDS)
        body = json.loads(response.body)
        assert body["error"] == "RateLimitError"
        assert body["message"] == "Too many requests. 10 per 1 minute"
        assert body["details"] == {"retry_after": RETRY_AFTER_SECONDS}
