# backend/fintrack/services/auth/__init__.py
"""
Authentication for the FinTrack API.

Users are identified by a bearer access token (JWT). Token issuance is
handled by the account service in front of this API; this package only
creates tokens for tooling and tests and validates incoming ones.

Usage:
    from fintrack.services.auth import JWTHandler

    token = JWTHandler.create_access_token(user_id=1, email="user@example.com")
    payload = JWTHandler.validate_access_token(token)
"""

from fintrack.services.auth.jwt_handler import JWTHandler

__all__ = [
    "JWTHandler",
]
