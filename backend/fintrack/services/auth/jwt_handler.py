# backend/fintrack/services/auth/jwt_handler.py
"""
JWT access token creation and validation.

Access tokens are stateless (never stored) and signed with the symmetric
key from settings (HS256 by default).
"""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from fintrack.config import settings
from fintrack.services.exceptions import InvalidCredentialsError, TokenExpiredError


class JWTHandler:
    """
    Handles JWT token creation and validation.

    Access tokens contain:
    - sub: User ID (string)
    - email: User's email
    - exp: Expiration timestamp
    - iat: Issued at timestamp
    - type: "access"
    """

    @staticmethod
    def create_access_token(
        user_id: int,
        email: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """
        Create a signed access token.

        Args:
            user_id: The user's database ID
            email: The user's email address
            expires_delta: Optional custom lifetime (negative for expired tokens)

        Returns:
            Encoded JWT string
        """
        if expires_delta is None:
            expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)

        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "email": email,
            "exp": now + expires_delta,
            "iat": now,
            "type": "access",
        }

        return jwt.encode(
            payload,
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )

    @staticmethod
    def validate_access_token(token: str) -> dict[str, Any]:
        """
        Validate an access token and return its payload.

        Raises:
            TokenExpiredError: The token has expired
            InvalidCredentialsError: The token is invalid, malformed, of the
                wrong type or carries no usable subject
        """
        try:
            payload = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Access token has expired")
        except JWTError as e:
            raise InvalidCredentialsError(f"Invalid token: {str(e)}")

        if payload.get("type") != "access":
            raise InvalidCredentialsError("Invalid token type")

        subject = payload.get("sub")
        if subject is None or not str(subject).isdigit():
            raise InvalidCredentialsError("Token has no valid subject")

        return payload
