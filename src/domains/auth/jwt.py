# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""JWT token management utilities.

This module verifies access tokens using python-jose. Tokens carry the
user id in ``sub`` and the role name in ``role``. Minting is provided for
tooling and tests; the login flow that normally issues tokens lives
outside this service.

Example:
    >>> from src.core.config import get_settings
    >>> jwt_manager = JWTManager(get_settings().jwt)
    >>> token = jwt_manager.create_access_token(user_id=42, role="teacher")
    >>> claims = jwt_manager.decode_token(token)
    >>> claims.user_id
    42
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Literal

from jose import ExpiredSignatureError, JWTError as JoseJWTError, jwt
from pydantic import BaseModel, field_validator

from src.core.config.settings import JWTSettings

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT token payload structure.

    Attributes:
        sub: Subject (user id, as a string).
        role: Role name (admin, principal, teacher, student).
        type: Token type.
        exp: Expiration timestamp.
        iat: Issued at timestamp.
        jti: JWT ID for token tracking.
    """

    sub: str
    role: str
    type: Literal["access"] = "access"
    exp: int
    iat: int
    jti: str | None = None

    @field_validator("sub")
    @classmethod
    def check_sub(cls, value: str) -> str:
        if not value.isdigit():
            raise ValueError("sub must be a numeric user id")
        return value

    @property
    def user_id(self) -> int:
        """Numeric user id taken from ``sub``."""
        return int(self.sub)


class JWTError(Exception):
    """Base exception for JWT operations."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid."""

    pass


class JWTManager:
    """JWT access token creation and validation.

    Attributes:
        _settings: JWT configuration settings.
    """

    def __init__(self, settings: JWTSettings) -> None:
        self._settings = settings

    def create_access_token(
        self,
        user_id: int | str,
        role: str,
        expires_delta: timedelta | None = None,
    ) -> str:
        """Create an access token.

        Args:
            user_id: User identifier.
            role: Role name.
            expires_delta: Lifetime, defaults to the configured one.

        Returns:
            JWT access token string.
        """
        now = datetime.now(timezone.utc)
        lifetime = expires_delta or timedelta(minutes=self._settings.access_token_expire_minutes)
        payload = {
            "sub": str(user_id),
            "role": role,
            "type": "access",
            "exp": int((now + lifetime).timestamp()),
            "iat": int(now.timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(
            payload,
            self._settings.secret_key.get_secret_value(),
            algorithm=self._settings.algorithm,
        )

    def decode_token(self, token: str) -> TokenPayload:
        """Decode and validate an access token.

        Args:
            token: JWT token string.

        Returns:
            TokenPayload with decoded claims.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the signature, claims or subject are
                invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.secret_key.get_secret_value(),
                algorithms=[self._settings.algorithm],
            )
        except ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except JoseJWTError as e:
            logger.warning("Token decode failed: %s", str(e))
            raise InvalidTokenError(f"Invalid token: {e}") from e

        if payload.get("type", "access") != "access":
            raise InvalidTokenError(f"Expected access token, got {payload.get('type')}")

        try:
            claims = TokenPayload.model_validate(payload)
        except ValueError as e:
            raise InvalidTokenError(f"Invalid token claims: {e}") from e
        return claims
