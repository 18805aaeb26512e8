"""Signed session tokens (JWT via python-jose).

Claims::

    {
        "sub": "<user id>",
        "iat": 1700000000,
        "exp": 1700604800
    }
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from taskhub.core.exceptions import UnauthenticatedError
from taskhub.core.types import utcnow

if TYPE_CHECKING:
    from taskhub.core.types import User

logger = logging.getLogger(__name__)


class TokenService:
    """Issue and verify bearer session tokens.

    Attributes:
        secret: HMAC signing key
        algorithm: JWT signing algorithm
        ttl: Token lifetime
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_days: int = 7) -> None:
        if not secret:
            raise ValueError("TokenService requires a non-empty secret key.")
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = timedelta(days=ttl_days)

    def issue(self, user: User, now: datetime | None = None) -> str:
        """Return a signed token whose subject is *user*'s id."""
        issued_at = now or utcnow()
        claims = {
            "sub": user.id,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> str:
        """Verify *token* and return the user id it carries.

        Raises:
            UnauthenticatedError: If the token is malformed, badly signed,
                expired, or has no subject
        """
        # Log the internal reason, never expose it.
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            logger.info("Session token rejected: %s", e)
            raise UnauthenticatedError("Token is not valid") from e

        subject = payload.get("sub")
        if not subject or not isinstance(subject, str):
            logger.warning("Session token without a subject claim")
            raise UnauthenticatedError("Token is not valid")
        return subject


__all__ = ["TokenService"]
