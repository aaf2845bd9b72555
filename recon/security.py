"""Bearer token verification.

Tokens are minted by the host application with the shared secret; this
service only verifies them and reads the acting user from ``sub``.
"""

from typing import Any
from uuid import UUID

import jwt

from recon.config import settings
from recon.logger import get_logger

logger = get_logger(__name__)


class TokenRejectedError(Exception):
    """The bearer token cannot identify an actor."""

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Verify signature and expiry, returning None when the token is unusable."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.debug("JWT token expired")
        return None
    except jwt.PyJWTError as exc:
        logger.warning(
            "JWT decode failed",
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return None


def token_subject(token: str) -> UUID:
    """Return the user id carried in ``sub``.

    Raises:
        TokenRejectedError: invalid or expired token, missing subject, or a
            subject that is not a UUID.
    """
    payload = decode_access_token(token)
    if not payload:
        raise TokenRejectedError("Could not validate credentials")

    subject = payload.get("sub")
    if not subject:
        raise TokenRejectedError("Token missing subject")

    try:
        return UUID(str(subject))
    except ValueError as exc:
        raise TokenRejectedError("Invalid user ID format in token") from exc
