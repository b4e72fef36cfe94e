"""
Bearer token handling for the identity context.

Tokens are issued by the identity service; the marketplace only verifies them
and turns the claims into a ``Principal``.
"""

import hashlib
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from core.config import settings

logger = logging.getLogger(__name__)

VALID_ROLES: tuple[str, ...] = ("client", "fixer", "admin")


@dataclass(frozen=True)
class Principal:
    """The authenticated caller."""

    id: int
    role: str
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def create_access_token(
    user_id: int,
    role: str,
    name: Optional[str] = None,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Sign an access token carrying the claims the marketplace reads.

    Args:
        user_id: User ID
        role: One of client, fixer, admin
        name: Display name
        secret_key: Signing key (defaults to settings)
        algorithm: Signing algorithm (defaults to settings)
        expires_delta: Lifetime (defaults to settings)

    Returns:
        Encoded JWT
    """
    now = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "id": user_id,
        "name": name,
        "role": role,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(
        payload,
        secret_key or settings.jwt_secret_key,
        algorithm=algorithm or settings.jwt_algorithm,
    )


def decode_access_token(
    token: str,
    secret_key: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> dict[str, Any]:
    """
    Verify signature and expiry and return the claims.

    Raises:
        jwt.ExpiredSignatureError: Token has expired
        jwt.InvalidTokenError: Token is malformed or badly signed
    """
    return jwt.decode(
        token,
        secret_key or settings.jwt_secret_key,
        algorithms=[algorithm or settings.jwt_algorithm],
    )


def principal_from_claims(claims: dict[str, Any]) -> Principal:
    """
    Build a Principal from token claims.

    Older tokens carry ``userId`` instead of ``id``.

    Raises:
        jwt.InvalidTokenError: Claims lack a usable id or role
    """
    raw_id = claims.get("id", claims.get("userId"))
    role = claims.get("role")

    try:
        user_id = int(raw_id)
    except (TypeError, ValueError):
        raise jwt.InvalidTokenError("Token missing user id")

    if role not in VALID_ROLES:
        raise jwt.InvalidTokenError("Token carries an unknown role")

    return Principal(id=user_id, role=role, name=claims.get("name"))


def token_fingerprint(token: str) -> str:
    """Stable digest used instead of the raw token in storage keys and logs."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
