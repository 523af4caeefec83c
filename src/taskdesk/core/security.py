"""Security helpers for password hashing and JWT access tokens."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from ..errors import ConfigurationError
from .config import DEFAULT_BCRYPT_ROUNDS, Settings


@dataclass(frozen=True, slots=True)
class Identity:
    """Identity claims carried by an access token."""

    id: int
    email: str
    name: str


@dataclass(slots=True)
class GeneratedToken:
    """A signed access token together with its expiry."""

    token: str
    expires_at: datetime


@lru_cache(maxsize=None)
def _password_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Return a salted bcrypt hash of ``password`` using ``rounds`` as cost factor."""

    return _password_context(rounds).hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its hashed counterpart.

    A stored value that is not a recognisable hash never verifies.
    """

    try:
        return _password_context(DEFAULT_BCRYPT_ROUNDS).verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def _require_secret(settings: Settings) -> str:
    if not settings.jwt_secret_key:
        raise ConfigurationError("JWT secret not configured")
    return settings.jwt_secret_key


def create_access_token(
    identity: Identity,
    *,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> GeneratedToken:
    """Sign an access token embedding ``identity``."""

    secret = _require_secret(settings)
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
    expire = now + expires_delta
    payload: dict[str, Any] = {
        "sub": str(identity.id),
        "email": identity.email,
        "name": identity.name,
        "iat": now,
        "exp": expire,
    }
    token = jwt.encode(payload, secret, algorithm=settings.jwt_algorithm)
    return GeneratedToken(token=token, expires_at=expire)


def decode_access_token(token: str, *, settings: Settings) -> dict[str, Any]:
    """Verify signature and expiry of ``token`` and return its claims.

    Raises ``jose.JWTError`` (``ExpiredSignatureError`` for expired tokens)
    when verification fails.
    """

    secret = _require_secret(settings)
    return jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])


__all__ = [
    "DEFAULT_BCRYPT_ROUNDS",
    "ExpiredSignatureError",
    "GeneratedToken",
    "Identity",
    "JWTError",
    "create_access_token",
    "decode_access_token",
    "hash_password",
    "verify_password",
]
