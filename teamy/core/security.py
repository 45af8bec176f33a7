from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt

from teamy.core.config import get_settings


@dataclass(frozen=True)
class Identity:
    """Caller as asserted by the identity provider's bearer token."""

    id: UUID
    email: str


def _build_payload(sub: str, ttl: timedelta, extra: dict[str, Any] | None = None) -> dict[str, Any]:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "sub": sub,
        "type": "access",
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    if extra:
        payload.update(extra)
    return payload


def create_access_token(user_id: UUID, email: str | None) -> str:
    settings = get_settings()
    extra = {"email": email} if email is not None else None
    payload = _build_payload(
        sub=str(user_id),
        ttl=timedelta(minutes=settings.jwt_access_ttl_min),
        extra=extra,
    )
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])


def identity_from_token(token: str) -> Identity:
    payload = decode_access_token(token)
    if payload.get("type") != "access":
        raise ValueError("invalid token type")
    email = str(payload.get("email") or "").strip()
    if not email:
        raise ValueError("token carries no email")
    return Identity(id=UUID(payload["sub"]), email=email)
