"""JWT issuance and verification for admin sessions."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import HTTPException, status
from jose import JWTError, jwt

from shiftboard.config import get_settings
from shiftboard.domain.models import Admin

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


def create_auth_token(admin: Admin, now: datetime | None = None) -> str:
    """Return a signed token whose subject is the admin's id."""
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": admin.id,
        "username": admin.username,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=settings.jwt_expiry_hours)).timestamp()),
        "iss": settings.jwt_issuer,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict[str, Any]:
    """Decode *token*, raising 401 if it is malformed, forged or expired."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            issuer=settings.jwt_issuer,
        )
    except JWTError as exc:
        # Keep token details out of the response
        logger.warning("rejected bearer token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload
