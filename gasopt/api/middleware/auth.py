"""Caller identity and owner checks.

Provides:
- JWT Bearer token issuing and verification (``sub`` = caller identity)
- Current caller dependency injection
- Owner-only dependency for administrative routes
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gasopt.core.config import get_settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

ALGORITHM = "HS256"


# ── JWT Tokens ───────────────────────────────────────────────────────────────


def create_access_token(caller: str, expires_minutes: int | None = None) -> str:
    """Create a JWT access token for ``caller``."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    minutes = expires_minutes or settings.jwt_access_token_expire_minutes
    payload = {
        "sub": caller,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token. Raises HTTPException on failure."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("Auth failure: expired token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError:
        logger.warning("Auth failure: invalid token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        )


# ── Dependencies ─────────────────────────────────────────────────────────────


async def get_current_caller(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)] = None,
) -> str:
    """Require a Bearer token and return the caller identity it names.

    Usage in routes:
        @router.get("/mine")
        async def mine(caller: str = Depends(get_current_caller)):
            ...
    """
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required — provide a Bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials)
    caller = payload.get("sub")
    if not caller or payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token payload")
    return caller


async def require_owner(caller: str = Depends(get_current_caller)) -> str:
    """Allow only the configured owner identity through."""
    owner = get_settings().owner_address
    if not owner or caller.lower() != owner.lower():
        logger.warning("Owner check failed for %s", caller)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Owner only")
    return caller
