"""
Bearer token helpers.

The API trusts an upstream identity provider; what reaches this service
is an HS256-signed JWT whose ``sub`` claim is the user id and whose
``email`` / ``name`` claims describe the user.
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt

from app.config import settings

logger = logging.getLogger(__name__)


def create_access_token(
    user_id: str,
    email: str,
    name: str,
    expires_minutes: int | None = None,
) -> str:
    """Mint a signed access token for *user_id*."""
    now = datetime.now(timezone.utc)
    expire = now + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    payload = {
        "sub": user_id,
        "email": email,
        "name": name,
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """
    Decode and validate *token*.

    Returns the claims dict, or None when the token is malformed, has a
    bad signature, is expired, or carries no subject.
    """
    try:
        claims = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired access token")
        return None
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected invalid access token: %s", exc)
        return None

    if not claims.get("sub"):
        return None
    return claims
