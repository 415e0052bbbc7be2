"""Bearer token helpers used when identity comes from a signed token."""

import logging
from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel, ValidationError

from .config import get_settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenPayload(BaseModel):
    """JWT token payload."""

    sub: str  # User ID
    exp: datetime
    iat: datetime


def create_access_token(
    user_id: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed access token for a user id."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    expire = now + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {"sub": user_id, "exp": expire, "iat": now}
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> TokenPayload | None:
    """Decode and validate a token. Returns None if invalid or expired."""
    try:
        payload = jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
        return TokenPayload(**payload)
    except (jwt.PyJWTError, ValidationError) as e:
        logger.debug(f"Token rejected: {e}")
        return None
