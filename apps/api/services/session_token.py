"""Signed tokens for the username-claim login of the knowledge graph.

The login does not verify anything; the token only saves the client from
re-sending its username and lets graph endpoints attribute writes.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from config import settings


SESSION_TOKEN_TYPE = "kg_session"


def issue_session_token(username: str) -> str:
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(hours=max(int(settings.JWT_EXPIRATION_HOURS or 24), 1))
    claims = {
        "sub": username,
        "type": SESSION_TOKEN_TYPE,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def username_from_token(token: Optional[str]) -> Optional[str]:
    """Return the username a token was issued for, or None if it is not usable."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != SESSION_TOKEN_TYPE:
        return None
    username = str(payload.get("sub", "")).strip()
    return username or None
