"""Optional bearer-token identity for knowledge graph endpoints."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.session_token import username_from_token


auth_scheme = HTTPBearer(auto_error=False)

ANONYMOUS_USER = "anonymous"


def resolve_username(token_username: Optional[str], supplied_username: Optional[str]) -> str:
    """Token identity wins over a username sent in the request."""
    if token_username:
        return token_username
    supplied = (supplied_username or "").strip()
    return supplied or ANONYMOUS_USER


async def get_token_username(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> Optional[str]:
    """Username from a valid Bearer session token, if one was sent."""
    if not credentials or credentials.scheme.lower() != "bearer":
        return None
    return username_from_token(credentials.credentials)
