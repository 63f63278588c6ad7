"""
Username-claim login for the knowledge graph app.
"""

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from services.session_token import issue_session_token

router = APIRouter()


class LoginRequest(BaseModel):
    username: Optional[str] = None


@router.post("/login")
async def login(request: LoginRequest):
    """Accept any non-empty username and hand back a session token for it."""
    username = (request.username or "").strip()
    if not username:
        return JSONResponse(status_code=400, content={"error": "Username is required"})
    return {"username": username, "token": issue_session_token(username)}
