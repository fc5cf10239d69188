"""Login and session schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    # Blank values are reported as MISSING_CREDENTIALS by the auth service
    email: str = ""
    password: str = ""


class SessionResponse(BaseModel):
    uid: str
    email: str
    username: str
    role: str
    display_name: Optional[str] = None
    last_activity: Optional[datetime] = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Seconds until the session expires")
    user: SessionResponse
