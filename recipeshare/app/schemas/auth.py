from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class EmailCredentials(BaseModel):
    email: str = Field(..., pattern=EMAIL_PATTERN, max_length=320)
    password: str = Field(..., min_length=6)


class SignUpRequest(EmailCredentials):
    username: Optional[str] = Field(default=None, min_length=1, max_length=60)


class SessionResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class OAuthStartResponse(BaseModel):
    provider: str
    url: str
