"""
Request / response schemas for the auth routes.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    email: str = Field(..., min_length=5, max_length=255)
    password: str = Field(..., min_length=1, max_length=1024)


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=1024)


class PrincipalResponse(BaseModel):
    """Public view of a principal — never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    username: str


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_at: datetime
