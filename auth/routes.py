"""
Auth API routes — register, login.

Route prefix: /api/v1/auth
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from auth.dependencies import authenticate_credentials, get_authenticator
from auth.schemas import PrincipalResponse, RegisterRequest, TokenResponse
from auth.service import Authenticator
from database.models import User

router = APIRouter(tags=["auth"])


@router.post(
    "/register",
    response_model=PrincipalResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    req: RegisterRequest,
    authenticator: Authenticator = Depends(get_authenticator),
) -> User:
    """Register a new user."""
    return await authenticator.register(req.email, req.username, req.password)


@router.post("/login", response_model=TokenResponse)
async def login(
    user: User = Depends(authenticate_credentials),
    authenticator: Authenticator = Depends(get_authenticator),
) -> TokenResponse:
    """Exchange email + password for a session token."""
    session_token = authenticator.issue_token(user)
    return TokenResponse(
        token=session_token.token,
        expires_at=session_token.expires_at,
    )
