"""
FastAPI dependencies for authentication.

Provides the request authorization guard (``get_current_principal``) used
by every protected route, and the credential guard
(``authenticate_credentials``) used only by the login route.  The two are
distinct: the first authenticates a bearer token, the second a submitted
email/password pair.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from auth.directory import UserDirectory
from auth.errors import TokenError, Unauthenticated
from auth.jwt import TokenSigner, get_token_signer
from auth.schemas import LoginRequest
from auth.service import Authenticator
from database.models import User
from database.session import get_db_session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """The authenticated principal attached to a request."""

    principal_id: int
    email: str
    username: str


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def get_signer() -> TokenSigner:
    return get_token_signer()


def get_user_directory(session: AsyncSession = Depends(db_session)) -> UserDirectory:
    return UserDirectory(session)


def get_authenticator(
    directory: UserDirectory = Depends(get_user_directory),
    signer: TokenSigner = Depends(get_signer),
) -> Authenticator:
    return Authenticator(directory, signer)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from ``Bearer <token>``, or ``None``."""
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        return None
    return token


async def authorize_request(
    authorization: Optional[str],
    signer: TokenSigner,
    directory: UserDirectory,
) -> AuthContext:
    """
    Resolve an ``Authorization`` header value to an ``AuthContext``.

    Raises ``Unauthenticated`` when the token is absent, fails
    verification for any reason, or names a principal that no longer
    exists.  The specific reason is only logged.
    """
    token = extract_bearer_token(authorization)
    if token is None:
        raise Unauthenticated()

    try:
        principal_id = signer.verify(token)
    except TokenError as exc:
        logger.debug("Rejected token: %s (%s)", type(exc).__name__, exc)
        raise Unauthenticated() from exc

    user = await directory.find_by_id(principal_id)
    if user is None:
        logger.debug("Rejected token for missing principal %s", principal_id)
        raise Unauthenticated()

    return AuthContext(principal_id=user.id, email=user.email, username=user.username)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    request: Request,
    signer: TokenSigner = Depends(get_signer),
    directory: UserDirectory = Depends(get_user_directory),
) -> AuthContext:
    """
    Verify the Bearer token and attach the principal to ``request.state``.
    """
    try:
        context = await authorize_request(
            request.headers.get("Authorization"), signer, directory
        )
    except Unauthenticated:
        raise _unauthorized()
    request.state.principal = context
    return context


async def get_current_user_id(
    principal: AuthContext = Depends(get_current_principal),
) -> int:
    return principal.principal_id


async def authenticate_credentials(
    req: LoginRequest,
    authenticator: Authenticator = Depends(get_authenticator),
) -> User:
    """Credential guard for the login route: email + password → ``User``."""
    return await authenticator.authenticate(req.email, req.password)
