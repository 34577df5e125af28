"""
JWT bearer authentication dependencies.

One verification routine (``resolve_identity``) backs two thin wrappers:

- ``require_identity``: mandatory; no identity is a 401
- ``attach_identity_if_present``: optional; no identity means anonymous

Whatever identity is resolved is attached to ``request.state.user``.
"""

from typing import Optional

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from marketplace_api.dependencies import get_auth_service
from marketplace_api.errors import UnauthorizedError
from marketplace_api.models.auth import CurrentUser
from marketplace_api.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

# HTTP Bearer token scheme for dependency injection
security = HTTPBearer(auto_error=False)


async def resolve_identity(
    credentials: Optional[HTTPAuthorizationCredentials],
    auth_service: AuthService
) -> Optional[CurrentUser]:
    """
    Resolve bearer credentials to the user they belong to.

    Args:
        credentials: Parsed ``Authorization: Bearer`` header, if any
        auth_service: Authentication service

    Returns:
        Current user, or None when credentials are missing, do not verify,
        or name a user that no longer exists
    """
    if not credentials or credentials.scheme.lower() != "bearer":
        return None

    token = credentials.credentials.strip()
    if not token:
        return None

    return await auth_service.get_current_user(token)


async def require_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> CurrentUser:
    """
    Mandatory authentication.

    Raises:
        UnauthorizedError: No valid bearer token for an existing user
    """
    user = await resolve_identity(credentials, auth_service)
    request.state.user = user

    if not user:
        logger.warning(
            "auth_rejected",
            path=request.url.path,
            method=request.method,
            token_present=credentials is not None
        )
        raise UnauthorizedError()

    logger.debug("request_authenticated", user_id=user.id, path=request.url.path)
    return user


async def attach_identity_if_present(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[CurrentUser]:
    """
    Optional authentication.

    Returns:
        Current user if a valid token was presented, None otherwise
    """
    user = await resolve_identity(credentials, auth_service)
    request.state.user = user

    if credentials and not user:
        logger.info("optional_auth_ignored_token", path=request.url.path)

    return user
