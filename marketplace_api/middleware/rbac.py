"""
Role-based access control dependencies for FastAPI.

Runs after mandatory authentication and rejects identities whose role is
not in the allow-list.
"""

from typing import Iterable

import structlog
from fastapi import Depends, Request

from marketplace_api.errors import ForbiddenError
from marketplace_api.middleware.auth import require_identity
from marketplace_api.models.auth import CurrentUser, Role

logger = structlog.get_logger(__name__)


def is_role_allowed(role: Role, allowed_roles: Iterable[Role]) -> bool:
    """Pure membership check of ``role`` against ``allowed_roles``."""
    return role in set(allowed_roles)


class RoleChecker:
    """
    Dependency class for role checking.

    Example:
        @app.delete("/services/{service_id}")
        async def delete_service(user: CurrentUser = Depends(RoleChecker(Role.ADMIN))):
            ...
    """

    def __init__(self, *allowed_roles: Role):
        """
        Initialize role checker.

        Args:
            allowed_roles: Roles permitted to proceed
        """
        self.allowed_roles = frozenset(allowed_roles)

    async def __call__(
        self,
        request: Request,
        user: CurrentUser = Depends(require_identity)
    ) -> CurrentUser:
        """
        Check if the authenticated user has an allowed role.

        Raises:
            ForbiddenError: If user lacks the required role
        """
        if not is_role_allowed(user.role, self.allowed_roles):
            logger.warning(
                "role_check_failed",
                user_id=user.id,
                role=user.role.value,
                allowed_roles=sorted(r.value for r in self.allowed_roles),
                path=request.url.path
            )
            raise ForbiddenError(
                f"User role {user.role.value} is not authorized to access this route"
            )

        return user


def require_roles(*allowed_roles: Role) -> RoleChecker:
    """
    Create dependency that requires one of the given roles.

    Example:
        @app.get("/bookings", dependencies=[Depends(require_roles(Role.ADMIN))])
    """
    return RoleChecker(*allowed_roles)


require_admin = require_roles(Role.ADMIN)
