"""
Authentication service.

Provides:
- Registration and login
- Resolution of a bearer token to the current user
- Password change (re-hashes only on explicit request)
"""

from typing import Optional

import structlog

from marketplace_api.errors import (
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
)
from marketplace_api.models.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    Role,
    UserDB,
)
from marketplace_api.repositories.user_repo import UserRepository
from marketplace_api.services.password_hasher import PasswordHasher
from marketplace_api.services.token_service import TokenService

logger = structlog.get_logger(__name__)


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        user_repo: UserRepository,
        hasher: PasswordHasher,
        tokens: TokenService
    ):
        """
        Initialize auth service.

        Args:
            user_repo: User repository
            hasher: Password hasher
            tokens: Token issuer/verifier
        """
        self.user_repo = user_repo
        self.hasher = hasher
        self.tokens = tokens

    def _auth_response(self, user: UserDB) -> AuthResponse:
        return AuthResponse(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            token=self.tokens.issue(user.id)
        )

    async def register(self, request: RegisterRequest) -> AuthResponse:
        """
        Register a new user with the default role.

        Raises:
            ConflictError: Email is already registered
        """
        existing = await self.user_repo.get_user_by_email(request.email)
        if existing:
            logger.warning("registration_email_taken", email=request.email)
            raise ConflictError("User already exists")

        user = await self.user_repo.create_user(
            name=request.name,
            email=request.email,
            password_hash=self.hasher.hash(request.password),
            role=Role.USER
        )

        logger.info("user_registered", user_id=user.id)
        return self._auth_response(user)

    async def login(self, request: LoginRequest) -> AuthResponse:
        """
        Authenticate with email and password.

        Unknown email and wrong password fail identically.

        Raises:
            UnauthorizedError: Invalid credentials
        """
        user = await self.user_repo.get_user_by_email(request.email)
        if not user or not self.hasher.verify(request.password, user.password_hash):
            logger.warning("login_failed", email=request.email)
            raise UnauthorizedError("Invalid credentials")

        logger.info("user_logged_in", user_id=user.id)
        return self._auth_response(user)

    async def get_current_user(self, token: str) -> Optional[CurrentUser]:
        """
        Resolve a bearer token to a user.

        Args:
            token: JWT token

        Returns:
            CurrentUser if the token verifies and its subject exists, None otherwise
        """
        try:
            user_id = self.tokens.verify(token)
        except InvalidTokenError:
            return None

        user = await self.user_repo.get_user_by_id(user_id)
        if not user:
            logger.warning("token_subject_not_found", user_id=user_id)
            return None

        return CurrentUser.from_user(user)

    async def change_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str
    ) -> None:
        """
        Replace a user's password hash after checking the current password.

        Raises:
            NotFoundError: Unknown user
            UnauthorizedError: Current password does not match
        """
        user = await self.user_repo.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        if not self.hasher.verify(current_password, user.password_hash):
            logger.warning("password_change_rejected", user_id=user_id)
            raise UnauthorizedError("Invalid credentials")

        await self.user_repo.update_password_hash(user_id, self.hasher.hash(new_password))
        logger.info("password_changed", user_id=user_id)
