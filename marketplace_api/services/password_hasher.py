"""
Password hashing with passlib + bcrypt.
"""

import structlog
from passlib.context import CryptContext

from marketplace_api.config import Settings
from marketplace_api.errors import InputValidationError
from marketplace_api.models.auth import PASSWORD_MAX_BYTES

logger = structlog.get_logger(__name__)


def _exceeds_bcrypt_limit(password: str) -> bool:
    return len(password.encode("utf-8")) > PASSWORD_MAX_BYTES


class PasswordHasher:
    """bcrypt hasher with a configurable cost factor."""

    def __init__(self, settings: Settings):
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=settings.password_bcrypt_rounds
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password

        Raises:
            InputValidationError: Password is longer than bcrypt can read
        """
        if _exceeds_bcrypt_limit(password):
            raise InputValidationError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
        hashed = self.pwd_context.hash(password)
        logger.debug("password_hashed")
        return hashed

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        A malformed or empty digest, or a password bcrypt would truncate,
        is reported as a mismatch.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password

        Returns:
            True if password matches, False otherwise
        """
        if not hashed_password or _exceeds_bcrypt_limit(plain_password):
            return False
        try:
            verified = self.pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.warning("password_verify_failed", error=str(e))
            return False
        logger.debug("password_verified", verified=verified)
        return verified
