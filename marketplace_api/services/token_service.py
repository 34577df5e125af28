"""
JWT issuing and verification (python-jose, HMAC).

Tokens carry ``sub`` (user id), ``iat`` and ``exp``. There is no refresh
mechanism; an expired token simply stops verifying.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import JWTError, jwt
from pydantic import ValidationError

from marketplace_api.config import Settings
from marketplace_api.errors import InvalidTokenError
from marketplace_api.models.auth import TokenPayload

logger = structlog.get_logger(__name__)


class TokenService:
    """Issues and verifies signed bearer tokens."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.jwt_secret_key
        self.algorithm = settings.jwt_algorithm
        self.expires_delta = timedelta(days=settings.jwt_access_token_expire_days)

    def issue(self, user_id: str, now: Optional[datetime] = None) -> str:
        """
        Create a signed token for ``user_id``.

        Args:
            user_id: Subject of the token
            now: Issuance time (defaults to the current UTC time)

        Returns:
            Encoded JWT
        """
        issued_at = now or datetime.now(timezone.utc)
        claims = {
            "sub": user_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.expires_delta).timestamp()),
        }
        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        logger.debug("access_token_created", user_id=user_id)
        return token

    def verify(self, token: str) -> str:
        """
        Verify a token and return its subject.

        Raises:
            InvalidTokenError: Bad signature, malformed payload, missing
                subject or expired token
        """
        try:
            claims = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.debug("token_decode_failed", error=str(e))
            raise InvalidTokenError() from e

        try:
            payload = TokenPayload(**claims)
        except (ValidationError, TypeError) as e:
            logger.debug("token_payload_invalid", error=str(e))
            raise InvalidTokenError() from e

        return payload.sub
