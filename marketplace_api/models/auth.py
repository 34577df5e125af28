"""
Authentication and user models.

Provides Pydantic schemas for:
- User documents as stored in MongoDB
- Registration and login requests
- Auth responses carrying the bearer token
- The authenticated identity attached to a request
- JWT token payloads
"""

from datetime import datetime
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, EmailStr, Field, StringConstraints, field_validator

from marketplace_api.models.common import CamelModel


# ============================================================================
# Role Enum
# ============================================================================


class Role(str, Enum):
    """
    Coarse permission tag controlling access to restricted operations.

    - USER: default for every registered account
    - ADMIN: catalog and booking management
    """
    USER = "user"
    ADMIN = "admin"


# bcrypt only reads the first 72 bytes of a password.
PASSWORD_MAX_BYTES = 72

# Passwords are hashed exactly as given, never whitespace-stripped.
RawPassword = Annotated[str, StringConstraints(strip_whitespace=False)]


def check_password_length(password: str) -> str:
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_BYTES} bytes")
    return password


# ============================================================================
# Stored Models
# ============================================================================


class UserDB(BaseModel):
    """User document as loaded from the credential store."""
    id: str
    name: str
    email: str
    password_hash: str
    role: Role = Role.USER
    created_at: datetime


# ============================================================================
# Pydantic Request Models
# ============================================================================


class RegisterRequest(CamelModel):
    """Registration request schema."""
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    email: EmailStr = Field(
        ...,
        description="Email address (stored lowercase)"
    )
    password: RawPassword = Field(
        ...,
        min_length=6,
        description="Password (at least 6 characters, at most 72 bytes)"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_length(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Jane Doe",
                "email": "jane@example.com",
                "password": "secret1"
            }
        }
    }


class LoginRequest(CamelModel):
    """Login request schema."""
    email: EmailStr = Field(
        ...,
        description="Email address"
    )
    password: RawPassword = Field(
        ...,
        min_length=1,
        description="Password"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


# ============================================================================
# Pydantic Response Models
# ============================================================================


class CurrentUser(CamelModel):
    """
    Authenticated identity attached to a request.

    Never carries the password hash.
    """
    id: str = Field(
        ...,
        description="User ID"
    )
    name: str = Field(
        ...,
        description="Display name"
    )
    email: str = Field(
        ...,
        description="Email address"
    )
    role: Role = Field(
        ...,
        description="User role"
    )

    @classmethod
    def from_user(cls, user: UserDB) -> "CurrentUser":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role)


class AuthResponse(CurrentUser):
    """Identity plus a freshly issued bearer token."""
    token: str = Field(
        ...,
        min_length=10,
        description="JWT bearer token"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "665f1c2e8b3e4a0012345678",
                "name": "Jane Doe",
                "email": "jane@example.com",
                "role": "user",
                "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."
            }
        }
    }


class UserSummary(CamelModel):
    """Owner summary embedded in admin booking views."""
    id: str
    name: str
    email: str


# ============================================================================
# Token Models
# ============================================================================


class TokenPayload(BaseModel):
    """
    JWT token payload/claims.

    Contains the user identity embedded in the token.
    """
    sub: str = Field(
        ...,
        min_length=1,
        description="Subject (user ID)"
    )
    exp: int = Field(
        ...,
        description="Expiration timestamp (Unix epoch)"
    )
    iat: int = Field(
        ...,
        description="Issued at timestamp (Unix epoch)"
    )
