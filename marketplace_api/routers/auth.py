"""
Authentication router.

Provides REST API endpoints for:
- User registration
- Login
- The current user's identity
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from marketplace_api.dependencies import get_auth_service
from marketplace_api.middleware.auth import require_identity
from marketplace_api.models.auth import (
    AuthResponse,
    CurrentUser,
    LoginRequest,
    RegisterRequest,
)
from marketplace_api.models.common import ErrorResponse, api_response
from marketplace_api.services.auth_service import AuthService

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"model": ErrorResponse, "description": "Validation Error"},
        401: {"model": ErrorResponse, "description": "Unauthorized"}
    }
)


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="""
    Create an account with the ``user`` role and return a bearer token.

    **Authentication:** Not required (public endpoint)

    **Error Responses:**
    - 400: Missing fields, invalid email, short password, or email taken
    """
)
async def register(
    register_request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> JSONResponse:
    auth: AuthResponse = await auth_service.register(register_request)
    return api_response(
        auth.to_api(),
        message="User registered successfully",
        status_code=status.HTTP_201_CREATED
    )


@router.post(
    "/login",
    summary="Login",
    description="""
    Authenticate with email and password.

    **Authentication:** Not required (public endpoint)

    **Error Responses:**
    - 400: Missing fields
    - 401: Invalid credentials
    """
)
async def login(
    login_request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> JSONResponse:
    auth = await auth_service.login(login_request)
    return api_response(auth.to_api(), message="Login successful")


@router.get("/me", summary="Current user")
async def get_me(user: CurrentUser = Depends(require_identity)) -> JSONResponse:
    """Return the identity attached to the bearer token."""
    return api_response(user.to_api())
