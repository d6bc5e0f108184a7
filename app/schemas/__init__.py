"""Pydantic request/response schemas."""

from app.schemas.auth import (
    ChangeEmailRequest,
    ChangePasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SocialLoginRequest,
    UpdateProfileRequest,
)
from app.schemas.health import HealthResponse
from app.schemas.user import (
    Avatar,
    LoginResult,
    PublicProfile,
    RefreshedTokens,
    RegisteredUser,
    SafeUser,
)

__all__ = [
    "Avatar",
    "ChangeEmailRequest",
    "ChangePasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "LoginResult",
    "PublicProfile",
    "RefreshTokenRequest",
    "RefreshedTokens",
    "RegisterRequest",
    "RegisteredUser",
    "ResetPasswordRequest",
    "SafeUser",
    "SocialLoginRequest",
    "UpdateProfileRequest",
]
