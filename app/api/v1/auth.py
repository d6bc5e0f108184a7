"""Registration, login, federated login and access-token refresh."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.api.deps import get_identity_manager
from app.api.responses import success_response
from app.schemas.auth import (
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    SocialLoginRequest,
)
from app.services.identity import IdentityManager

router = APIRouter()

Manager = Annotated[IdentityManager, Depends(get_identity_manager)]


@router.post("/register", status_code=201)
def register(body: RegisterRequest, manager: Manager) -> JSONResponse:
    """Create a local account and email a confirmation link to it."""
    user = manager.register(body.name, body.username, str(body.email), body.password)
    return success_response(
        "User registered successfully. Please check your email inbox to confirm your account.",
        {"user": user},
        status_code=201,
    )


@router.post("/login")
def login(body: LoginRequest, request: Request, manager: Manager) -> JSONResponse:
    """
    Authenticate with username or email plus password; returns an access and a
    refresh token. Send the access token as: Authorization: Bearer <accessToken>
    """
    result = manager.login(
        body.identifier,
        body.password,
        device=request.headers.get("user-agent"),
    )
    return success_response("User logged in successfully.", result)


@router.post("/social-login")
def social_login(body: SocialLoginRequest, manager: Manager) -> JSONResponse:
    result = manager.social_login(body.access_token)
    return success_response(
        f"Logged in successfully using {result.user.auth_type.value}.",
        result,
    )


@router.patch("/refresh-access-token")
def refresh_access_token(body: RefreshTokenRequest, manager: Manager) -> JSONResponse:
    """Rotate the refresh token; the one presented stops working."""
    tokens = manager.refresh_session(body.user_id, body.refresh_token)
    return success_response("Access token refreshed successfully.", tokens)
