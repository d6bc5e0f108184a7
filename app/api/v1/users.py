"""Account confirmation, password and email flows, profile reads/updates, and admin actions."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import EmailStr

from app.api.deps import get_current_principal, get_identity_manager, require_admin
from app.api.responses import success_response
from app.schemas.auth import (
    ChangeEmailRequest,
    ChangePasswordRequest,
    ResetPasswordRequest,
    UpdateProfileRequest,
)
from app.services.identity import IdentityManager
from app.services.sessions import AccessClaims

router = APIRouter()

Manager = Annotated[IdentityManager, Depends(get_identity_manager)]
Principal = Annotated[AccessClaims, Depends(get_current_principal)]
Admin = Annotated[AccessClaims, Depends(require_admin)]
UserIdQuery = Annotated[int, Query(alias="userId", ge=1)]


@router.get("/confirm-account")
def confirm_account(
    user_id: UserIdQuery,
    confirmation_token: Annotated[str, Query(alias="confirmationToken", min_length=1)],
    manager: Manager,
) -> JSONResponse:
    user = manager.confirm_account(user_id, confirmation_token)
    return success_response("Your account has been successfully confirmed.", {"user": user})


@router.get("/resend-confirmation-email")
def resend_confirmation_email(
    email: Annotated[EmailStr, Query()],
    manager: Manager,
) -> JSONResponse:
    """Same response whether or not the address has an account."""
    manager.resend_confirmation(str(email))
    return success_response(
        f"If your account exists, a new confirmation email has been sent to ({email}). "
        "Please check your inbox."
    )


@router.get("/forgot-password")
def forgot_password(
    email: Annotated[EmailStr, Query()],
    manager: Manager,
) -> JSONResponse:
    """Same response whether or not the address has an account."""
    manager.forgot_password(str(email))
    return success_response(
        f"If your account exists, an email has been sent to ({email}) with further instructions."
    )


@router.patch("/reset-password")
def reset_password(
    user_id: UserIdQuery,
    reset_password_token: Annotated[str, Query(alias="resetPasswordToken", min_length=1)],
    body: ResetPasswordRequest,
    manager: Manager,
) -> JSONResponse:
    user = manager.reset_password(user_id, reset_password_token, body.new_password)
    return success_response("Password has been reset successfully.", {"user": user})


@router.patch("/confirm-change-email")
def confirm_change_email(
    user_id: UserIdQuery,
    confirmation_token: Annotated[str, Query(alias="confirmationToken", min_length=1)],
    manager: Manager,
) -> JSONResponse:
    user = manager.confirm_email_change(user_id, confirmation_token)
    return success_response("Great! Email changed successfully.", {"user": user})


@router.get("/profile/{user_id}")
def get_public_profile(user_id: int, manager: Manager) -> JSONResponse:
    profile = manager.get_public_profile(user_id)
    return success_response("User profile retrieved successfully.", {"user": profile})


@router.patch("/change-password")
def change_password(
    body: ChangePasswordRequest,
    principal: Principal,
    manager: Manager,
) -> JSONResponse:
    user = manager.change_password(principal.user_id, body.old_password, body.new_password)
    return success_response("Password changed successfully.", {"user": user})


@router.put("/change-email")
def change_email(
    body: ChangeEmailRequest,
    principal: Principal,
    manager: Manager,
) -> JSONResponse:
    user = manager.request_email_change(principal.user_id, str(body.new_email), body.password)
    return success_response(
        f"A confirmation email has been sent to ({body.new_email}). Please check your inbox "
        "and follow the instructions to confirm your email address.",
        {"user": user},
    )


@router.patch("/manage-user-status/{user_id}")
def manage_user_status(
    user_id: int,
    action: Annotated[str, Query(min_length=1)],
    _admin: Admin,
    manager: Manager,
) -> JSONResponse:
    """Ban or unban a user (admin only). Reapplying the current status is a conflict."""
    user = manager.set_ban_status(user_id, action)
    action_message = "banned" if action.strip().lower() == "ban" else "unbanned"
    return success_response(f"User {action_message} successfully.", user)


@router.get("/{user_id}")
def get_current_user(user_id: int, principal: Principal, manager: Manager) -> JSONResponse:
    user = manager.get_current_user(user_id, principal.user_id)
    return success_response("User retrieved successfully.", {"user": user})


@router.patch("/{user_id}")
def update_account_details(
    user_id: int,
    body: UpdateProfileRequest,
    principal: Principal,
    manager: Manager,
) -> JSONResponse:
    user = manager.update_profile(
        user_id,
        principal.user_id,
        name=body.name,
        username=body.username,
        avatar_url=str(body.avatar_url) if body.avatar_url is not None else None,
        avatar_id=body.avatar_id,
    )
    return success_response("Account updated successfully.", {"user": user})


@router.delete("/{user_id}")
def delete_user(user_id: int, _admin: Admin, manager: Manager) -> JSONResponse:
    """Delete a non-admin user (admin only)."""
    manager.delete_user(user_id)
    return success_response("User deleted successfully.")
