"""
Identity lifecycle: registration, confirmation, login, federated login,
session refresh, password and email changes, and admin status changes.

State changes go through CredentialStore.apply with a per-flow command, so
each single-use token is redeemed by one guarded UPDATE. Emails are sent
only after the change is committed; a failed send is logged and never
undoes the change.
"""

import logging
import re
import secrets
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from urllib.parse import urlencode

from app.core.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)
from app.core.security import (
    NAME_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    USERNAME_PATTERN,
    hash_password,
    new_token,
    tokens_match,
    verify_password,
)
from app.models.user import AuthType, Role, User
from app.schemas.user import LoginResult, PublicProfile, RefreshedTokens, RegisteredUser, SafeUser
from app.services import email_templates
from app.services.commands import (
    ChangePassword,
    ConfirmAccount,
    ConfirmEmailChange,
    IssueRefreshToken,
    RequestEmailChange,
    ResetPassword,
    RotateRefreshToken,
    SetBanStatus,
    SetConfirmationToken,
    SetResetPasswordToken,
    UpdateProfile,
)
from app.services.credential_store import CredentialStore, normalize_email
from app.services.federated import FederatedClaims, FederatedVerificationError, IdentityVerifier
from app.services.media import MediaStore, MediaStoreError
from app.services.notifications import NotificationDispatcher
from app.services.sessions import SessionIssuer

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

BAN_ACTIONS = ("ban", "unban")
FEDERATED_USERNAME_ATTEMPTS = 3
FEDERATED_USERNAME_SUFFIX_BYTES = 3

MSG_USER_NOT_FOUND = "User does not exists."
MSG_ALREADY_CONFIRMED = "Hey there! Your account is already confirmed. Feel free to log in."
MSG_INVALID_CONFIRMATION = "Uh-oh! The account confirmation token provided is invalid."
MSG_REFRESH_INVALID = (
    "The refresh token provided is invalid or has expired. "
    "Please login again to obtain a new refresh token."
)
MSG_RESET_LINK_INVALID = (
    "You might have clicked on a broken link. Please request a new link to reset your password."
)
MSG_EMAIL_CHANGE_DENIED = (
    "Sorry, you don't have permission to update this email address. "
    "Please click on the correct link."
)
MSG_EMAIL_IN_USE = "This email address is already in use. Please provide a different email address."
MSG_NOT_OWNER = (
    "Sorry, you don't have permission to perform this operation. Please provide a valid user id."
)


def build_link(route: str, user_id: int, token_field: str, token: str) -> str:
    """``<route>?userId=<id>&<token_field>=<token>`` with URL-encoded values."""
    return f"{route}?{urlencode({'userId': str(user_id), token_field: token})}"


class IdentityManager:
    """Runs every account flow against one store, session issuer and set of side-effect collaborators."""

    def __init__(
        self,
        store: CredentialStore,
        sessions: SessionIssuer,
        dispatcher: NotificationDispatcher,
        settings: "Settings",
        verifier: IdentityVerifier | None = None,
        media_store: MediaStore | None = None,
    ) -> None:
        self.store = store
        self.sessions = sessions
        self.dispatcher = dispatcher
        self.settings = settings
        self.verifier = verifier
        self.media_store = media_store

    # Registration and confirmation

    def register(self, name: str, username: str, email: str, password: str) -> RegisteredUser:
        name = name.strip()
        username = username.strip()
        email = normalize_email(email)

        existing = self.store.find_by_username_or_email(username, email)
        if existing is not None:
            which = "email" if existing.email == email else "username"
            raise ConflictError(f"A user already exists with the same {which}.")

        token = self._new_token()
        user = self.store.create(
            User(
                name=name,
                username=username,
                email=email,
                password_hash=self._hash(password),
                role=Role.USER,
                auth_type=AuthType.LOCAL,
                is_account_confirmed=False,
                is_banned=False,
                confirmation_token=token,
            )
        )
        logger.info("User registered", extra={"user_id": user.id})

        self._send_confirmation(user, token)
        safe = SafeUser.from_user(user)
        return RegisteredUser.model_validate({**safe.model_dump(), "confirmation_token": token})

    def resend_confirmation(self, email: str) -> None:
        """Unknown addresses get the same outcome as known ones, minus the email."""
        user = self.store.find_by_email(email)
        if user is None:
            logger.info("Confirmation resend for unknown email; nothing sent")
            return
        if user.is_account_confirmed:
            raise ConflictError("Your account is already confirmed. Feel free to log in.")

        token = self._new_token()
        if not self.store.apply(user.id, SetConfirmationToken(token)):
            raise ConflictError("Your account is already confirmed. Feel free to log in.")
        self._send_confirmation(user, token)

    def confirm_account(self, user_id: int, token: str) -> SafeUser:
        user = self._get(user_id)
        if user.is_account_confirmed:
            raise ConflictError(MSG_ALREADY_CONFIRMED, status_code=400)
        if not tokens_match(token, user.confirmation_token):
            raise UnauthorizedError(MSG_INVALID_CONFIRMATION, status_code=400)

        if not self.store.apply(user.id, ConfirmAccount(token)):
            # Another request redeemed or replaced the token first.
            current = self._get(user_id)
            if current.is_account_confirmed:
                raise ConflictError(MSG_ALREADY_CONFIRMED, status_code=400)
            raise UnauthorizedError(MSG_INVALID_CONFIRMATION, status_code=400)

        logger.info("Account confirmed", extra={"user_id": user_id})
        return SafeUser.from_user(self._get(user_id))

    # Sessions

    def login(self, identifier: str, password: str, device: str | None = None) -> LoginResult:
        user = self.store.find_by_identifier(identifier)
        if user is None:
            raise NotFoundError(
                "Oops! We couldn't find a user with the provided email or username."
            )
        if user.auth_type is not AuthType.LOCAL:
            provider = user.auth_type.value
            raise ConflictError(
                f"You have already an account created using {provider}. "
                f"Try to login with {provider}."
            )
        if not self._verify(password, user.password_hash):
            raise UnauthorizedError("Incorrect username or password. Please try again.")
        if user.is_banned:
            raise ForbiddenError(self._suspended_message())
        if not user.is_account_confirmed:
            raise ForbiddenError(
                "Account Not Confirmed. Your account needs to be confirmed. "
                "Please check your email inbox for the confirmation link."
            )

        result = self._start_session(user)
        logger.info("User logged in", extra={"user_id": user.id})

        login_time = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
        self._notify(
            result.user.email,
            "New login detected",
            email_templates.new_login_email(
                result.user.username,
                login_time,
                device or "Unknown device",
                self.settings.PROJECT_NAME,
            ),
            flow="login",
        )
        return result

    def social_login(self, assertion: str) -> LoginResult:
        """
        Sign in with a provider assertion. Creates a confirmed, password-less
        account on first use; refuses emails that belong to a password account.
        """
        if self.verifier is None:
            raise InternalError("Social login is not configured.")
        try:
            claims = self.verifier.verify(assertion)
        except FederatedVerificationError as e:
            raise UnauthorizedError(e.message) from e

        user = self.store.find_by_email(claims.email)
        if user is None:
            user = self._create_federated_user(claims)
        self._check_federated_login(user)

        result = self._start_session(user)
        logger.info(
            "Federated login",
            extra={"user_id": user.id, "provider": claims.provider.value},
        )
        return result

    def refresh_session(self, user_id: int, refresh_token: str) -> RefreshedTokens:
        """
        Exchange the stored refresh token for a new pair. The stored value is
        replaced in the same guarded update, so the presented token is dead
        afterwards and a concurrent second exchange fails.
        """
        try:
            token_user_id = self.sessions.verify_refresh(refresh_token)
        except UnauthorizedError as e:
            raise UnauthorizedError(MSG_REFRESH_INVALID) from e
        if token_user_id != user_id:
            raise UnauthorizedError(MSG_REFRESH_INVALID)

        user = self._get(user_id)
        if not tokens_match(refresh_token, user.refresh_token):
            raise UnauthorizedError(MSG_REFRESH_INVALID)

        pair = self.sessions.mint_pair(user.id, user.role)
        if not self.store.apply(user.id, RotateRefreshToken(refresh_token, pair.refresh_token)):
            raise UnauthorizedError(MSG_REFRESH_INVALID)
        return RefreshedTokens(
            new_access_token=pair.access_token,
            new_refresh_token=pair.refresh_token,
        )

    # Passwords

    def change_password(self, user_id: int, old_password: str, new_password: str) -> SafeUser:
        """Other sessions stay valid after a password change."""
        user = self._get(user_id)
        current_hash = user.password_hash
        if not self._verify(old_password, current_hash):
            raise ValidationFailedError(
                "Incorrect old password. Please try again with the correct password."
            )
        if not self.store.apply(user.id, ChangePassword(current_hash, self._hash(new_password))):
            raise ConflictError("Your password was changed by another request. Please try again.")

        user = self._get(user_id)
        self._notify(
            user.email,
            "Password changed",
            email_templates.password_changed_email(user.username, self.settings.PROJECT_NAME),
            flow="change_password",
        )
        return SafeUser.from_user(user)

    def forgot_password(self, email: str) -> None:
        """Same outcome whether or not the address belongs to a password account."""
        user = self.store.find_by_email(email)
        if user is None or user.auth_type is not AuthType.LOCAL:
            logger.info("Password reset requested for unknown or federated email; nothing sent")
            return

        token = self._new_token()
        if not self.store.apply(user.id, SetResetPasswordToken(token)):
            return
        link = build_link(self.settings.RESET_PASSWORD_ROUTE, user.id, "resetPasswordToken", token)
        self._notify(
            user.email,
            f"{self.settings.PROJECT_NAME} Password Reset",
            email_templates.password_reset_email(user.name, link, self.settings.PROJECT_NAME),
            flow="forgot_password",
        )

    def reset_password(self, user_id: int, token: str, new_password: str) -> SafeUser:
        user = self._get(user_id, "User not found. Please ensure your userId is valid.")
        if not tokens_match(token, user.reset_password_token):
            raise UnauthorizedError(MSG_RESET_LINK_INVALID)
        if not self.store.apply(user.id, ResetPassword(token, self._hash(new_password))):
            raise UnauthorizedError(MSG_RESET_LINK_INVALID)
        logger.info("Password reset", extra={"user_id": user_id})
        return SafeUser.from_user(self._get(user_id))

    # Email change

    def request_email_change(self, user_id: int, new_email: str, password: str) -> SafeUser:
        """Phase one: park the new address and mail a confirmation link to it."""
        new_email = normalize_email(new_email)
        user = self._get(user_id)
        if self.store.email_in_use(new_email, exclude_user_id=user.id):
            raise ConflictError(MSG_EMAIL_IN_USE)
        if not self._verify(password, user.password_hash):
            raise UnauthorizedError(
                "Incorrect password. Please provide correct password and try again."
            )

        token = self._new_token()
        if not self.store.apply(user.id, RequestEmailChange(new_email, token)):
            raise NotFoundError(MSG_USER_NOT_FOUND)

        user = self._get(user_id)
        link = build_link(
            self.settings.EMAIL_CHANGE_CONFIRMATION_ROUTE, user.id, "confirmationToken", token
        )
        self._notify(
            new_email,
            f"{self.settings.PROJECT_NAME} Email change request",
            email_templates.email_change_confirmation_email(
                user.name, link, self.settings.PROJECT_NAME
            ),
            flow="request_email_change",
        )
        return SafeUser.from_user(user)

    def confirm_email_change(self, user_id: int, token: str) -> SafeUser:
        """Phase two: promote the pending address and tell the old one about it."""
        user = self._get(
            user_id, "User not found. Please ensure that you have clicked on the correct link."
        )
        pending_email = user.pending_email
        if not pending_email or not tokens_match(token, user.change_email_token):
            raise UnauthorizedError(MSG_EMAIL_CHANGE_DENIED)

        old_email = user.email
        if not self.store.apply(user.id, ConfirmEmailChange(token, old_email, pending_email)):
            raise UnauthorizedError(MSG_EMAIL_CHANGE_DENIED)
        logger.info("Email changed", extra={"user_id": user_id})

        user = self._get(user_id)
        self._notify(
            old_email,
            "Email changed",
            email_templates.email_changed_email(user.name, user.email, self.settings.PROJECT_NAME),
            flow="confirm_email_change",
        )
        return SafeUser.from_user(user)

    # Reads and profile

    def get_current_user(self, user_id: int, principal_id: int) -> SafeUser:
        if user_id != principal_id:
            raise ForbiddenError(MSG_NOT_OWNER)
        user = self._get(principal_id)
        if user.is_banned:
            raise ForbiddenError(self._suspended_message())
        return SafeUser.from_user(user)

    def get_public_profile(self, user_id: int) -> PublicProfile:
        user = self._get(user_id)
        if user.is_banned:
            raise ForbiddenError(self._suspended_message())
        return PublicProfile.from_user(user)

    def update_profile(
        self,
        user_id: int,
        principal_id: int,
        name: str | None = None,
        username: str | None = None,
        avatar_url: str | None = None,
        avatar_id: str | None = None,
    ) -> SafeUser:
        if user_id != principal_id:
            raise ForbiddenError(MSG_NOT_OWNER)
        command = UpdateProfile(
            name=name.strip() if name is not None else None,
            username=username.strip() if username is not None else None,
            avatar_url=avatar_url,
            avatar_id=avatar_id,
        )
        if not command.values():
            raise ValidationFailedError(
                "Invalid update. Please provide required fields to update account."
            )
        if command.name is not None and len(command.name) < NAME_MIN_LEN:
            raise ValidationFailedError(f"name must be at least {NAME_MIN_LEN} characters long.")
        if command.username is not None:
            if not _valid_username(command.username):
                raise ValidationFailedError(
                    "Invalid username. The username must start with a letter and contain "
                    "only letters, numbers, hyphens and underscores."
                )
            existing = self.store.find_by_username(command.username)
            if existing is not None and existing.id != user_id:
                raise ConflictError(
                    "This username is already in use. Please provide a different username."
                )

        if not self.store.apply(user_id, command):
            raise NotFoundError(MSG_USER_NOT_FOUND)
        return SafeUser.from_user(self._get(user_id))

    # Admin

    def set_ban_status(self, user_id: int, action: str) -> SafeUser:
        """
        Ban or unban. Access tokens already issued keep working until they
        expire; new logins and current-user reads are refused.
        """
        action = (action or "").strip().lower()
        if action not in BAN_ACTIONS:
            raise ValidationFailedError("Invalid action. The action must be either 'ban' or 'unban'.")
        banned = action == "ban"

        user = self._get(user_id)
        if user.is_banned == banned:
            raise ConflictError(f"User is already {action}ned.")
        if not self.store.apply(user.id, SetBanStatus(banned)):
            raise ConflictError(f"User is already {action}ned.")

        logger.info("User status changed", extra={"user_id": user_id, "action": action})
        return SafeUser.from_user(self._get(user_id))

    def delete_user(self, user_id: int) -> None:
        """Delete a non-admin account, then try to remove its hosted avatar."""
        user = self._get(user_id)
        if user.role is not Role.USER:
            raise ForbiddenError("Admin accounts cannot be deleted.")
        avatar_id = user.avatar_id

        if not self.store.delete_by_id(user_id, Role.USER):
            raise NotFoundError(MSG_USER_NOT_FOUND)
        logger.info("User deleted", extra={"user_id": user_id})

        if avatar_id and self.media_store is not None:
            try:
                self.media_store.delete(avatar_id)
            except MediaStoreError as e:
                logger.warning(
                    "Avatar cleanup failed",
                    extra={"user_id": user_id, "reason": e.message[:500]},
                )

    # Helpers

    def _get(self, user_id: int, message: str = MSG_USER_NOT_FOUND) -> User:
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFoundError(message)
        return user

    def _new_token(self) -> str:
        return new_token(self.settings.TOKEN_BYTES)

    def _hash(self, password: str) -> str:
        try:
            return hash_password(password, rounds=self.settings.BCRYPT_ROUNDS)
        except (ValueError, TypeError) as e:
            raise InternalError("Could not hash the password.") from e

    def _verify(self, password: str, password_hash: str | None) -> bool:
        return verify_password(password, password_hash, rounds=self.settings.BCRYPT_ROUNDS)

    def _suspended_message(self) -> str:
        return (
            "Your account has been temporarily suspended. For assistance, please contact "
            f"our support team at [{self.settings.SUPPORT_EMAIL}]. "
            "Thank you for your understanding."
        )

    def _start_session(self, user: User) -> LoginResult:
        pair = self.sessions.mint_pair(user.id, user.role)
        if not self.store.apply(user.id, IssueRefreshToken(pair.refresh_token)):
            raise NotFoundError(MSG_USER_NOT_FOUND)
        return LoginResult(
            user=SafeUser.from_user(self._get(user.id)),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )

    def _send_confirmation(self, user: User, token: str) -> None:
        link = build_link(
            self.settings.ACCOUNT_CONFIRMATION_ROUTE, user.id, "confirmationToken", token
        )
        self._notify(
            user.email,
            f"{self.settings.PROJECT_NAME} Account confirmation",
            email_templates.account_confirmation_email(
                user.name, link, self.settings.PROJECT_NAME
            ),
            flow="confirmation",
        )

    def _create_federated_user(self, claims: FederatedClaims) -> User:
        display_name = (claims.name or "").strip() or claims.email.split("@")[0]
        for attempt in range(1, FEDERATED_USERNAME_ATTEMPTS + 1):
            try:
                return self.store.create(
                    User(
                        name=display_name,
                        username=_federated_username(display_name),
                        email=claims.email,
                        password_hash=None,
                        role=Role.USER,
                        auth_type=claims.provider,
                        is_account_confirmed=True,
                        is_banned=False,
                    )
                )
            except ConflictError:
                # Either another sign-up took this email, or the generated username was taken.
                user = self.store.find_by_email(claims.email)
                if user is not None:
                    return user
                if attempt == FEDERATED_USERNAME_ATTEMPTS:
                    raise
                logger.info("Generated username taken; retrying", extra={"attempt": attempt})
        raise InternalError("Could not create the federated account.")

    def _check_federated_login(self, user: User) -> None:
        # Any federated account may sign in with any provider assertion for its email.
        if user.auth_type is AuthType.LOCAL:
            raise ConflictError(
                "Your email is associated with an account. "
                "Please login with your email & password."
            )
        if user.is_banned:
            raise ForbiddenError(self._suspended_message())

    def _notify(self, recipient: str, subject: str, html_body: str, flow: str) -> None:
        try:
            result = self.dispatcher.send(recipient, subject, html_body)
        except Exception:
            logger.exception("Notification dispatch raised", extra={"flow": flow})
            return
        if not result.success:
            logger.warning(
                "Notification not delivered",
                extra={"flow": flow, "reason": (result.error or "")[:500]},
            )


def _valid_username(username: str) -> bool:
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        return False
    return re.match(USERNAME_PATTERN, username) is not None


def _federated_username(display_name: str) -> str:
    """
    A username that passes the same rules as a chosen one: starts with a letter,
    at most USERNAME_MAX_LEN characters, ending in a random hex suffix.
    """
    base = re.sub(r"[^a-z0-9]", "", display_name.lower()).lstrip("0123456789") or "user"
    suffix = secrets.token_hex(FEDERATED_USERNAME_SUFFIX_BYTES)
    return base[: USERNAME_MAX_LEN - len(suffix)] + suffix
