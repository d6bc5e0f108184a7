"""
Per-flow update commands for the credential store.

Each command names the columns it writes and the column values that must
still hold for the write to happen. The store turns one command into a
single ``UPDATE ... WHERE id = :id AND <conditions>`` statement, so a token
can be redeemed or a flag flipped at most once no matter how many requests
race for it.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from app.models.user import AuthType


class UserCommand(Protocol):
    """A guarded write against one user row."""

    def conditions(self) -> dict[str, Any]: ...

    def values(self) -> dict[str, Any]: ...


@dataclass(frozen=True)
class SetConfirmationToken:
    """Store a fresh account-confirmation token while the account is still unconfirmed."""

    token: str

    def conditions(self) -> dict[str, Any]:
        return {"is_account_confirmed": False}

    def values(self) -> dict[str, Any]:
        return {"confirmation_token": self.token}


@dataclass(frozen=True)
class ConfirmAccount:
    token: str

    def conditions(self) -> dict[str, Any]:
        return {"confirmation_token": self.token, "is_account_confirmed": False}

    def values(self) -> dict[str, Any]:
        return {"is_account_confirmed": True, "confirmation_token": None}


@dataclass(frozen=True)
class SetResetPasswordToken:
    token: str

    def conditions(self) -> dict[str, Any]:
        return {"auth_type": AuthType.LOCAL}

    def values(self) -> dict[str, Any]:
        return {"reset_password_token": self.token}


@dataclass(frozen=True)
class ResetPassword:
    """Redeem a reset token: new hash in, token out."""

    token: str
    password_hash: str

    def conditions(self) -> dict[str, Any]:
        return {"reset_password_token": self.token, "auth_type": AuthType.LOCAL}

    def values(self) -> dict[str, Any]:
        return {"password_hash": self.password_hash, "reset_password_token": None}


@dataclass(frozen=True)
class ChangePassword:
    """Replace the hash only if it is still the one the old password was checked against."""

    current_hash: str
    new_hash: str

    def conditions(self) -> dict[str, Any]:
        return {"password_hash": self.current_hash}

    def values(self) -> dict[str, Any]:
        return {"password_hash": self.new_hash}


@dataclass(frozen=True)
class RequestEmailChange:
    pending_email: str
    token: str

    def conditions(self) -> dict[str, Any]:
        return {}

    def values(self) -> dict[str, Any]:
        return {"pending_email": self.pending_email, "change_email_token": self.token}


@dataclass(frozen=True)
class ConfirmEmailChange:
    """Promote pending_email to email and clear the pending state."""

    token: str
    current_email: str
    new_email: str

    def conditions(self) -> dict[str, Any]:
        return {
            "change_email_token": self.token,
            "pending_email": self.new_email,
            "email": self.current_email,
        }

    def values(self) -> dict[str, Any]:
        return {
            "email": self.new_email,
            "pending_email": None,
            "change_email_token": None,
        }


@dataclass(frozen=True)
class IssueRefreshToken:
    """Overwrite whatever refresh token was stored (login)."""

    token: str

    def conditions(self) -> dict[str, Any]:
        return {}

    def values(self) -> dict[str, Any]:
        return {"refresh_token": self.token}


@dataclass(frozen=True)
class RotateRefreshToken:
    current: str
    new: str

    def conditions(self) -> dict[str, Any]:
        return {"refresh_token": self.current}

    def values(self) -> dict[str, Any]:
        return {"refresh_token": self.new}


@dataclass(frozen=True)
class SetBanStatus:
    banned: bool

    def conditions(self) -> dict[str, Any]:
        return {"is_banned": not self.banned}

    def values(self) -> dict[str, Any]:
        return {"is_banned": self.banned}


@dataclass(frozen=True)
class UpdateProfile:
    """Profile fields a user may edit; fields left as None are not written."""

    name: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    avatar_id: str | None = None

    def conditions(self) -> dict[str, Any]:
        return {}

    def values(self) -> dict[str, Any]:
        fields = {
            "name": self.name,
            "username": self.username,
            "avatar_url": self.avatar_url,
            "avatar_id": self.avatar_id,
        }
        return {k: v for k, v in fields.items() if v is not None}
