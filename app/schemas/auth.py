"""Request schemas for auth and account endpoints."""

from pydantic import EmailStr, Field, HttpUrl, field_validator, model_validator

from app.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    USERNAME_PATTERN,
)
from app.schemas.user import CamelModel


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN)
    username: str = Field(
        ...,
        min_length=USERNAME_MIN_LEN,
        max_length=USERNAME_MAX_LEN,
        pattern=USERNAME_PATTERN,
        description="Starts with a letter; letters, digits, hyphens and underscores",
    )
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("name", "username", mode="before")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v


class LoginRequest(CamelModel):
    """Credentials for login; either username or email identifies the account."""

    username: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=320)
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not (self.username or "").strip() and not (self.email or "").strip():
            raise ValueError("Username or email is required.")
        return self

    @property
    def identifier(self) -> str:
        return (self.username or "").strip() or (self.email or "").strip()


class SocialLoginRequest(CamelModel):
    access_token: str = Field(..., min_length=1, description="Identity provider ID token")


class RefreshTokenRequest(CamelModel):
    user_id: int = Field(..., ge=1)
    refresh_token: str = Field(..., min_length=1)


class _NewPasswordMixin(CamelModel):
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    confirm_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match.")
        return self


class ResetPasswordRequest(_NewPasswordMixin):
    pass


class ChangePasswordRequest(_NewPasswordMixin):
    old_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class ChangeEmailRequest(CamelModel):
    new_email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class UpdateProfileRequest(CamelModel):
    name: str | None = Field(default=None, max_length=NAME_MAX_LEN)
    username: str | None = Field(default=None, max_length=USERNAME_MAX_LEN)
    avatar_url: HttpUrl | None = None
    avatar_id: str | None = Field(default=None, max_length=255)
