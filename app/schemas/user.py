"""Outward projections of a user record and results of identity flows."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.models.user import AuthType, Role, User


class CamelModel(BaseModel):
    """Serializes field names as camelCase (the API's wire format)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Avatar(CamelModel):
    url: str | None = None
    id: str | None = None


class SafeUser(CamelModel):
    """
    A user record with every secret removed: no password hash, no tokens,
    no pending email, no ban flag.
    """

    id: int
    name: str
    username: str
    email: str
    avatar: Avatar | None = None
    role: Role
    auth_type: AuthType
    is_account_confirmed: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "SafeUser":
        avatar = None
        if user.avatar_url or user.avatar_id:
            avatar = Avatar(url=user.avatar_url, id=user.avatar_id)
        return cls(
            id=user.id,
            name=user.name,
            username=user.username,
            email=user.email,
            avatar=avatar,
            role=user.role,
            auth_type=user.auth_type,
            is_account_confirmed=user.is_account_confirmed,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class RegisteredUser(SafeUser):
    """Registration result; carries the confirmation token that was also emailed."""

    confirmation_token: str


class PublicProfile(CamelModel):
    id: int
    username: str
    name: str
    avatar: Avatar | None = None

    @classmethod
    def from_user(cls, user: User) -> "PublicProfile":
        avatar = None
        if user.avatar_url or user.avatar_id:
            avatar = Avatar(url=user.avatar_url, id=user.avatar_id)
        return cls(id=user.id, username=user.username, name=user.name, avatar=avatar)


class LoginResult(CamelModel):
    user: SafeUser
    access_token: str
    refresh_token: str


class RefreshedTokens(CamelModel):
    new_access_token: str
    new_refresh_token: str
