"""ORM model for user accounts and their credential state."""

import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String, func

from app.models.base import Base


class Role(str, enum.Enum):
    """Closed set of roles carried in access tokens."""

    USER = "user"
    ADMIN = "admin"


class AuthType(str, enum.Enum):
    """Where an account's credential comes from: local password or an identity provider."""

    LOCAL = "local"
    GOOGLE = "google"
    GITHUB = "github"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    MICROSOFT = "microsoft"
    APPLE = "apple"

    @property
    def is_federated(self) -> bool:
        return self is not AuthType.LOCAL


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class User(Base):
    """
    One account. Authentication state is kept in flat columns.

    password_hash is set only for auth_type 'local'. The three single-use
    tokens and pending_email are NULL unless their flow is in progress.
    refresh_token holds the only refresh token that will be accepted.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=False, unique=True, index=True)
    avatar_url = Column(String(2048), nullable=True)
    avatar_id = Column(String(255), nullable=True)

    password_hash = Column(String(255), nullable=True)
    role = Column(
        Enum(Role, native_enum=False, length=32, values_callable=_enum_values),
        nullable=False,
        default=Role.USER,
    )
    auth_type = Column(
        Enum(AuthType, native_enum=False, length=32, values_callable=_enum_values),
        nullable=False,
        default=AuthType.LOCAL,
    )
    is_account_confirmed = Column(Boolean, nullable=False, default=False)
    confirmation_token = Column(String(255), nullable=True)
    reset_password_token = Column(String(255), nullable=True)
    change_email_token = Column(String(255), nullable=True)
    pending_email = Column(String(320), nullable=True)
    refresh_token = Column(String(1024), nullable=True)

    is_banned = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        return f"<User {self.id} {self.username}>"
