"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.user import AuthType, Role, User

__all__ = ["AuthType", "Base", "Role", "User"]
