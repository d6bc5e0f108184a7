"""Core configuration, database session, security primitives and error types."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.errors import ErrorSeverity, IdentityError

__all__ = ["ErrorSeverity", "IdentityError", "get_db", "get_settings", "settings"]
