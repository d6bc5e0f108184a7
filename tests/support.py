"""Shared builders for tests: settings, a throwaway SQLite database, and managers."""

import os
import tempfile
from unittest.mock import MagicMock

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import Settings
from app.models import Base
from app.services.credential_store import CredentialStore
from app.services.identity import IdentityManager
from app.services.notifications import DispatchResult
from app.services.sessions import SessionIssuer


def make_settings(**overrides) -> Settings:
    """Fast bcrypt, short tokens, no SMTP / Firebase / Cloudinary unless overridden."""
    values = {
        "APP_ENV": "dev",
        "DATABASE_URL": "sqlite://",
        "ACCESS_TOKEN_SECRET": "test-access-secret",
        "REFRESH_TOKEN_SECRET": "test-refresh-secret",
        "BCRYPT_ROUNDS": 4,
        "TOKEN_BYTES": 32,
        "SMTP_HOST": None,
        "FIREBASE_PROJECT_ID": None,
        "CLOUDINARY_CLOUD_NAME": None,
        "SUPPORT_EMAIL": "support@example.com",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TempDatabase:
    """A file-backed SQLite database with the schema created; one connection per session."""

    def __init__(self) -> None:
        self._dir = tempfile.TemporaryDirectory()
        path = os.path.join(self._dir.name, "identity.db")
        self.engine = create_engine(
            f"sqlite:///{path}",
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def close(self) -> None:
        self.engine.dispose()
        self._dir.cleanup()


def make_dispatcher() -> MagicMock:
    dispatcher = MagicMock()
    dispatcher.send.return_value = DispatchResult(success=True, message_id="<test>")
    return dispatcher


def make_manager(session, settings, dispatcher=None, verifier=None, media_store=None) -> IdentityManager:
    return IdentityManager(
        store=CredentialStore(session),
        sessions=SessionIssuer(settings),
        dispatcher=dispatcher if dispatcher is not None else make_dispatcher(),
        settings=settings,
        verifier=verifier,
        media_store=media_store,
    )


def sent_to(dispatcher: MagicMock) -> list[str]:
    """Recipients of every message sent through a mock dispatcher, in order."""
    return [c.args[0] for c in dispatcher.send.call_args_list]
