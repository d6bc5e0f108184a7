"""Process-wide collaborators, built once at startup and closed at shutdown."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.services.credential_store import CredentialStore
from app.services.federated import FirebaseIdentityVerifier, IdentityVerifier, init_firebase_app
from app.services.identity import IdentityManager
from app.services.media import CloudinaryMediaStore, MediaStore, build_media_store
from app.services.notifications import NotificationDispatcher, build_dispatcher
from app.services.sessions import SessionIssuer

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: "Settings"
    sessions: SessionIssuer
    dispatcher: NotificationDispatcher
    verifier: IdentityVerifier | None = None
    media_store: MediaStore | None = None

    def identity_manager(self, db: Session) -> IdentityManager:
        """A manager bound to one request's database session."""
        return IdentityManager(
            store=CredentialStore(db),
            sessions=self.sessions,
            dispatcher=self.dispatcher,
            settings=self.settings,
            verifier=self.verifier,
            media_store=self.media_store,
        )

    def close(self) -> None:
        if isinstance(self.verifier, FirebaseIdentityVerifier):
            self.verifier.close()
        if isinstance(self.media_store, CloudinaryMediaStore):
            self.media_store.close()


def build_services(settings: "Settings") -> ServiceContainer:
    verifier: IdentityVerifier | None = None
    if settings.FIREBASE_PROJECT_ID:
        verifier = FirebaseIdentityVerifier(init_firebase_app(settings))
    else:
        logger.info("FIREBASE_PROJECT_ID not set; social login disabled")
    return ServiceContainer(
        settings=settings,
        sessions=SessionIssuer(settings),
        dispatcher=build_dispatcher(settings),
        verifier=verifier,
        media_store=build_media_store(settings),
    )
