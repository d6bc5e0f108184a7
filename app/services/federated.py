"""Federated identity: turn an identity-provider ID token into verified name/email/provider claims."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import firebase_admin
from firebase_admin import auth, credentials

from app.models.user import AuthType

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "identity-api"


class FederatedVerificationError(Exception):
    """Raised when an assertion cannot be verified (bad signature, audience, expiry, or claims)."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class FederatedClaims:
    name: str | None
    email: str
    provider: AuthType


class IdentityVerifier(Protocol):
    def verify(self, assertion: str) -> FederatedClaims: ...


def provider_from_sign_in(sign_in_provider: str | None) -> AuthType:
    """Map a sign-in provider id such as 'google.com' to an AuthType."""
    label = (sign_in_provider or "").split(".")[0].strip().lower()
    try:
        provider = AuthType(label)
    except ValueError:
        raise FederatedVerificationError(f"Unsupported sign-in provider: {label or 'unknown'}.")
    if not provider.is_federated:
        raise FederatedVerificationError("Password sign-in is not a federated provider.")
    return provider


def init_firebase_app(settings: "Settings") -> firebase_admin.App:
    """
    Initialize (or reuse) the named Firebase app used for ID token checks.

    A service-account file is optional: verifying ID tokens needs only the
    project id, so application default credentials are used without one.
    """
    if not settings.FIREBASE_PROJECT_ID:
        raise ValueError("FIREBASE_PROJECT_ID is required for federated login.")
    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass
    if settings.FIREBASE_CREDENTIALS_FILE:
        credential = credentials.Certificate(settings.FIREBASE_CREDENTIALS_FILE)
    else:
        credential = credentials.ApplicationDefault()
    return firebase_admin.initialize_app(
        credential,
        options={"projectId": settings.FIREBASE_PROJECT_ID},
        name=FIREBASE_APP_NAME,
    )


class FirebaseIdentityVerifier:
    """Verifies Firebase Authentication ID tokens with the Admin SDK."""

    def __init__(self, app: firebase_admin.App) -> None:
        self._app = app

    def verify(self, assertion: str) -> FederatedClaims:
        try:
            payload = auth.verify_id_token(assertion, app=self._app)
        except (auth.InvalidIdTokenError, auth.CertificateFetchError, ValueError) as e:
            logger.info("Federated token rejected", extra={"reason": type(e).__name__})
            raise FederatedVerificationError("Invalid token") from e

        email = (payload.get("email") or "").strip()
        if not email:
            raise FederatedVerificationError("Token carries no email address.")
        firebase = payload.get("firebase") or {}
        provider = provider_from_sign_in(firebase.get("sign_in_provider"))
        return FederatedClaims(name=payload.get("name"), email=email, provider=provider)

    def close(self) -> None:
        firebase_admin.delete_app(self._app)
