"""Unit tests for Firebase ID token verification (the Admin SDK call is mocked)."""

import unittest
from unittest.mock import MagicMock, patch

from firebase_admin import auth

from app.models.user import AuthType
from app.services.federated import (
    FIREBASE_APP_NAME,
    FederatedVerificationError,
    FirebaseIdentityVerifier,
    init_firebase_app,
    provider_from_sign_in,
)
from tests.support import make_settings

PROJECT_ID = "identity-test"


def _decoded(**overrides) -> dict:
    decoded = {
        "uid": "firebase-uid-1",
        "email": "gina@example.com",
        "name": "Gina Google",
        "firebase": {"sign_in_provider": "google.com"},
    }
    decoded.update(overrides)
    return decoded


class TestProviderFromSignIn(unittest.TestCase):
    def test_known_providers(self) -> None:
        self.assertIs(provider_from_sign_in("google.com"), AuthType.GOOGLE)
        self.assertIs(provider_from_sign_in("github.com"), AuthType.GITHUB)

    def test_password_is_not_federated(self) -> None:
        with self.assertRaises(FederatedVerificationError):
            provider_from_sign_in("local")

    def test_unknown_provider(self) -> None:
        with self.assertRaises(FederatedVerificationError):
            provider_from_sign_in("phone")
        with self.assertRaises(FederatedVerificationError):
            provider_from_sign_in(None)


@patch("app.services.federated.auth.verify_id_token")
class TestFirebaseIdentityVerifier(unittest.TestCase):
    def setUp(self) -> None:
        self.app = MagicMock()
        self.verifier = FirebaseIdentityVerifier(self.app)

    def test_valid_token(self, mock_verify: MagicMock) -> None:
        mock_verify.return_value = _decoded()
        claims = self.verifier.verify("id-token")
        mock_verify.assert_called_once_with("id-token", app=self.app)
        self.assertEqual(claims.email, "gina@example.com")
        self.assertEqual(claims.name, "Gina Google")
        self.assertIs(claims.provider, AuthType.GOOGLE)

    def test_invalid_token(self, mock_verify: MagicMock) -> None:
        mock_verify.side_effect = auth.InvalidIdTokenError("Token has wrong audience")
        with self.assertRaises(FederatedVerificationError) as ctx:
            self.verifier.verify("id-token")
        self.assertEqual(ctx.exception.message, "Invalid token")

    def test_expired_token(self, mock_verify: MagicMock) -> None:
        mock_verify.side_effect = auth.ExpiredIdTokenError("Token expired", cause=None)
        with self.assertRaises(FederatedVerificationError):
            self.verifier.verify("id-token")

    def test_malformed_argument(self, mock_verify: MagicMock) -> None:
        mock_verify.side_effect = ValueError("Illegal ID token provided")
        with self.assertRaises(FederatedVerificationError):
            self.verifier.verify("")

    def test_missing_email(self, mock_verify: MagicMock) -> None:
        mock_verify.return_value = _decoded(email=None)
        with self.assertRaises(FederatedVerificationError):
            self.verifier.verify("id-token")

    def test_password_sign_in_is_rejected(self, mock_verify: MagicMock) -> None:
        mock_verify.return_value = _decoded(firebase={"sign_in_provider": "password"})
        with self.assertRaises(FederatedVerificationError):
            self.verifier.verify("id-token")


class TestInitFirebaseApp(unittest.TestCase):
    def test_requires_project_id(self) -> None:
        with self.assertRaises(ValueError):
            init_firebase_app(make_settings())

    @patch("app.services.federated.credentials.ApplicationDefault")
    @patch("app.services.federated.firebase_admin")
    def test_initializes_named_app_with_project_id(self, mock_admin: MagicMock, mock_adc: MagicMock) -> None:
        mock_admin.get_app.side_effect = ValueError("no app")
        app = init_firebase_app(make_settings(FIREBASE_PROJECT_ID=PROJECT_ID))
        mock_admin.initialize_app.assert_called_once_with(
            mock_adc.return_value,
            options={"projectId": PROJECT_ID},
            name=FIREBASE_APP_NAME,
        )
        self.assertIs(app, mock_admin.initialize_app.return_value)

    @patch("app.services.federated.firebase_admin")
    def test_reuses_existing_app(self, mock_admin: MagicMock) -> None:
        app = init_firebase_app(make_settings(FIREBASE_PROJECT_ID=PROJECT_ID))
        self.assertIs(app, mock_admin.get_app.return_value)
        mock_admin.initialize_app.assert_not_called()
