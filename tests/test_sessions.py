"""Unit tests for access/refresh token minting and verification."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from app.core.errors import ForbiddenError, UnauthorizedError
from app.models.user import Role
from app.services.sessions import SessionIssuer
from tests.support import make_settings


class TestAccessTokens(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = make_settings()
        self.issuer = SessionIssuer(self.settings)

    def test_round_trip_carries_id_and_role(self) -> None:
        token = self.issuer.mint_access(7, Role.ADMIN)
        claims = self.issuer.verify_access(token)
        self.assertEqual(claims.user_id, 7)
        self.assertIs(claims.role, Role.ADMIN)
        self.assertGreater(claims.expires_at, datetime.now(UTC))

    def test_expiry_follows_setting(self) -> None:
        claims = self.issuer.verify_access(self.issuer.mint_access(1, Role.USER))
        remaining = claims.expires_at - datetime.now(UTC)
        self.assertLessEqual(remaining, timedelta(minutes=15))
        self.assertGreater(remaining, timedelta(minutes=14))

    def test_required_role_mismatch_is_forbidden(self) -> None:
        token = self.issuer.mint_access(1, Role.USER)
        with self.assertRaises(ForbiddenError) as ctx:
            self.issuer.verify_access(token, required_role=Role.ADMIN)
        self.assertEqual(ctx.exception.message, "Access denied: insufficient permissions.")

    def test_required_role_match_passes(self) -> None:
        token = self.issuer.mint_access(2, Role.ADMIN)
        self.assertEqual(self.issuer.verify_access(token, required_role=Role.ADMIN).user_id, 2)

    def test_expired_token_is_unauthorized(self) -> None:
        past = datetime.now(UTC) - timedelta(hours=1)
        token = jwt.encode(
            {"sub": "1", "role": "user", "type": "access", "iat": past, "exp": past + timedelta(minutes=1)},
            "test-access-secret",
            algorithm="HS256",
        )
        with self.assertRaises(UnauthorizedError) as ctx:
            self.issuer.verify_access(token)
        self.assertIn("expired", ctx.exception.message)

    def test_tampered_token_is_unauthorized(self) -> None:
        header, _, signature = self.issuer.mint_access(1, Role.USER).split(".")
        forged_payload = jwt.encode(
            {"sub": "1", "role": "admin", "type": "access", "iat": datetime.now(UTC),
             "exp": datetime.now(UTC) + timedelta(minutes=5)},
            "attacker-secret",
            algorithm="HS256",
        ).split(".")[1]
        with self.assertRaises(UnauthorizedError):
            self.issuer.verify_access(f"{header}.{forged_payload}.{signature}")

    def test_token_signed_with_other_secret_is_unauthorized(self) -> None:
        other = SessionIssuer(make_settings(ACCESS_TOKEN_SECRET="some-other-secret"))
        with self.assertRaises(UnauthorizedError):
            self.issuer.verify_access(other.mint_access(1, Role.USER))

    def test_refresh_token_is_not_an_access_token(self) -> None:
        with self.assertRaises(UnauthorizedError):
            self.issuer.verify_access(self.issuer.mint_refresh(1))

    def test_garbage_is_unauthorized(self) -> None:
        with self.assertRaises(UnauthorizedError):
            self.issuer.verify_access("not-a-jwt")


class TestRefreshTokens(unittest.TestCase):
    def setUp(self) -> None:
        self.issuer = SessionIssuer(make_settings())

    def test_round_trip_returns_user_id(self) -> None:
        self.assertEqual(self.issuer.verify_refresh(self.issuer.mint_refresh(42)), 42)

    def test_access_token_is_not_a_refresh_token(self) -> None:
        with self.assertRaises(UnauthorizedError):
            self.issuer.verify_refresh(self.issuer.mint_access(42, Role.USER))

    def test_consecutive_tokens_differ(self) -> None:
        first = self.issuer.mint_refresh(42)
        second = self.issuer.mint_refresh(42)
        self.assertNotEqual(first, second)

    def test_pair_has_both_tokens(self) -> None:
        pair = self.issuer.mint_pair(3, Role.USER)
        self.assertEqual(self.issuer.verify_access(pair.access_token).user_id, 3)
        self.assertEqual(self.issuer.verify_refresh(pair.refresh_token), 3)
