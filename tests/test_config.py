"""Unit tests for settings validation."""

import unittest

from pydantic import ValidationError

from tests.support import make_settings


class TestDatabaseUrl(unittest.TestCase):
    def test_driverless_postgres_urls_use_psycopg2(self) -> None:
        for url in ("postgresql://u:p@db:5432/identity", "postgres://u:p@db:5432/identity"):
            with self.subTest(url=url):
                settings = make_settings(DATABASE_URL=url)
                self.assertEqual(settings.DATABASE_URL, "postgresql+psycopg2://u:p@db:5432/identity")

    def test_explicit_driver_is_kept(self) -> None:
        url = "postgresql+psycopg2://u:p@db:5432/identity"
        self.assertEqual(make_settings(DATABASE_URL=url).DATABASE_URL, url)

    def test_sqlite_is_kept(self) -> None:
        self.assertEqual(make_settings(DATABASE_URL=" sqlite:///./identity.db ").DATABASE_URL, "sqlite:///./identity.db")

    def test_rejects_other_schemes(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(DATABASE_URL="mysql://u:p@db/identity")
        with self.assertRaises(ValidationError):
            make_settings(DATABASE_URL="   ")


class TestOptionalSettings(unittest.TestCase):
    def test_blank_optional_values_become_none(self) -> None:
        settings = make_settings(FIREBASE_PROJECT_ID="  ", FIREBASE_CREDENTIALS_FILE="", SMTP_HOST=" ")
        self.assertIsNone(settings.FIREBASE_PROJECT_ID)
        self.assertIsNone(settings.FIREBASE_CREDENTIALS_FILE)
        self.assertIsNone(settings.SMTP_HOST)

    def test_token_bytes_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            make_settings(TOKEN_BYTES=8)
        with self.assertRaises(ValidationError):
            make_settings(TOKEN_BYTES=256)
