"""Unit and integration tests for demo seeding."""

import unittest
from unittest.mock import MagicMock

from app.core.errors import ForbiddenError
from app.core.security import verify_password
from app.models.user import Role, User
from app.services.seed import SEED_USERS, run_seed
from tests.support import TempDatabase, make_settings


class TestSeedRefused(unittest.TestCase):
    """Seeding outside dev, or with SEED_ENABLED off, touches nothing."""

    def test_disabled(self) -> None:
        session = MagicMock()
        with self.assertRaises(ForbiddenError):
            run_seed(session, make_settings(SEED_ENABLED=False))
        session.execute.assert_not_called()
        session.commit.assert_not_called()

    def test_prod(self) -> None:
        session = MagicMock()
        with self.assertRaises(ForbiddenError):
            run_seed(session, make_settings(APP_ENV="prod", SEED_ENABLED=True))
        session.execute.assert_not_called()


class TestSeedIntegration(unittest.TestCase):
    def setUp(self) -> None:
        self.database = TempDatabase()
        self.db = self.database.Session()

    def tearDown(self) -> None:
        self.db.close()
        self.database.close()

    def test_replaces_all_users(self) -> None:
        settings = make_settings(SEED_ENABLED=True)
        self.db.add(User(name="Old User", username="olduser", email="old@example.com", password_hash=None))
        self.db.commit()

        self.assertEqual(run_seed(self.db, settings), len(SEED_USERS))
        users = {u.username: u for u in self.db.query(User).all()}
        self.assertEqual(set(users), {"johndoe", "janesmith"})
        self.assertIs(users["janesmith"].role, Role.ADMIN)
        self.assertTrue(users["johndoe"].is_account_confirmed)
        self.assertTrue(verify_password("password123", users["johndoe"].password_hash, rounds=4))
