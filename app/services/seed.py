"""Demo data: replace all users with a known confirmed user and admin (dev only)."""

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.core.errors import ForbiddenError
from app.core.security import hash_password
from app.models import AuthType, Role, User

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

SEED_USERS = (
    {
        "name": "John Doe",
        "username": "johndoe",
        "email": "johndoe@example.com",
        "password": "password123",
        "role": Role.USER,
    },
    {
        "name": "Jane Smith",
        "username": "janesmith",
        "email": "janesmith@example.com",
        "password": "password123",
        "role": Role.ADMIN,
    },
)


def run_seed(session: Session, settings: "Settings") -> int:
    """
    Delete every user and insert SEED_USERS. Returns the number inserted.

    Refused unless APP_ENV is dev and SEED_ENABLED is true.
    """
    if settings.APP_ENV != "dev" or not settings.SEED_ENABLED:
        raise ForbiddenError("Permission denied.")

    session.execute(delete(User))
    for data in SEED_USERS:
        session.add(
            User(
                name=data["name"],
                username=data["username"],
                email=data["email"],
                password_hash=hash_password(data["password"], rounds=settings.BCRYPT_ROUNDS),
                role=data["role"],
                auth_type=AuthType.LOCAL,
                is_account_confirmed=True,
                is_banned=False,
            )
        )
    session.commit()
    logger.info("Seed run: users_inserted=%s", len(SEED_USERS))
    return len(SEED_USERS)
