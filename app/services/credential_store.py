"""Persistent user records with atomic conditional updates."""

import logging

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.util import identity_key

from app.core.errors import ConflictError, InternalError
from app.models.user import Role, User
from app.services.commands import UserCommand

logger = logging.getLogger(__name__)


def normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    return (raw_email or "").strip().lower()


class CredentialStore:
    """
    Reads and guarded writes against the users table.

    Every write commits on its own, so a later failure (for example a
    notification that could not be sent) never undoes it.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_id(self, user_id: int) -> User | None:
        try:
            return self.db.get(User, user_id)
        except SQLAlchemyError as e:
            raise InternalError("Could not load the user record.") from e

    def find_by_email(self, email: str) -> User | None:
        return self._first(select(User).where(User.email == normalize_email(email)))

    def find_by_username(self, username: str) -> User | None:
        return self._first(select(User).where(User.username == username.strip()))

    def find_by_identifier(self, identifier: str) -> User | None:
        """Look up by username or email (login accepts either)."""
        value = identifier.strip()
        return self._first(
            select(User).where(
                or_(User.username == value, User.email == normalize_email(value))
            )
        )

    def find_by_username_or_email(self, username: str, email: str) -> User | None:
        return self._first(
            select(User).where(
                or_(User.username == username.strip(), User.email == normalize_email(email))
            )
        )

    def email_in_use(self, email: str, exclude_user_id: int | None = None) -> bool:
        """True if the address is live on any account or pending on another one."""
        normalized = normalize_email(email)
        pending_elsewhere = User.pending_email == normalized
        if exclude_user_id is not None:
            pending_elsewhere = pending_elsewhere & (User.id != exclude_user_id)
        stmt = select(func.count(User.id)).where(
            or_(User.email == normalized, pending_elsewhere)
        )
        try:
            return (self.db.execute(stmt).scalar_one() or 0) > 0
        except SQLAlchemyError as e:
            raise InternalError("Could not query users.") from e

    def create(self, user: User) -> User:
        """
        Insert a new user; the unique constraints on username and email decide
        conflicts, so two concurrent registrations cannot both succeed.
        """
        user.email = normalize_email(user.email)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(self._conflict_message(user)) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("Could not create the user record.") from e
        self.db.refresh(user)
        return user

    def apply(self, user_id: int, command: UserCommand) -> bool:
        """
        Run one guarded update. Returns True if the row still matched the
        command's conditions and was written, False otherwise.
        """
        stmt = update(User).where(User.id == user_id)
        for column_name, expected in command.conditions().items():
            column = getattr(User, column_name)
            if expected is None:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(column == expected)
        stmt = stmt.values(**command.values()).execution_options(synchronize_session=False)
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("This value is already in use by another account.") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("Could not update the user record.") from e
        applied = result.rowcount == 1
        if not applied:
            logger.info(
                "Guarded update did not match",
                extra={"user_id": user_id, "command": type(command).__name__},
            )
        return applied

    def delete_by_id(self, user_id: int, role: Role = Role.USER) -> bool:
        """Delete the row only if it still has ``role``. Returns True if a row was deleted."""
        stmt = delete(User).where(User.id == user_id, User.role == role)
        try:
            result = self.db.execute(stmt.execution_options(synchronize_session=False))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise InternalError("Could not delete the user record.") from e
        deleted = result.rowcount == 1
        instance = self.db.identity_map.get(identity_key(User, user_id))
        if deleted and instance is not None:
            # A loaded copy of the row would raise ObjectDeletedError on its next refresh.
            self.db.expunge(instance)
        return deleted

    def _first(self, stmt) -> User | None:
        try:
            return self.db.execute(stmt).scalars().first()
        except SQLAlchemyError as e:
            raise InternalError("Could not query users.") from e

    def _conflict_message(self, user: User) -> str:
        existing = self.find_by_username_or_email(user.username, user.email)
        which = "email" if existing is not None and existing.email == user.email else "username"
        return f"A user already exists with the same {which}."
