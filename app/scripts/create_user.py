"""
Create a confirmed local user (e.g. the first admin). Run from project root:
  python -m app.scripts.create_user NAME USERNAME EMAIL PASSWORD [role]
Example:
  python -m app.scripts.create_user "Site Admin" admin admin@example.com your-secure-password admin
"""
import argparse
import re
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.errors import ConflictError
from app.core.security import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    USERNAME_PATTERN,
    hash_password,
)
from app.models.user import AuthType, Role, User
from app.services.credential_store import CredentialStore


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a confirmed user (bypasses email confirmation).")
    parser.add_argument("name", help="Display name")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default="user", choices=[r.value for r in Role])
    args = parser.parse_args()

    username = args.username.strip()
    if not re.match(USERNAME_PATTERN, username) or not (
        USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN
    ):
        print("Invalid username.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        store = CredentialStore(db)
        user = store.create(
            User(
                name=args.name.strip(),
                username=username,
                email=args.email,
                password_hash=hash_password(args.password, rounds=settings.BCRYPT_ROUNDS),
                role=Role(args.role),
                auth_type=AuthType.LOCAL,
                is_account_confirmed=True,
                is_banned=False,
            )
        )
        print(f"Created user '{user.username}' (id {user.id}) with role '{args.role}'.")
        return 0
    except ConflictError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
