"""Single-use token generation, password hashing, and constant-time comparisons."""

import base64
import hmac
import secrets
from functools import lru_cache

import bcrypt

from app.core.config import settings

# Min/max lengths for username and password validation (input validation).
NAME_MIN_LEN = 3
NAME_MAX_LEN = 255
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 15
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

# Username starts with a letter; letters, digits, hyphens and underscores after that.
USERNAME_PATTERN = r"^[a-zA-Z][a-zA-Z0-9_-]*[a-zA-Z0-9]$"


def new_token(length: int | None = None) -> str:
    """
    Return a URL-safe random token built from ``length`` bytes of OS entropy.

    Errors from the randomness source are not caught.
    """
    num_bytes = length if length is not None else settings.TOKEN_BYTES
    raw = secrets.token_bytes(num_bytes)
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    cost = rounds if rounds is not None else settings.BCRYPT_ROUNDS
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=cost)).decode("utf-8")


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> bytes:
    return bcrypt.hashpw(b"dummy-password-for-timing", bcrypt.gensalt(rounds=rounds))


def verify_password(plain_password: str, hashed: str | None, rounds: int | None = None) -> bool:
    """
    Verify a plain password against a stored hash.

    Accounts without a hash (federated sign-in) still pay for one bcrypt
    comparison so response time does not tell them apart.
    """
    pw_bytes = plain_password.encode("utf-8")[:72]
    if not hashed:
        cost = rounds if rounds is not None else settings.BCRYPT_ROUNDS
        bcrypt.checkpw(pw_bytes, _dummy_hash(cost))
        return False
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def tokens_match(presented: str | None, stored: str | None) -> bool:
    """Constant-time equality for single-use and refresh tokens; empty never matches."""
    if not presented or not stored:
        return False
    return hmac.compare_digest(presented.encode("utf-8"), stored.encode("utf-8"))
