"""Access and refresh token minting and verification (signed JWTs)."""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt

from app.core.errors import ForbiddenError, InternalError, UnauthorizedError
from app.core.security import new_token
from app.models.user import Role

if TYPE_CHECKING:
    from app.core.config import Settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class AccessClaims:
    """Verified claims from an access token."""

    user_id: int
    role: Role
    expires_at: datetime


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


class SessionIssuer:
    """
    Mints short-lived access tokens (user id + role, access secret) and
    long-lived refresh tokens (user id, refresh secret).

    Every token carries a random ``jti``, so two tokens minted for the same
    user in the same second still differ and a rotated refresh token can
    never be reissued by accident.
    """

    def __init__(self, settings: "Settings") -> None:
        self._algorithm = settings.JWT_ALGORITHM
        self._access_secret = settings.ACCESS_TOKEN_SECRET.get_secret_value()
        self._refresh_secret = settings.REFRESH_TOKEN_SECRET.get_secret_value()
        self._access_ttl = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        self._refresh_ttl = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def mint_access(self, user_id: int, role: Role) -> str:
        return self._encode(
            {"sub": str(user_id), "role": Role(role).value, "type": ACCESS_TOKEN_TYPE},
            self._access_secret,
            self._access_ttl,
        )

    def mint_refresh(self, user_id: int) -> str:
        return self._encode(
            {"sub": str(user_id), "type": REFRESH_TOKEN_TYPE},
            self._refresh_secret,
            self._refresh_ttl,
        )

    def mint_pair(self, user_id: int, role: Role) -> TokenPair:
        return TokenPair(
            access_token=self.mint_access(user_id, role),
            refresh_token=self.mint_refresh(user_id),
        )

    def verify_access(self, token: str, required_role: Role | None = None) -> AccessClaims:
        """
        Check signature, expiry and token type; then, if ``required_role`` is
        given, that the role claim matches it.

        Raises UnauthorizedError for a bad or expired token and ForbiddenError
        for a valid token with the wrong role.
        """
        payload = self._decode(token, self._access_secret)
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise UnauthorizedError("Authentication failed: invalid token.")
        try:
            role = Role(payload.get("role"))
        except ValueError:
            raise UnauthorizedError("Authentication failed: invalid token.")
        if required_role is not None and role is not required_role:
            raise ForbiddenError("Access denied: insufficient permissions.")
        return AccessClaims(
            user_id=_user_id_from(payload),
            role=role,
            expires_at=datetime.fromtimestamp(payload["exp"], UTC),
        )

    def verify_refresh(self, token: str) -> int:
        """Return the user id in a valid, unexpired refresh token."""
        payload = self._decode(token, self._refresh_secret)
        if payload.get("type") != REFRESH_TOKEN_TYPE:
            raise UnauthorizedError(
                "The refresh token provided is invalid or has expired. "
                "Please login again to obtain a new refresh token."
            )
        return _user_id_from(payload)

    def _encode(self, claims: dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = datetime.now(UTC)
        payload = {**claims, "iat": now, "exp": now + ttl, "jti": new_token(16)}
        try:
            return jwt.encode(payload, secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            raise InternalError(
                "Something went wrong while generating refresh and access token."
            ) from e

    def _decode(self, token: str, secret: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"require": ["sub", "exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Authentication failed: token has expired.")
        except jwt.PyJWTError:
            raise UnauthorizedError("Authentication failed: invalid token.")


def _user_id_from(payload: dict[str, Any]) -> int:
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedError("Authentication failed: invalid token payload.")
