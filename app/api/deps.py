"""FastAPI dependencies: the identity manager and bearer-token principals."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import UnauthorizedError
from app.models.user import Role
from app.services.container import ServiceContainer
from app.services.identity import IdentityManager
from app.services.sessions import AccessClaims

security = HTTPBearer(auto_error=False)


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_identity_manager(
    services: Annotated[ServiceContainer, Depends(get_services)],
    db: Annotated[Session, Depends(get_db)],
) -> IdentityManager:
    return services.identity_manager(db)


def _bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Unauthorized access: Authorization header or token is missing.")
    return credentials.credentials


def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> AccessClaims:
    """Dependency: require a valid access token. Raises 401 if missing, invalid or expired."""
    return services.sessions.verify_access(_bearer_token(credentials))


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> AccessClaims:
    """Dependency: require a valid access token whose role is admin. Raises 403 otherwise."""
    return services.sessions.verify_access(_bearer_token(credentials), required_role=Role.ADMIN)
