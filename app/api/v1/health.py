"""Health check endpoint with database connectivity and collaborator configuration."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_services
from app.core.database import check_db_connected, get_db
from app.services.container import ServiceContainer
from app.services.notifications import SmtpNotificationDispatcher
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    db: Annotated[Session, Depends(get_db)],
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> HealthResponse:
    """
    Return service health, database connectivity, and which optional
    collaborators are wired. Used by load balancers and monitoring.
    """
    db_status = "connected" if check_db_connected(db) else "disconnected"

    return HealthResponse(
        status="ok",
        environment=services.settings.APP_ENV,
        database=db_status,
        mail="smtp" if isinstance(services.dispatcher, SmtpNotificationDispatcher) else "log",
        social_login=services.verifier is not None,
        media_cleanup=services.media_store is not None,
    )
