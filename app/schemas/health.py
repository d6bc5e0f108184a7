"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="Database connectivity status when check is performed",
    )
    mail: Literal["smtp", "log"] = Field(
        default="log",
        description="How account emails are delivered (log = SMTP not configured)",
    )
    social_login: bool = Field(default=False, description="Federated login is configured")
    media_cleanup: bool = Field(
        default=False,
        description="Hosted avatars are deleted together with their accounts",
    )
