"""FastAPI application entrypoint. No business logic; only wiring, lifespan and error handlers."""

from dotenv import load_dotenv

load_dotenv()

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import register_error_handlers
from app.api.v1 import router as v1_router
from app.core.config import Settings, get_settings
from app.services.container import build_services


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app; collaborators are created at startup and closed at shutdown."""
    app_settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        services = build_services(app_settings)
        app.state.services = services
        try:
            yield
        finally:
            services.close()

    app = FastAPI(
        title=f"{app_settings.PROJECT_NAME}",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if app_settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(v1_router, prefix=app_settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": app_settings.PROJECT_NAME}

    return app


app = create_app()
