"""Entry point for the task management API."""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routers import api_router, health_router
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .core.middleware import CorrelationIdMiddleware
from .db import Database
from .deps import SettingsDependency
from .errors import register_exception_handlers
from .schemas.system import RootResponse

logger = logging.getLogger(__name__)


def _normalise_prefix(raw_prefix: str) -> str:
    prefix = raw_prefix.strip()
    if prefix and not prefix.startswith("/"):
        prefix = f"/{prefix}"
    prefix = prefix.rstrip("/")
    return "" if prefix == "/" else prefix


def create_app(settings: Settings | None = None) -> FastAPI:
    """Instantiate and configure the FastAPI application."""

    settings = settings or get_settings()
    configure_logging(settings)

    router_prefix = _normalise_prefix(settings.api_prefix)
    openapi_url = "/openapi.json" if not router_prefix else f"{router_prefix}/openapi.json"

    application = FastAPI(
        title=settings.project_name,
        version=settings.version,
        summary="Personal task management API with bearer-token authentication.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=openapi_url,
    )

    database = Database.from_settings(settings)
    application.state.settings = settings
    application.state.database = database

    application.add_middleware(CorrelationIdMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    if router_prefix:
        application.include_router(api_router, prefix=router_prefix)
    else:
        application.include_router(api_router)
    application.include_router(health_router)

    @application.get("/", response_model=RootResponse, summary="Service metadata", tags=["system"])
    async def read_root(app_settings: SettingsDependency) -> RootResponse:
        """Expose minimal service metadata for API clients."""

        return RootResponse(
            name=app_settings.project_name,
            environment=app_settings.environment,
            version=app_settings.version,
            api_prefix=router_prefix or "/",
        )

    register_exception_handlers(application)

    @application.on_event("startup")
    async def _prepare_database() -> None:
        if settings.create_tables_on_startup:
            logger.info("Creating database tables")
            await database.create_all()
        if not settings.jwt_secret_key:
            logger.warning("TASKDESK_JWT_SECRET_KEY is not set; login and token checks will fail")

    @application.on_event("shutdown")
    async def _dispose_database() -> None:
        await database.dispose()

    return application


app = create_app()


def run() -> None:
    """Convenience entry point for the ``taskdesk`` console script."""

    settings = get_settings()
    uvicorn.run(
        "taskdesk.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.reload,
        log_config=None,
    )


__all__ = ["app", "create_app", "run"]
