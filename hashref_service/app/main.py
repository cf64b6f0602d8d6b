from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from hashref_service.app.routes import health_router, router
from hashref_service.app.settings import Settings, settings
from hashref_service.app.store import InMemorySessionStore
from libs.common.http_handlers import register_exception_handlers
from libs.common.logging import configure_logging, get_logger


def create_lifespan(app_settings: Settings):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.store = InMemorySessionStore()
        app.state.settings = app_settings
        logger = get_logger("hashref_service.main")
        logger.info("service_started", service=app_settings.service_name, workspace_root=app_settings.workspace_root)
        yield
        logger.info("service_stopped", service=app_settings.service_name)

    return lifespan


def create_app(app_settings: Settings | None = None) -> FastAPI:
    resolved = app_settings or settings
    configure_logging(level=resolved.log_level, json_output=resolved.log_json)
    app = FastAPI(title=resolved.service_name, lifespan=create_lifespan(resolved))
    app.include_router(health_router)
    app.include_router(router)
    register_exception_handlers(app, "hashref_service.errors")
    return app


app = create_app()
