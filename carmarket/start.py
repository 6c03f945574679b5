"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis import asyncio as aioredis

from carmarket.cache import init_cache
from carmarket.config import Settings
from carmarket.db import init_db
from carmarket.dependencies import ServiceContainer
from carmarket.routers import admin, cars, health
from carmarket.utils.logging_config import setup_logging
from carmarket.utils.middleware import setup_middleware

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, container: Optional[ServiceContainer] = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to run with. Read from the environment when omitted.
        container: Prebuilt services. Built from the settings at startup when omitted.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting application")
        app.state.db_client = await init_db(settings.database)

        redis = aioredis.from_url(settings.cache.redis_url)
        init_cache(settings.cache, redis)
        if app.state.container is None:
            app.state.container = ServiceContainer.build(settings, redis)

        yield

        logger.info("Shutting down application")
        await redis.aclose()
        app.state.db_client.close()

    app = FastAPI(
        title="carmarket",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_middleware(app, request_logging=settings.logging.enable_request_logging)

    app.include_router(health.router)
    app.include_router(cars.router)
    app.include_router(admin.router)
    return app


def main() -> FastAPI:
    """Uvicorn factory: `uvicorn carmarket.start:main --factory`."""
    settings = Settings()
    setup_logging(settings.logging)
    return create_app(settings)
