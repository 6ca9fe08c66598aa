import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from mongoroute import __VERSION__
from mongoroute.api import build_model_router
from mongoroute.config import Settings, get_settings
from mongoroute.core.i18n import Messages
from mongoroute.core.model import ModelRegistry
from mongoroute.handlers.routes import ModelRouteHandlers
from mongoroute.observability import setup_logging

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    db: AsyncIOMotorDatabase | None = None,
    register_models: Callable[[ModelRegistry], None] | None = None,
) -> FastAPI:
    """
    Build the FastAPI app serving every registered model.

    Args:
        settings (Settings | None): Defaults to the cached environment settings.
        db (AsyncIOMotorDatabase | None): Database to bind; a Motor client is opened from settings when omitted.
        register_models (Callable | None): Called once with the registry before the routes are mounted.
    """
    settings = settings or get_settings()
    client: AsyncIOMotorClient | None = None
    if db is None:
        client = AsyncIOMotorClient(settings.mongo_url)
        db = client[settings.mongo_database]

    registry = ModelRegistry(db)
    if register_models is not None:
        register_models(registry)
    handlers = ModelRouteHandlers(Messages(settings.locale), logging.getLogger("mongoroute.handlers"), settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, settings.log_format)
        logger.info("mongoroute started with models: %s", ", ".join(registry))
        yield
        if client is not None:
            client.close()
        logger.info("mongoroute shut down")

    app = FastAPI(title="mongoroute", version=__VERSION__, lifespan=lifespan)
    app.state.registry = registry
    app.include_router(build_model_router(registry, handlers), prefix=settings.api_prefix)
    return app
