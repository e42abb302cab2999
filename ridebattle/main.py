from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from ridebattle.api.routes import api_router
from ridebattle.core.config import get_settings
from ridebattle.core.logging import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    yield
    service = getattr(application.state, "tracking_service", None)
    if service is not None:
        service.shutdown()
        logger.info("tracking_service_shutdown")


def create_app() -> FastAPI:
    configure_logging(get_settings())
    application = FastAPI(title="Ride Battle Backend", lifespan=lifespan)
    application.include_router(api_router)
    return application


app = create_app()
