"""
FastAPI application factory.

* Registers routes for wizard sessions, vehicle lookup and admin.
* Closes live plate fields, outbound HTTP clients and the Redis pool on
  shutdown.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.dependencies import close_clients
from src.api.middleware import limiter
from src.api.routes import admin, vehicles, wizards
from src.infrastructure.redis_client import close_redis
from src.workers.plate_lookup import plate_fields

logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release pooled connections on shutdown."""
    logger.info("Booking wizard API starting")
    yield
    await plate_fields.close_all()
    await close_clients()
    await close_redis()
    logger.info("Booking wizard API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Booking Wizard API",
        description=(
            "Step-by-step capture of chauffeur rides and multi-day missions. "
            "Validates each step, promotes rides with an unassigned chauffeur "
            "into missions on submit, and looks up vehicles by plate."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(wizards.router, prefix="/api/v1")
    app.include_router(vehicles.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
