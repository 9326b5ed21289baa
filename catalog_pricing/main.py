from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, cast

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from catalog_pricing import __version__
from catalog_pricing.api.errors import (
    internal_error_handler,
    pricing_error_handler,
    validation_error_handler,
)
from catalog_pricing.api.middleware import BodySizeLimitMiddleware, RequestIdMiddleware
from catalog_pricing.api.routes import router
from catalog_pricing.constants import MAX_REQUEST_BODY_BYTES
from catalog_pricing.engine import PricingEngine, PricingError
from catalog_pricing.logging import configure_logging
from catalog_pricing.pricing import PricingDataRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    repository: PricingDataRepository = app.state.repository
    logger.info(
        "startup",
        extra={
            "event": "startup",
            "currency": repository.exchange_rates.base,
        },
    )
    yield
    logger.info("shutdown", extra={"event": "shutdown"})


def create_app(repository: PricingDataRepository | None = None) -> FastAPI:
    """Build the local pricing API around one shared engine."""
    configure_logging()

    app = FastAPI(
        title="Catalog Pricing Engine",
        version=__version__,
        lifespan=lifespan,
    )

    repository = repository or PricingDataRepository()
    app.state.repository = repository
    app.state.engine = PricingEngine(
        rates=repository.exchange_rates,
        reference=repository.reference_prices,
        engine_version=__version__,
    )

    # last added runs first, so 413 responses still carry a request ID
    app.add_middleware(
        BodySizeLimitMiddleware,
        max_body_bytes=MAX_REQUEST_BODY_BYTES,
    )
    app.add_middleware(RequestIdMiddleware)
    app.include_router(router)

    app.add_exception_handler(PricingError, cast(Any, pricing_error_handler))
    app.add_exception_handler(
        RequestValidationError,
        cast(Any, validation_error_handler),
    )
    app.add_exception_handler(Exception, cast(Any, internal_error_handler))

    return app


app = create_app()
