from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from catalog_pricing.engine.exceptions import PricingError

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"


def build_error_payload(
    code: str, message: str, details: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Build the ``{"error": {...}}`` envelope shared by every failure."""
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }


def error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    response = JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(build_error_payload(code, message, details)),
    )
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


async def pricing_error_handler(
    request: Request,
    exc: PricingError,
) -> JSONResponse:
    """Render a domain pricing error with its own status and code."""
    logger.info(
        "pricing_error",
        extra={
            "event": "pricing_error",
            "status_code": exc.status_code,
            "error_code": exc.code,
            "request_id": getattr(request.state, "request_id", None),
        },
    )
    return error_response(
        request, exc.status_code, exc.code, exc.message, exc.details
    )


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    errors = exc.errors()
    logger.info(
        "request_rejected",
        extra={
            "event": "request_rejected",
            "status_code": 400,
            "error_code": "INVALID_REQUEST",
            "request_id": getattr(request.state, "request_id", None),
        },
    )
    return error_response(
        request,
        400,
        "INVALID_REQUEST",
        "Request validation failed",
        # pydantic error contexts can carry exception objects
        {"validation_errors": [_plain_error(error) for error in errors]},
    )


def _plain_error(error: dict[str, Any]) -> dict[str, Any]:
    plain = {key: error[key] for key in ("type", "loc", "msg") if key in error}
    if "ctx" in error:
        plain["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
    return plain


async def internal_error_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Log the failure and answer 500 without exposing its details."""
    logger.exception(
        "internal_error",
        extra={
            "event": "internal_error",
            "status_code": 500,
            "error_code": "INTERNAL_ERROR",
            "request_id": getattr(request.state, "request_id", None),
        },
    )
    return error_response(request, 500, "INTERNAL_ERROR", "Internal server error")
