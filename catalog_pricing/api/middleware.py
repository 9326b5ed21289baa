from __future__ import annotations

import logging
import time
import uuid

from fastapi.responses import JSONResponse
from starlette.middleware import base as middleware_base
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from catalog_pricing.api.errors import REQUEST_ID_HEADER, build_error_payload

logger = logging.getLogger(__name__)

_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class RequestIdMiddleware(middleware_base.BaseHTTPMiddleware):
    """Tag each request with an ID and log one access line per response."""

    async def dispatch(
        self,
        request: Request,
        call_next: middleware_base.RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "request_completed",
            extra={
                "event": "request_completed",
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "request_id": request_id,
            },
        )
        return response


def _content_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if raw is None or not raw.isdigit():
        return None
    return int(raw)


class BodySizeLimitMiddleware(middleware_base.BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        max_body_bytes: int,
        path_prefix: str = "/v1/",
    ) -> None:
        """Limit request bodies sent to routes under ``path_prefix``."""
        super().__init__(app)
        self._max_body_bytes = max_body_bytes
        self._path_prefix = path_prefix

    async def dispatch(
        self,
        request: Request,
        call_next: middleware_base.RequestResponseEndpoint,
    ) -> Response:
        if request.method not in _BODY_METHODS or not request.url.path.startswith(
            self._path_prefix
        ):
            return await call_next(request)

        declared = _content_length(request)
        if declared is not None and declared > self._max_body_bytes:
            return self._too_large(declared)

        # chunked bodies carry no content-length
        body = await request.body()
        if len(body) > self._max_body_bytes:
            return self._too_large(len(body))

        async def receive() -> dict[str, object]:
            return {"type": "http.request", "body": body, "more_body": False}

        return await call_next(Request(request.scope, receive))

    def _too_large(self, actual: int) -> JSONResponse:
        return JSONResponse(
            status_code=413,
            content=build_error_payload(
                "PAYLOAD_TOO_LARGE",
                f"Request body exceeds {self._max_body_bytes} bytes",
                {"max_body_bytes": self._max_body_bytes, "content_length": actual},
            ),
        )
