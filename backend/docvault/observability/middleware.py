"""Request logging middleware: one line in, one line out, both carrying the request id."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .request_id import incoming_request_id, reset_request_id, set_request_id

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of the request and echo it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = incoming_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = set_request_id(request_id)
        started = time.perf_counter()
        route = {"method": request.method, "path": request.url.path}

        try:
            logger.info(f"{request.method} {request.url.path}", extra=route)
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"Request failed: {e}",
                    extra={**route, "error_type": type(e).__name__, "duration_ms": _elapsed_ms(started)},
                    exc_info=True,
                )
                raise

            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={**route, "status_code": response.status_code, "duration_ms": _elapsed_ms(started)},
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            reset_request_id(token)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
