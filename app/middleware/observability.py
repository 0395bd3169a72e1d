from __future__ import annotations

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings
from app.core.logging import get_logger, request_context
from app.core.metrics import normalize_path, record_request_metrics
from app.utils.shop import normalize_shop

REQUEST_ID_HEADER = "X-Request-ID"


def _request_id(request: Request) -> str:
    incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    return incoming[:128] or uuid.uuid4().hex


def _surface(request: Request) -> str:
    return "api" if request.url.path.startswith(settings.API_PREFIX + "/") else "page"


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, time it, and log anything that did not succeed.

    The id is bound to the logging context so service and Shopify client logs
    emitted while serving the request carry it, and is echoed back in the
    response headers so the page script can report it.
    """

    def __init__(self, app, *, log_client_errors: bool = True) -> None:
        super().__init__(app)
        self.logger = get_logger("app.requests")
        self.log_client_errors = log_client_errors

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = _request_id(request)
        with request_context(request_id=request_id, method=request.method, path=request.url.path):
            started = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception:
                self._finish(request, 500, started)
                raise
            self._finish(request, response.status_code, started)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _finish(self, request: Request, status_code: int, started: float) -> None:
        elapsed = time.perf_counter() - started
        record_request_metrics(request, status_code, elapsed)

        details = {
            "route": normalize_path(request),
            "surface": _surface(request),
            "shop": normalize_shop(request.query_params.get("shop")),
            "status_code": status_code,
            "duration_ms": round(elapsed * 1000, 3),
        }
        if status_code >= 500:
            self.logger.error("Request failed", extra=details)
        elif status_code >= 400 and self.log_client_errors:
            self.logger.warning("Request rejected", extra=details)
        else:
            self.logger.debug("Request served", extra=details)
