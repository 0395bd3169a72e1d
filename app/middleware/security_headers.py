from __future__ import annotations

from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings
from app.utils.shop import normalize_shop


def frame_ancestors(shop: str | None) -> str:
    """Embedded apps may only be framed by the shop's admin."""
    sources = [settings.SHOPIFY_ADMIN_ORIGIN]
    shop = normalize_shop(shop) or settings.SHOPIFY_STORE
    if shop:
        sources.insert(0, f"https://{shop}")
    return "frame-ancestors " + " ".join(sources) + ";"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers compatible with running inside the Shopify admin iframe."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        response.headers.setdefault("Content-Security-Policy", frame_ancestors(request.query_params.get("shop")))
        response.headers.setdefault("X-Content-Type-Options", settings.X_CONTENT_TYPE_OPTIONS)
        response.headers.setdefault("Referrer-Policy", settings.REFERRER_POLICY)
        return response
