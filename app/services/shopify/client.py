from __future__ import annotations

import re
import time
from typing import Any

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.core.metrics import record_upstream_call
from app.services.shopify import (
    ShopifyGraphQLError,
    ShopifyTransportError,
)

logger = get_logger("app.shopify")

_OPERATION_RE = re.compile(r"^\s*(?:query|mutation)\s+(\w+)", re.MULTILINE)


def operation_name(document: str) -> str:
    match = _OPERATION_RE.search(document)
    return match.group(1) if match else "anonymous"


class ShopifyAdminClient:
    """Thin async wrapper around the Shopify Admin GraphQL endpoint.

    One attempt per call: there is no retry or backoff, callers surface the
    failure and the merchant retries from the UI.
    """

    def __init__(
        self,
        shop: str,
        access_token: str,
        api_version: str | None = None,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.shop = shop
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.graphql_url = f"https://{shop}/admin/api/{self.api_version}/graphql.json"
        self._http = httpx.AsyncClient(
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout or settings.UPSTREAM_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "ShopifyAdminClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def execute(self, document: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a query or mutation and return its `data` object."""
        operation = operation_name(document)
        payload: dict[str, Any] = {"query": document}
        if variables:
            payload["variables"] = variables

        start = time.perf_counter()
        try:
            response = await self._http.post(self.graphql_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            self._record(operation, "http_error", start)
            raise ShopifyTransportError(
                f"Shopify responded with HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            self._record(operation, "transport_error", start)
            raise ShopifyTransportError(f"Shopify connection error: {exc}") from exc
        except ValueError as exc:
            self._record(operation, "malformed", start)
            raise ShopifyTransportError("Shopify returned a malformed response") from exc

        errors = body.get("errors") if isinstance(body, dict) else None
        if errors:
            self._record(operation, "graphql_error", start)
            message = _first_error_message(errors)
            logger.warning("GraphQL errors from Shopify", extra={"operation": operation, "errors": errors})
            raise ShopifyGraphQLError(message, errors if isinstance(errors, list) else None)

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, dict):
            self._record(operation, "malformed", start)
            raise ShopifyTransportError("Shopify response did not include data")

        self._record(operation, "ok", start)
        return data

    def _record(self, operation: str, outcome: str, start: float) -> None:
        elapsed = time.perf_counter() - start
        record_upstream_call(operation, outcome, elapsed)
        logger.debug(
            "Shopify call finished",
            extra={"operation": operation, "outcome": outcome, "duration_ms": round(elapsed * 1000, 3)},
        )


def _first_error_message(errors: Any) -> str:
    if isinstance(errors, list) and errors:
        first = errors[0]
        if isinstance(first, dict) and first.get("message"):
            return str(first["message"])
        return str(first)
    if isinstance(errors, str):
        return errors
    return "Shopify GraphQL request failed"
