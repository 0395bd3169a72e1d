# app/api/deps.py
from typing import AsyncIterator

from fastapi import Query
from pydantic import ValidationError

from app.api.error_handlers import format_validation_errors
from app.core.config import settings
from app.schemas.product import ProductFilters
from app.services.exceptions import ConfigurationError, DomainValidationError
from app.services.shopify.client import ShopifyAdminClient


async def get_shopify_client() -> AsyncIterator[ShopifyAdminClient]:
    """Per-request Admin API client for the installed shop (offline access token)."""
    if not settings.shopify_configured:
        raise ConfigurationError("Shopify credentials are not configured")
    async with ShopifyAdminClient(
        settings.SHOPIFY_STORE,
        settings.SHOPIFY_ACCESS_TOKEN,
        settings.SHOPIFY_API_VERSION,
    ) as client:
        yield client


def get_product_filters(
    first: str | None = Query(None, description="page size"),
    after: str | None = Query(None, description="opaque pagination cursor"),
    query: str | None = Query(None, description="text to match in the title"),
    status: str | None = Query(None, description="comma-separated: active,draft"),
    stock: str | None = Query(None, description="comma-separated: in-stock,out-of-stock"),
    sort: str | None = Query(None, description="title-asc|title-desc|price-asc|price-desc"),
) -> ProductFilters:
    try:
        return ProductFilters.model_validate(
            {"first": first, "after": after, "query": query, "status": status, "stock": stock, "sort": sort}
        )
    except ValidationError as exc:
        raise DomainValidationError(format_validation_errors(exc.errors())) from exc
