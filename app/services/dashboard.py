"""View model for the server-rendered products page."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from app.core.logging import get_logger
from app.schemas.product import Product, ProductFilters
from app.services.exceptions import ServiceError
from app.services.product_service import list_products
from app.services.shopify.client import ShopifyAdminClient
from app.utils.shop import store_handle

logger = get_logger("app.dashboard")

STATUS_FILTER_OPTIONS = [
    {"label": "Active", "value": "active"},
    {"label": "Draft", "value": "draft"},
]
STOCK_FILTER_OPTIONS = [
    {"label": "In Stock", "value": "in-stock"},
    {"label": "Out of Stock", "value": "out-of-stock"},
]
SORT_OPTIONS = [
    {"label": "Title A-Z", "value": "title-asc"},
    {"label": "Title Z-A", "value": "title-desc"},
    {"label": "Price Low-High", "value": "price-asc"},
    {"label": "Price High-Low", "value": "price-desc"},
]

_PRODUCT_GID = re.compile(r"Product/(\d+)")


def admin_product_url(shop: str | None, product_id: str) -> str | None:
    """Link into the Shopify admin for a product gid, or None when it cannot be built."""
    match = _PRODUCT_GID.search(product_id or "")
    if not shop or not match:
        return None
    return f"https://admin.shopify.com/store/{store_handle(shop)}/products/{match.group(1)}"


@dataclass
class ListingView:
    filters: ProductFilters
    shop: str | None = None
    state: str = "loading"
    products: list[Product] = field(default_factory=list)
    error: str | None = None

    @property
    def applied_filters(self) -> list[dict[str, str]]:
        chips = []
        if self.filters.status:
            chips.append({"key": "status", "label": "Status: " + ", ".join(s.value for s in self.filters.status)})
        if self.filters.stock:
            chips.append({"key": "stock", "label": "Stock: " + ", ".join(s.value for s in self.filters.stock)})
        return chips

    def admin_url(self, product: Product) -> str | None:
        return admin_product_url(self.shop, product.id)

    async def load(self, client: ShopifyAdminClient) -> "ListingView":
        """Resolve `loading` into `success` or `error`; the list is cleared on error."""
        self.state = "loading"
        try:
            page = await list_products(client, self.filters)
        except ServiceError as exc:
            logger.warning("Products page could not load the listing", extra={"error": exc.detail})
            self.state = "error"
            self.error = exc.detail
            self.products = []
            return self
        self.state = "success"
        self.error = None
        self.products = page.products
        return self
