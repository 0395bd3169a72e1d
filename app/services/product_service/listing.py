from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable

from app.core.logging import get_logger
from app.domain.enums import ProductStatus, SortOption
from app.schemas.product import PageInfo, Product, ProductFilters
from app.services.exceptions import UpstreamServiceError
from app.services.shopify import ShopifyError
from app.services.shopify.client import ShopifyAdminClient
from app.services.shopify.queries import PRODUCTS_QUERY

logger = get_logger("app.products.listing")

LIST_FAILURE_MESSAGE = "Failed to fetch products. Please try again later."

# Shopify search syntax reserves these characters inside a term.
_SEARCH_SPECIAL = re.compile(r'([\\:()"\'*])')


@dataclass
class ProductPage:
    products: list[Product] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=PageInfo)


def _escape_term(term: str) -> str:
    return _SEARCH_SPECIAL.sub(r"\\\1", term)


def build_search_query(filters: ProductFilters) -> str | None:
    """Translate the text/status filters into a Shopify product search expression."""
    parts: list[str] = []
    if filters.query:
        # Whole text as one term, same as the substring match in matches_filters.
        parts.append(f"title:*{_escape_term(filters.query)}*")
    if filters.status:
        statuses = [f"status:{status.value}" for status in filters.status]
        parts.append(statuses[0] if len(statuses) == 1 else "(" + " OR ".join(statuses) + ")")
    return " AND ".join(parts) or None


def _first_node(connection: Any) -> dict:
    edges = (connection or {}).get("edges") or []
    if not edges:
        return {}
    return edges[0].get("node") or {}


def project_product(node: dict) -> Product:
    """Project an upstream product node onto the view model, filling defaults."""
    variant = _first_node(node.get("variants"))
    image = _first_node(node.get("images"))

    raw_status = str(node.get("status") or "").lower()
    try:
        status = ProductStatus(raw_status)
    except ValueError:
        logger.debug("Unknown product status from Shopify", extra={"status": raw_status, "product_id": node.get("id")})
        status = ProductStatus.draft

    try:
        inventory = int(variant.get("inventoryQuantity") or 0)
    except (TypeError, ValueError):
        inventory = 0

    return Product(
        id=str(node.get("id") or ""),
        title=str(node.get("title") or ""),
        status=status,
        price=str(variant.get("price") or "0.00"),
        image=str(image.get("url") or ""),
        inventory_quantity=max(inventory, 0),
    )


def matches_filters(product: Product, filters: ProductFilters) -> bool:
    if filters.status and product.status not in filters.status:
        return False
    if filters.stock and product.stock_status not in filters.stock:
        return False
    if filters.query and filters.query.casefold() not in product.title.casefold():
        return False
    return True


def sort_products(products: Iterable[Product], sort: SortOption) -> list[Product]:
    """Stable comparator sort; equal keys keep their incoming order in both directions."""
    if sort.field == "price":
        key = lambda product: product.price_value  # noqa: E731
    else:
        key = lambda product: product.title.casefold()  # noqa: E731
    return sorted(products, key=key, reverse=sort.descending)


async def list_products(client: ShopifyAdminClient, filters: ProductFilters) -> ProductPage:
    variables = {
        "first": filters.first,
        "after": filters.after,
        "query": build_search_query(filters),
        "sortKey": "TITLE",
        "reverse": filters.sort is SortOption.title_desc,
    }
    logger.debug("Fetching products from Shopify", extra={"variables": variables})

    try:
        data = await client.execute(PRODUCTS_QUERY, variables)
        connection = data["products"]
        nodes = [edge["node"] for edge in connection.get("edges") or []]
        page_info = PageInfo.model_validate(connection.get("pageInfo") or {})
    except ShopifyError as exc:
        logger.error("Error fetching products: %s", exc)
        raise UpstreamServiceError(LIST_FAILURE_MESSAGE) from exc
    except (KeyError, TypeError, AttributeError) as exc:
        logger.error("Malformed products payload from Shopify: %s", exc)
        raise UpstreamServiceError(LIST_FAILURE_MESSAGE) from exc

    products = [project_product(node) for node in nodes]
    filtered = [product for product in products if matches_filters(product, filters)]
    logger.info(
        "Listed products",
        extra={"fetched": len(products), "returned": len(filtered), "sort": filters.sort.value},
    )
    return ProductPage(products=sort_products(filtered, filters.sort), page_info=page_info)
