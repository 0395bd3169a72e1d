"""Product creation as an explicit, ordered sequence of dependent Shopify mutations.

product -> variant -> image. Each step only runs if every earlier step
succeeded. Nothing is compensated: if the variant or image step fails, the
product created by the first step stays in the store and the error of the
failing step is reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from app.core.config import settings
from app.core.logging import get_logger
from app.core.metrics import record_creation_step
from app.domain.enums import ProductStatus
from app.schemas.product import Product, ProductDraft
from app.services.exceptions import ServiceError, UpstreamServiceError, UpstreamUserError
from app.services.shopify import ShopifyGraphQLError, ShopifyTransportError
from app.services.shopify.client import ShopifyAdminClient
from app.services.shopify.queries import (
    INVENTORY_SET_QUANTITIES,
    PRIMARY_LOCATION_QUERY,
    PRODUCT_CREATE,
    PRODUCT_CREATE_MEDIA,
    PRODUCT_VARIANTS_BULK_UPDATE,
)

logger = get_logger("app.products.creation")

CREATE_FAILURE_MESSAGE = "Failed to create product. Please try again."


@dataclass
class CreationContext:
    client: ShopifyAdminClient
    draft: ProductDraft
    product: dict[str, Any] | None = None
    variant: dict[str, Any] | None = None
    image_url: str | None = None

    @property
    def product_id(self) -> str | None:
        return (self.product or {}).get("id")


@dataclass
class StepResult:
    name: str
    ok: bool
    data: dict[str, Any] | None = None
    error: ServiceError | None = None


@dataclass
class CreationStep:
    name: str
    run: Callable[[CreationContext], Awaitable[dict[str, Any]]]
    enabled: Callable[[CreationContext], bool] = lambda context: True


@dataclass
class CreationOutcome:
    results: list[StepResult] = field(default_factory=list)
    product: Product | None = None

    @property
    def failed(self) -> StepResult | None:
        return next((result for result in self.results if not result.ok), None)

    @property
    def executed(self) -> list[str]:
        return [result.name for result in self.results]


class CreationSaga:
    """Run steps in order, capture each result, stop at the first failure."""

    def __init__(self, steps: list[CreationStep]):
        self.steps = steps

    async def run(self, context: CreationContext) -> CreationOutcome:
        outcome = CreationOutcome()
        for step in self.steps:
            if not step.enabled(context):
                logger.debug("Skipping creation step", extra={"step": step.name})
                continue
            try:
                data = await step.run(context)
            except ServiceError as exc:
                record_creation_step(step.name, ok=False)
                outcome.results.append(StepResult(name=step.name, ok=False, error=exc))
                break
            record_creation_step(step.name, ok=True)
            outcome.results.append(StepResult(name=step.name, ok=True, data=data))
        return outcome


# --- Upstream helpers ---
async def _execute(context: CreationContext, step: str, document: str, variables: dict[str, Any]) -> dict[str, Any]:
    try:
        return await context.client.execute(document, variables)
    except ShopifyGraphQLError as exc:
        raise UpstreamServiceError(str(exc), step=step) from exc
    except ShopifyTransportError as exc:
        logger.error("Shopify transport failure during %s step: %s", step, exc)
        raise UpstreamServiceError(CREATE_FAILURE_MESSAGE, step=step) from exc


def _payload(data: dict[str, Any], key: str, step: str) -> dict[str, Any]:
    payload = data.get(key)
    if not isinstance(payload, dict):
        raise UpstreamServiceError(CREATE_FAILURE_MESSAGE, step=step)
    return payload


def _raise_user_errors(errors: list[dict[str, Any]] | None, step: str) -> None:
    if errors:
        raise UpstreamUserError(str(errors[0].get("message") or "Shopify rejected the request"), step=step)


def _default_variant(product: dict[str, Any]) -> dict[str, Any] | None:
    edges = (product.get("variants") or {}).get("edges") or []
    return edges[0].get("node") if edges else None


# --- Steps ---
async def create_product_shell(context: CreationContext) -> dict[str, Any]:
    product_input = {
        "title": context.draft.title,
        "descriptionHtml": context.draft.description,
    }
    logger.debug("Creating product", extra={"input": product_input})
    data = await _execute(context, "product", PRODUCT_CREATE, {"input": product_input})
    payload = _payload(data, "productCreate", "product")
    _raise_user_errors(payload.get("userErrors"), "product")

    product = payload.get("product")
    if not product:
        raise UpstreamServiceError("Product creation failed - no product returned", step="product")
    context.product = product
    context.variant = _default_variant(product)
    return {"productId": product["id"]}


async def _primary_location_id(context: CreationContext) -> str:
    if settings.SHOPIFY_LOCATION_ID:
        return settings.SHOPIFY_LOCATION_ID
    data = await _execute(context, "variant", PRIMARY_LOCATION_QUERY, {})
    edges = (data.get("locations") or {}).get("edges") or []
    if not edges:
        raise UpstreamServiceError("No inventory location is available for this store", step="variant")
    return edges[0]["node"]["id"]


async def attach_variant(context: CreationContext) -> dict[str, Any]:
    variant = context.variant
    if not variant or not variant.get("id"):
        raise UpstreamServiceError("Product has no default variant to update", step="variant")

    draft = context.draft
    variant_input: dict[str, Any] = {"id": variant["id"]}
    if draft.price is not None:
        variant_input["price"] = draft.price
    if draft.inventory is not None:
        variant_input["inventoryItem"] = {"tracked": True}

    data = await _execute(
        context,
        "variant",
        PRODUCT_VARIANTS_BULK_UPDATE,
        {"productId": context.product_id, "variants": [variant_input]},
    )
    payload = _payload(data, "productVariantsBulkUpdate", "variant")
    _raise_user_errors(payload.get("userErrors"), "variant")
    updated = (payload.get("productVariants") or [{}])[0] or {}
    context.variant = {**variant, **updated}

    if draft.inventory is not None:
        inventory_item_id = (variant.get("inventoryItem") or {}).get("id")
        if not inventory_item_id:
            raise UpstreamServiceError("Variant has no inventory item to stock", step="variant")
        location_id = await _primary_location_id(context)
        data = await _execute(
            context,
            "variant",
            INVENTORY_SET_QUANTITIES,
            {
                "input": {
                    "name": "available",
                    "reason": "correction",
                    "ignoreCompareQuantity": True,
                    "quantities": [
                        {
                            "inventoryItemId": inventory_item_id,
                            "locationId": location_id,
                            "quantity": draft.inventory,
                        }
                    ],
                }
            },
        )
        payload = _payload(data, "inventorySetQuantities", "variant")
        _raise_user_errors(payload.get("userErrors"), "variant")
        context.variant["inventoryQuantity"] = draft.inventory

    return {"variantId": variant["id"]}


async def attach_image(context: CreationContext) -> dict[str, Any]:
    media_input = {
        "originalSource": context.draft.image,
        "mediaContentType": "IMAGE",
        "alt": context.draft.title,
    }
    data = await _execute(
        context,
        "image",
        PRODUCT_CREATE_MEDIA,
        {"productId": context.product_id, "media": [media_input]},
    )
    payload = _payload(data, "productCreateMedia", "image")
    _raise_user_errors(payload.get("mediaUserErrors"), "image")

    media = (payload.get("media") or [{}])[0] or {}
    # Shopify processes media asynchronously; the CDN url may not exist yet.
    context.image_url = ((media.get("image") or {}).get("url")) or context.draft.image
    return {"image": context.image_url}


PRODUCT_CREATION_STEPS = [
    CreationStep("product", create_product_shell),
    CreationStep("variant", attach_variant, enabled=lambda context: context.draft.touches_variant),
    CreationStep("image", attach_image, enabled=lambda context: context.draft.image is not None),
]


def _projection(context: CreationContext) -> Product:
    product = context.product or {}
    variant = context.variant or {}
    raw_status = str(product.get("status") or "").lower()
    try:
        status = ProductStatus(raw_status)
    except ValueError:
        status = ProductStatus.draft
    try:
        inventory = int(variant.get("inventoryQuantity") or 0)
    except (TypeError, ValueError):
        inventory = 0
    return Product(
        id=str(product.get("id") or ""),
        title=str(product.get("title") or context.draft.title),
        status=status,
        price=str(variant.get("price") or "0.00"),
        image=context.image_url or "",
        inventory_quantity=max(inventory, 0),
    )


async def create_product(client: ShopifyAdminClient, draft: ProductDraft) -> CreationOutcome:
    """Create a product and return its projection, or raise the first failing step's error."""
    context = CreationContext(client=client, draft=draft)
    outcome = await CreationSaga(PRODUCT_CREATION_STEPS).run(context)

    failed = outcome.failed
    if failed is not None:
        if context.product_id:
            logger.warning(
                "Product creation stopped after a partial write; the product is kept",
                extra={"step": failed.name, "product_id": context.product_id, "error": failed.error.detail},
            )
        else:
            logger.warning("Product creation failed", extra={"step": failed.name, "error": failed.error.detail})
        raise failed.error

    outcome.product = _projection(context)
    logger.info("Product created", extra={"product_id": outcome.product.id, "steps": outcome.executed})
    return outcome
