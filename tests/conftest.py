# tests/conftest.py
import sys
from pathlib import Path

# --- Configuración del Path ---
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import json
import os
from typing import Any

import httpx
import pytest
import pytest_asyncio

os.environ.setdefault("SHOPIFY_STORE", "test-shop.myshopify.com")
os.environ.setdefault("SHOPIFY_ACCESS_TOKEN", "shpat_test_token")
os.environ.setdefault("LOG_FORMAT", "text")

from app.main import app
from app.api.deps import get_shopify_client
from app.core.config import settings
from app.services.shopify.client import ShopifyAdminClient, operation_name


class FakeShopify:
    """In-memory stand-in for the Admin GraphQL endpoint, used as an httpx.MockTransport handler.

    `fail` maps an operation name to one of:
      "http"      -> HTTP 503
      "graphql"   -> top-level `errors`
      "user"      -> userErrors / mediaUserErrors in the payload
      "empty"     -> payload without a product
    """

    def __init__(self) -> None:
        self.products: list[dict[str, Any]] = []
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.requests: list[httpx.Request] = []
        self.fail: dict[str, str] = {}
        self._next_id = 1000

    # --- helpers de datos ---
    def add_product(
        self,
        title: str,
        *,
        status: str = "ACTIVE",
        price: str | None = "10.00",
        inventory: int | None = 0,
        image: str | None = None,
    ) -> dict[str, Any]:
        self._next_id += 1
        product = {
            "id": f"gid://shopify/Product/{self._next_id}",
            "title": title,
            "status": status,
            "descriptionHtml": "",
            "variant": None
            if price is None and inventory is None
            else {
                "id": f"gid://shopify/ProductVariant/{self._next_id}",
                "price": price,
                "inventoryQuantity": inventory,
                "inventoryItem": {"id": f"gid://shopify/InventoryItem/{self._next_id}"},
            },
            "image": image,
        }
        self.products.append(product)
        return product

    @property
    def operations(self) -> list[str]:
        return [name for name, _ in self.calls]

    # --- transporte ---
    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = json.loads(request.content)
        operation = operation_name(body["query"])
        variables = body.get("variables") or {}
        self.calls.append((operation, variables))

        failure = self.fail.get(operation)
        if failure == "http":
            return httpx.Response(503, text="Service Unavailable")
        if failure == "graphql":
            return httpx.Response(200, json={"errors": [{"message": f"{operation} is throttled"}]})

        handler = getattr(self, f"_{operation}")
        return httpx.Response(200, json={"data": handler(variables, failure)})

    def _node(self, product: dict[str, Any]) -> dict[str, Any]:
        variant = product["variant"]
        image = product["image"]
        return {
            "id": product["id"],
            "title": product["title"],
            "status": product["status"],
            "descriptionHtml": product["descriptionHtml"],
            "variants": {
                "edges": []
                if variant is None
                else [{"node": {k: variant[k] for k in ("id", "price", "inventoryQuantity")}}]
            },
            "images": {"edges": [] if image is None else [{"node": {"url": image, "altText": None}}]},
        }

    def _find(self, key: str, value: str) -> dict[str, Any]:
        for product in self.products:
            if key == "product" and product["id"] == value:
                return product
            variant = product["variant"] or {}
            if key == "inventory_item" and variant.get("inventoryItem", {}).get("id") == value:
                return product
        raise AssertionError(f"unknown {key} {value}")

    @staticmethod
    def _user_errors(failure: str | None, message: str) -> list[dict[str, Any]]:
        return [{"field": ["input"], "message": message}] if failure == "user" else []

    def _getProducts(self, variables, failure):
        nodes = [self._node(product) for product in self.products[: variables["first"]]]
        return {
            "products": {
                "edges": [{"node": node} for node in nodes],
                "pageInfo": {"hasNextPage": len(self.products) > variables["first"], "endCursor": "cursor-1"},
            }
        }

    def _productCreate(self, variables, failure):
        if failure == "user":
            return {"productCreate": {"product": None, "userErrors": self._user_errors(failure, "Title can't be blank")}}
        if failure == "empty":
            return {"productCreate": {"product": None, "userErrors": []}}
        product = self.add_product(variables["input"]["title"], price="0.00", inventory=0)
        product["descriptionHtml"] = variables["input"].get("descriptionHtml", "")
        node = self._node(product)
        node["variants"]["edges"][0]["node"]["inventoryItem"] = product["variant"]["inventoryItem"]
        return {"productCreate": {"product": node, "userErrors": []}}

    def _productVariantsBulkUpdate(self, variables, failure):
        if failure == "user":
            return {
                "productVariantsBulkUpdate": {
                    "productVariants": None,
                    "userErrors": self._user_errors(failure, "Price must be less than 1000000000"),
                }
            }
        product = self._find("product", variables["productId"])
        update = variables["variants"][0]
        if "price" in update:
            product["variant"]["price"] = update["price"]
        variant = product["variant"]
        return {
            "productVariantsBulkUpdate": {
                "productVariants": [{k: variant[k] for k in ("id", "price", "inventoryQuantity")}],
                "userErrors": [],
            }
        }

    def _primaryLocation(self, variables, failure):
        return {"locations": {"edges": [{"node": {"id": "gid://shopify/Location/1"}}]}}

    def _inventorySetQuantities(self, variables, failure):
        if failure == "user":
            return {
                "inventorySetQuantities": {
                    "inventoryAdjustmentGroup": None,
                    "userErrors": self._user_errors(failure, "Inventory item is not stocked at the location"),
                }
            }
        for quantity in variables["input"]["quantities"]:
            product = self._find("inventory_item", quantity["inventoryItemId"])
            product["variant"]["inventoryQuantity"] = quantity["quantity"]
        return {"inventorySetQuantities": {"inventoryAdjustmentGroup": {"id": "gid://shopify/InventoryAdjustmentGroup/1"}, "userErrors": []}}

    def _productCreateMedia(self, variables, failure):
        if failure == "user":
            return {
                "productCreateMedia": {
                    "media": [],
                    "mediaUserErrors": self._user_errors(failure, "Image URL is invalid"),
                }
            }
        product = self._find("product", variables["productId"])
        source = variables["media"][0]["originalSource"]
        product["image"] = source
        return {
            "productCreateMedia": {
                "media": [{"alt": product["title"], "mediaContentType": "IMAGE", "status": "UPLOADED", "image": None}],
                "mediaUserErrors": [],
            }
        }


# ---------- Fixtures ----------
@pytest.fixture(scope="function")
def shopify() -> FakeShopify:
    return FakeShopify()


@pytest_asyncio.fixture(scope="function")
async def shopify_client(shopify: FakeShopify):
    """Cliente Admin API real apuntando al transporte en memoria."""
    async with ShopifyAdminClient(
        settings.SHOPIFY_STORE,
        settings.SHOPIFY_ACCESS_TOKEN,
        transport=httpx.MockTransport(shopify),
    ) as admin_client:
        yield admin_client


@pytest_asyncio.fixture(scope="function")
async def client(shopify: FakeShopify):
    """AsyncClient enlazado a la app, con Shopify sustituido por FakeShopify."""

    async def override_shopify_client():
        async with ShopifyAdminClient(
            settings.SHOPIFY_STORE,
            settings.SHOPIFY_ACCESS_TOKEN,
            transport=httpx.MockTransport(shopify),
        ) as admin_client:
            yield admin_client

    app.dependency_overrides[get_shopify_client] = override_shopify_client
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
