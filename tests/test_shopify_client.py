# tests/test_shopify_client.py
import json

import httpx
import pytest

from app.services.shopify import ShopifyGraphQLError, ShopifyTransportError
from app.services.shopify.client import ShopifyAdminClient, operation_name
from app.services.shopify.queries import PRODUCT_CREATE, PRODUCTS_QUERY


def _client(handler) -> ShopifyAdminClient:
    return ShopifyAdminClient(
        "demo.myshopify.com",
        "shpat_secret",
        "2024-10",
        transport=httpx.MockTransport(handler),
    )


def test_operation_name():
    assert operation_name(PRODUCTS_QUERY) == "getProducts"
    assert operation_name(PRODUCT_CREATE) == "productCreate"
    assert operation_name("{ shop { name } }") == "anonymous"


@pytest.mark.asyncio
async def test_execute_posts_graphql_document():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["token"] = request.headers["X-Shopify-Access-Token"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"shop": {"name": "Demo"}}})

    async with _client(handler) as client:
        data = await client.execute("query shopName { shop { name } }", {"a": 1})

    assert data == {"shop": {"name": "Demo"}}
    assert seen["url"] == "https://demo.myshopify.com/admin/api/2024-10/graphql.json"
    assert seen["token"] == "shpat_secret"
    assert seen["body"] == {"query": "query shopName { shop { name } }", "variables": {"a": 1}}


@pytest.mark.asyncio
async def test_graphql_errors_raise_with_first_message():
    def handler(request):
        return httpx.Response(
            200,
            json={"errors": [{"message": "Throttled"}, {"message": "Other"}], "data": None},
        )

    async with _client(handler) as client:
        with pytest.raises(ShopifyGraphQLError) as excinfo:
            await client.execute(PRODUCTS_QUERY, {"first": 1})

    assert str(excinfo.value) == "Throttled"
    assert len(excinfo.value.errors) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(401, json={"errors": "Invalid API key or access token"}),
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json={"extensions": {}}),
    ],
)
async def test_transport_failures(response):
    async with _client(lambda request: response) as client:
        with pytest.raises(ShopifyTransportError):
            await client.execute(PRODUCTS_QUERY, {"first": 1})


@pytest.mark.asyncio
async def test_connection_error_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(ShopifyTransportError):
            await client.execute(PRODUCTS_QUERY, {"first": 1})
