"""Shopify Admin API integration."""


class ShopifyError(Exception):
    """Base error for Shopify Admin API calls."""


class ShopifyTransportError(ShopifyError):
    """Raised when Shopify cannot be reached or answers with a non-JSON/non-2xx response."""


class ShopifyGraphQLError(ShopifyError):
    """Raised when the GraphQL response carries top-level `errors`."""

    def __init__(self, message: str, errors: list[dict] | None = None):
        self.errors = errors or []
        super().__init__(message)
