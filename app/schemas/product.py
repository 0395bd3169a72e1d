import re
from decimal import Decimal, InvalidOperation

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.config import settings
from app.domain.enums import ProductStatus, SortOption, StockStatus

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_TWO_PLACES = Decimal("0.01")

# Shopify money amounts and GraphQL `Int` (32-bit signed) quantities.
MAX_PRICE = Decimal("1000000000000000000")
MAX_INVENTORY = 2**31 - 1


def _blank_to_none(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


# --- Product (view model) ---
class Product(BaseModel):
    """Lossy projection of a Shopify product: first variant and first image only."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    status: ProductStatus = ProductStatus.draft
    price: str = "0.00"
    image: str = ""
    inventory_quantity: int = Field(default=0, ge=0, alias="inventoryQuantity")

    @property
    def in_stock(self) -> bool:
        return self.inventory_quantity > 0

    @property
    def stock_status(self) -> StockStatus:
        return StockStatus.in_stock if self.in_stock else StockStatus.out_of_stock

    @property
    def price_value(self) -> Decimal:
        try:
            value = Decimal(self.price)
        except (InvalidOperation, TypeError, ValueError):
            return Decimal("0")
        return value if value.is_finite() else Decimal("0")


class PageInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_next_page: bool = Field(default=False, alias="hasNextPage")
    end_cursor: str | None = Field(default=None, alias="endCursor")


# --- Filter state ---
class ProductFilters(BaseModel):
    status: list[ProductStatus] = Field(default_factory=list)
    stock: list[StockStatus] = Field(default_factory=list)
    query: str | None = None
    sort: SortOption = SortOption.title_asc
    first: int = Field(default_factory=lambda: settings.PRODUCTS_DEFAULT_PAGE_SIZE, ge=1)
    after: str | None = None

    @field_validator("status", "stock", mode="before")
    @classmethod
    def split_csv(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        items: list[str] = []
        for item in value:
            item = str(getattr(item, "value", item)).strip().lower()
            if item and item not in items:
                items.append(item)
        return items

    @field_validator("query", "after", mode="before")
    @classmethod
    def strip_optional(cls, value):
        return _blank_to_none(value)

    @field_validator("sort", mode="before")
    @classmethod
    def default_sort(cls, value):
        value = _blank_to_none(value)
        return value.lower() if value else SortOption.title_asc

    @field_validator("first", mode="before")
    @classmethod
    def default_first(cls, value):
        value = _blank_to_none(value)
        return settings.PRODUCTS_DEFAULT_PAGE_SIZE if value is None else value

    @field_validator("first")
    @classmethod
    def cap_first(cls, value: int) -> int:
        if value > settings.PRODUCTS_MAX_PAGE_SIZE:
            raise ValueError(f"first must be at most {settings.PRODUCTS_MAX_PAGE_SIZE}")
        return value

    def to_query_params(self, include_paging: bool = False) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.status:
            params["status"] = ",".join(s.value for s in self.status)
        if self.stock:
            params["stock"] = ",".join(s.value for s in self.stock)
        if self.query:
            params["query"] = self.query
        params["sort"] = self.sort.value
        if include_paging:
            params["first"] = str(self.first)
            if self.after:
                params["after"] = self.after
        return params


# --- New-product draft ---
class ProductDraft(BaseModel):
    """Form input for the creation flow. Blank optional fields mean "not provided"."""

    title: str
    description: str = ""
    price: str | None = None
    image: str | None = None
    inventory: int | None = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, value):
        title = _blank_to_none(value)
        if not title:
            raise ValueError("Title is required")
        if len(title) < settings.PRODUCT_TITLE_MIN_LENGTH:
            raise ValueError(
                f"Title must be at least {settings.PRODUCT_TITLE_MIN_LENGTH} characters long"
            )
        return title

    @field_validator("description", mode="before")
    @classmethod
    def clean_description(cls, value):
        return _blank_to_none(value) or ""

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, value):
        raw = _blank_to_none(value)
        if raw is None:
            return None
        try:
            price = Decimal(raw)
            if not price.is_finite():
                raise ValueError("Price must be a valid number")
            if price < 0:
                raise ValueError("Price must be zero or greater")
            if price >= MAX_PRICE:
                raise ValueError(f"Price must be less than {MAX_PRICE}")
            return str(price.quantize(_TWO_PLACES))
        except InvalidOperation:
            raise ValueError("Price must be a valid number")

    @field_validator("inventory", mode="before")
    @classmethod
    def validate_inventory(cls, value):
        raw = _blank_to_none(value)
        if raw is None:
            return None
        try:
            quantity = int(raw)
        except ValueError:
            raise ValueError("Inventory must be a whole number")
        if quantity < 0:
            raise ValueError("Inventory must be zero or greater")
        if quantity > MAX_INVENTORY:
            raise ValueError(f"Inventory must be at most {MAX_INVENTORY}")
        return quantity

    @field_validator("image", mode="before")
    @classmethod
    def normalize_image(cls, value):
        url = _blank_to_none(value)
        if url is None:
            return None
        if not _SCHEME_RE.match(url):
            url = f"https://{url}"
        try:
            host = httpx.URL(url).host
        except httpx.InvalidURL:
            host = ""
        if not host or any(ch.isspace() for ch in url):
            raise ValueError("Image URL is not valid")
        return url

    @property
    def touches_variant(self) -> bool:
        return self.price is not None or self.inventory is not None


# --- Envelopes ---
class ProductListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    products: list[Product]
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class ProductCreateResponse(BaseModel):
    success: bool = True
    product: Product
    message: str = "Product created successfully!"


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
