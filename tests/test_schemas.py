# tests/test_schemas.py
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.domain.enums import ProductStatus, SortOption, StockStatus
from app.schemas.product import Product, ProductDraft, ProductFilters
from app.services.product_service import (
    build_search_query,
    matches_filters,
    project_product,
    sort_products,
)


# --- ProductFilters ---
def test_filters_defaults_for_blank_values():
    filters = ProductFilters.model_validate(
        {"status": "", "stock": None, "query": "  ", "sort": "", "first": "", "after": ""}
    )
    assert filters.status == []
    assert filters.stock == []
    assert filters.query is None
    assert filters.sort is SortOption.title_asc
    assert filters.first == 50
    assert filters.after is None


def test_filters_parse_csv_lists():
    filters = ProductFilters.model_validate({"status": "Active, draft,active", "stock": "out-of-stock"})
    assert filters.status == [ProductStatus.active, ProductStatus.draft]
    assert filters.stock == [StockStatus.out_of_stock]
    assert filters.to_query_params() == {
        "status": "active,draft",
        "stock": "out-of-stock",
        "sort": "title-asc",
    }


def test_filters_reject_page_size_over_cap():
    with pytest.raises(ValidationError):
        ProductFilters.model_validate({"first": "251"})
    assert ProductFilters.model_validate({"first": "250"}).first == 250


def test_sort_option_fields():
    assert SortOption.price_desc.field == "price"
    assert SortOption.price_desc.descending is True
    assert SortOption.title_asc.field == "title"
    assert SortOption.title_asc.descending is False


# --- ProductDraft ---
def test_draft_blank_optionals_are_not_provided():
    draft = ProductDraft(title="Mug", description="", price="", image="", inventory="")
    assert draft.price is None
    assert draft.image is None
    assert draft.inventory is None
    assert draft.touches_variant is False


@pytest.mark.parametrize(
    "raw, expected",
    [("0", "0.00"), ("12", "12.00"), ("12.5", "12.50"), (" 7.999 ", "8.00")],
)
def test_draft_price_is_normalized(raw, expected):
    assert ProductDraft(title="Mug", price=raw).price == expected


@pytest.mark.parametrize("raw", ["NaN", "Infinity", "1e", "12,50"])
def test_draft_price_must_be_finite_number(raw):
    with pytest.raises(ValidationError) as excinfo:
        ProductDraft(title="Mug", price=raw)
    assert "Price must be a valid number" in str(excinfo.value)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("cdn.example.com/a.png", "https://cdn.example.com/a.png"),
        ("http://cdn.example.com/a.png", "http://cdn.example.com/a.png"),
        ("HTTPS://cdn.example.com/a.png", "HTTPS://cdn.example.com/a.png"),
    ],
)
def test_draft_image_scheme(raw, expected):
    assert ProductDraft(title="Mug", image=raw).image == expected


def test_draft_image_with_spaces_is_invalid():
    with pytest.raises(ValidationError) as excinfo:
        ProductDraft(title="Mug", image="not a url")
    assert "Image URL is not valid" in str(excinfo.value)


def test_inventory_zero_touches_variant():
    draft = ProductDraft(title="Mug", inventory="0")
    assert draft.inventory == 0
    assert draft.touches_variant is True


# --- Listing helpers ---
def test_build_search_query():
    assert build_search_query(ProductFilters()) is None
    assert build_search_query(ProductFilters(query="red shirt")) == "title:*red shirt*"
    assert build_search_query(ProductFilters(query='a:b"')) == 'title:*a\\:b\\"*'
    assert (
        build_search_query(ProductFilters(query="mug", status="active,draft"))
        == "title:*mug* AND (status:active OR status:draft)"
    )


def test_project_product_takes_first_variant_and_image():
    node = {
        "id": "gid://shopify/Product/1",
        "title": "Mug",
        "status": "ARCHIVED",
        "variants": {
            "edges": [
                {"node": {"id": "v1", "price": "4.00", "inventoryQuantity": 2}},
                {"node": {"id": "v2", "price": "99.00", "inventoryQuantity": 50}},
            ]
        },
        "images": {"edges": [{"node": {"url": "https://cdn/1.png"}}, {"node": {"url": "https://cdn/2.png"}}]},
    }
    product = project_product(node)
    assert product.status is ProductStatus.archived
    assert product.price == "4.00"
    assert product.inventory_quantity == 2
    assert product.image == "https://cdn/1.png"


def test_matches_filters_uses_stock_derivation():
    product = Product(id="1", title="Mug", status="active", inventory_quantity=0)
    assert product.stock_status is StockStatus.out_of_stock
    assert matches_filters(product, ProductFilters(stock="out-of-stock"))
    assert not matches_filters(product, ProductFilters(stock="in-stock"))
    assert not matches_filters(product, ProductFilters(status="draft"))
    assert matches_filters(product, ProductFilters(query="MU"))


def test_sort_is_stable_and_price_invalid_counts_as_zero():
    products = [
        Product(id="1", title="b", price="5.00"),
        Product(id="2", title="a", price="oops"),
        Product(id="3", title="c", price="5.00"),
    ]
    assert products[1].price_value == Decimal("0")
    assert [p.id for p in sort_products(products, SortOption.price_asc)] == ["2", "1", "3"]
    assert [p.id for p in sort_products(products, SortOption.price_desc)] == ["1", "3", "2"]
    assert [p.id for p in sort_products(products, SortOption.title_desc)] == ["3", "1", "2"]


def test_draft_bounds_match_shopify_limits():
    assert ProductDraft(title="Mug", price="999999999999999999.99").price == "999999999999999999.99"
    assert ProductDraft(title="Mug", inventory="2147483647").inventory == 2147483647
    with pytest.raises(ValidationError) as excinfo:
        ProductDraft(title="Mug", inventory="2147483648")
    assert "Inventory must be at most 2147483647" in str(excinfo.value)
