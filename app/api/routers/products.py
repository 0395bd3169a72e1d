from fastapi import APIRouter, Depends, Form
from pydantic import ValidationError

from app.api.deps import get_product_filters, get_shopify_client
from app.api.error_handlers import format_validation_errors
from app.schemas.product import (
    ErrorResponse,
    ProductCreateResponse,
    ProductDraft,
    ProductFilters,
    ProductListResponse,
)
from app.services import product_service
from app.services.exceptions import DomainValidationError
from app.services.shopify.client import ShopifyAdminClient

router = APIRouter(prefix="/products", tags=["products"])


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    422: {"model": ErrorResponse, "description": "Rejected by Shopify"},
    500: {"model": ErrorResponse, "description": "Shopify unavailable or returned errors"},
}


@router.get("", response_model=ProductListResponse, responses=ERROR_RESPONSES)
async def list_products(
    filters: ProductFilters = Depends(get_product_filters),
    client: ShopifyAdminClient = Depends(get_shopify_client),
):
    page = await product_service.list_products(client, filters)
    return ProductListResponse(products=page.products, page_info=page.page_info)


@router.post("", response_model=ProductCreateResponse, responses=ERROR_RESPONSES)
async def create_product(
    title: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    image: str = Form(""),
    inventory: str = Form(""),
    client: ShopifyAdminClient = Depends(get_shopify_client),
):
    try:
        draft = ProductDraft(
            title=title,
            description=description,
            price=price,
            image=image,
            inventory=inventory,
        )
    except ValidationError as exc:
        raise DomainValidationError(format_validation_errors(exc.errors())) from exc

    outcome = await product_service.create_product(client, draft)
    return ProductCreateResponse(product=outcome.product)
