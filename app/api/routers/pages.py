from __future__ import annotations

from pathlib import Path
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from app.api.deps import get_shopify_client
from app.api.error_handlers import format_validation_errors
from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.product import ProductFilters
from app.services.dashboard import (
    SORT_OPTIONS,
    STATUS_FILTER_OPTIONS,
    STOCK_FILTER_OPTIONS,
    ListingView,
)
from app.services.shopify.client import ShopifyAdminClient
from app.utils.shop import admin_host, normalize_shop

router = APIRouter(tags=["pages"], include_in_schema=False)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[2] / "templates"))

logger = get_logger("app.pages")


def _login_page(request: Request, error: str | None = None, status_code: int = 200) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "login.html",
        {"error": error, "project_name": settings.PROJECT_NAME},
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
async def landing(request: Request):
    if request.query_params.get("shop"):
        return RedirectResponse(f"/app?{request.url.query}", status_code=status.HTTP_302_FOUND)
    return _login_page(request)


@router.get("/auth/login", response_class=HTMLResponse)
async def login_form(request: Request):
    return _login_page(request)


@router.post("/auth/login")
async def login(request: Request, shop: str = Form("")):
    normalized = normalize_shop(shop)
    if not normalized:
        return _login_page(request, "Enter a valid *.myshopify.com store domain", status.HTTP_400_BAD_REQUEST)
    host = request.query_params.get("host") or admin_host(normalized)
    query = urlencode({"shop": normalized, "host": host})
    return RedirectResponse(f"/app?{query}", status_code=status.HTTP_303_SEE_OTHER)


async def _products_page(request: Request, client: ShopifyAdminClient) -> HTMLResponse:
    shop = request.query_params.get("shop")
    host = request.query_params.get("host")
    logger.debug("Rendering products page", extra={"shop": shop, "host": host})

    error = None
    try:
        filters = ProductFilters.model_validate(
            {key: request.query_params.get(key) for key in ("status", "stock", "query", "sort", "first", "after")}
        )
    except ValidationError as exc:
        error = format_validation_errors(exc.errors())
        filters = ProductFilters()

    view = ListingView(filters=filters, shop=shop)
    if error:
        view.state, view.error = "error", error
    else:
        await view.load(client)

    return templates.TemplateResponse(
        request,
        "products.html",
        {
            "view": view,
            "shop": shop,
            "host": host,
            "api_key": settings.SHOPIFY_API_KEY,
            "api_url": f"{settings.API_PREFIX}/products",
            "status_options": STATUS_FILTER_OPTIONS,
            "stock_options": STOCK_FILTER_OPTIONS,
            "sort_options": SORT_OPTIONS,
            "retry_query": urlencode({"shop": shop, "host": host, **filters.to_query_params()}),
        },
    )


def require_embedded_context(request: Request) -> None:
    """`/app` is only served inside the admin, which always passes `shop` and `host`."""
    if not request.query_params.get("shop") or not request.query_params.get("host"):
        raise HTTPException(status_code=status.HTTP_302_FOUND, headers={"Location": "/auth/login"})


@router.get("/app", response_class=HTMLResponse, dependencies=[Depends(require_embedded_context)])
async def products_page(request: Request, client: ShopifyAdminClient = Depends(get_shopify_client)):
    return await _products_page(request, client)
