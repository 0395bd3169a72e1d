# app/main.py
from fastapi import FastAPI, Response

from app.api.error_handlers import register_exception_handlers
from app.api.routers import pages, products
from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.core.metrics import export_metrics
from app.middleware import ObservabilityMiddleware, SecurityHeadersMiddleware

setup_logging()
logger = get_logger("app.main")

# --- Metadatos de la API para la documentación ---
TAGS_METADATA = [
    {"name": "products", "description": "List, filter, sort and create products in the Shopify store."},
]

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    description=(
        "Merchant-facing product manager backed by the Shopify Admin GraphQL API.\n\n"
        "- **GET /api/products**: one page of products with status/stock/text filters and sorting.\n"
        "- **POST /api/products**: create a product, then its variant and image, in order.\n"
    ),
    openapi_tags=TAGS_METADATA,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# --- Middlewares ---
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(ObservabilityMiddleware)

register_exception_handlers(app)

# --- Routers ---
app.include_router(products.router, prefix=settings.API_PREFIX)
app.include_router(pages.router)


@app.get("/metrics", include_in_schema=False)
def metrics():
    body, content_type = export_metrics()
    return Response(content=body, media_type=content_type)


@app.get("/healthz", include_in_schema=False)
def healthz():
    return {"status": "ok", "shopify_configured": settings.shopify_configured}


logger.info(
    "Application configured",
    extra={"shop": settings.SHOPIFY_STORE or None, "api_version": settings.SHOPIFY_API_VERSION},
)
