# Re-exporta funciones para mantener compatibilidad:
from .listing import (
    ProductPage,
    build_search_query,
    list_products,
    matches_filters,
    project_product,
    sort_products,
)

from .creation import (
    CreationOutcome,
    CreationSaga,
    CreationStep,
    StepResult,
    create_product,
)

__all__ = [
    # listing
    "ProductPage", "build_search_query", "list_products", "matches_filters", "project_product", "sort_products",
    # creation
    "CreationOutcome", "CreationSaga", "CreationStep", "StepResult", "create_product",
]
