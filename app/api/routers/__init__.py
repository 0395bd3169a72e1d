from . import pages
from . import products

__all__ = [
    "pages",
    "products",
]
