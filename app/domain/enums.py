# app/domain/enums.py
import enum


class ProductStatus(str, enum.Enum):
    active = "active"
    draft = "draft"
    archived = "archived"


class StockStatus(str, enum.Enum):
    in_stock = "in-stock"
    out_of_stock = "out-of-stock"


class SortOption(str, enum.Enum):
    title_asc = "title-asc"
    title_desc = "title-desc"
    price_asc = "price-asc"
    price_desc = "price-desc"

    @property
    def field(self) -> str:
        return self.value.split("-", 1)[0]

    @property
    def descending(self) -> bool:
        return self.value.endswith("-desc")
