import base64
import re

_SHOP_RE = re.compile(r"^[a-z0-9][a-z0-9-]*\.myshopify\.com$")


def normalize_shop(raw: str | None) -> str | None:
    """`my-shop`, `https://my-shop.myshopify.com/` -> `my-shop.myshopify.com`; None if invalid."""
    if not raw:
        return None
    shop = raw.strip().lower()
    for prefix in ("https://", "http://"):
        if shop.startswith(prefix):
            shop = shop[len(prefix):]
    shop = shop.split("/", 1)[0]
    if shop and "." not in shop:
        shop = f"{shop}.myshopify.com"
    return shop if _SHOP_RE.match(shop) else None


def store_handle(shop: str) -> str:
    return shop.removesuffix(".myshopify.com")


def admin_host(shop: str) -> str:
    """Base64 `host` param the admin passes to embedded apps."""
    raw = f"admin.shopify.com/store/{store_handle(shop)}".encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")
