"""Runtime settings, read from the environment or a `.env` file at the repo root."""

from pathlib import Path
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Shopify credentials plus the knobs for paging, logging, metrics and headers."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # --- API metadata ---
    PROJECT_NAME: str = "Shopify Product Manager"
    API_PREFIX: str = "/api"

    # --- Shopify ---
    SHOPIFY_STORE: str = ""
    SHOPIFY_ACCESS_TOKEN: str = ""
    SHOPIFY_API_KEY: str = ""
    SHOPIFY_API_VERSION: str = "2024-10"
    SHOPIFY_LOCATION_ID: str | None = None
    UPSTREAM_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0)

    # --- Catalogo ---
    PRODUCTS_DEFAULT_PAGE_SIZE: int = Field(default=50, ge=1)
    PRODUCTS_MAX_PAGE_SIZE: int = Field(default=250, ge=1)
    PRODUCT_TITLE_MIN_LENGTH: int = Field(default=2, ge=1)

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    DEBUG_LOGGING: bool = False

    # --- Metrics ---
    METRICS_ENABLED: bool = True
    METRICS_NAMESPACE: str = "product_manager"
    METRICS_LATENCY_BUCKETS: list[float] = Field(default_factory=lambda: [0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0])

    # --- Security headers ---
    X_CONTENT_TYPE_OPTIONS: str = "nosniff"
    REFERRER_POLICY: str = "strict-origin-when-cross-origin"
    SHOPIFY_ADMIN_ORIGIN: str = "https://admin.shopify.com"

    @field_validator("METRICS_LATENCY_BUCKETS")
    @classmethod
    def validate_metric_buckets(cls, value: list[float]) -> list[float]:
        """Set as a JSON list in the environment, e.g. `[0.1, 0.5, 2]`."""
        if not value or any(b <= 0 for b in value) or value != sorted(set(value)):
            raise ValueError("METRICS_LATENCY_BUCKETS must be positive, unique and ascending.")
        return value

    @field_validator("SHOPIFY_STORE", mode="before")
    @classmethod
    def normalize_store(cls, value: str | None) -> str:
        """Accept `https://shop.myshopify.com/` and keep only the host."""
        if not value:
            return ""
        value = str(value).strip()
        for prefix in ("https://", "http://"):
            if value.lower().startswith(prefix):
                value = value[len(prefix):]
        return value.rstrip("/")

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, value: str) -> str:
        value = value.lower()
        if value not in {"json", "text"}:
            raise ValueError("LOG_FORMAT must be 'json' or 'text'.")
        return value

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.DEBUG_LOGGING else self.LOG_LEVEL.upper()

    @property
    def shopify_configured(self) -> bool:
        return bool(self.SHOPIFY_STORE and self.SHOPIFY_ACCESS_TOKEN)


settings = Settings()
