"""
Application configuration using Pydantic Settings.
Loads environment variables from .env file.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Namespaces whose metafields are copied to the CRM when nothing else is configured
DEFAULT_METAFIELD_NAMESPACES = "custom,diamond,gemstone,jewelry,loose,fantasy"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    app_env: str = Field(default="development", alias="APP_ENV")
    app_debug: bool = Field(default=False, alias="APP_DEBUG")
    app_host: str = Field(default="0.0.0.0", alias="APP_HOST")
    app_port: int = Field(default=3000, alias="APP_PORT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # -------------------------------------------------------------------------
    # CORS
    # -------------------------------------------------------------------------
    cors_origins: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # -------------------------------------------------------------------------
    # PostgreSQL (sync history)
    # -------------------------------------------------------------------------
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")
    postgres_db: str = Field(default="catalog_sync", alias="POSTGRES_DB")
    postgres_user: str = Field(default="postgres", alias="POSTGRES_USER")
    postgres_password: str = Field(default="postgres", alias="POSTGRES_PASSWORD")
    database_url: str | None = Field(default=None, alias="DATABASE_URL")

    @property
    def async_database_url(self) -> str:
        """Build async database URL for SQLAlchemy."""
        if self.database_url:
            # Ensure we use the async driver
            url = self.database_url
            if url.startswith("postgresql://"):
                url = url.replace("postgresql://", "postgresql+psycopg://", 1)
            return url
        return (
            f"postgresql+psycopg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # -------------------------------------------------------------------------
    # Shopify (catalog source)
    # -------------------------------------------------------------------------
    shopify_shop: str | None = Field(
        default=None,
        alias="SHOPIFY_SHOP",
        description="Shop subdomain, e.g. 'my-store' for my-store.myshopify.com",
    )
    shopify_admin_api_token: str | None = Field(
        default=None,
        alias="SHOPIFY_ADMIN_API_TOKEN",
    )
    shopify_api_version: str = Field(default="2023-10", alias="SHOPIFY_API_VERSION")
    shopify_page_size: int = Field(default=100, alias="SHOPIFY_PAGE_SIZE")

    @property
    def shopify_graphql_url(self) -> str:
        """Admin GraphQL endpoint for the configured shop."""
        return (
            f"https://{self.shopify_shop}.myshopify.com"
            f"/admin/api/{self.shopify_api_version}/graphql.json"
        )

    # -------------------------------------------------------------------------
    # HubSpot (CRM sink)
    # -------------------------------------------------------------------------
    hubspot_access_token: str | None = Field(
        default=None,
        alias="HUBSPOT_ACCESS_TOKEN",
        description="Private app access token",
    )
    hubspot_api_base_url: str = Field(
        default="https://api.hubapi.com",
        alias="HUBSPOT_API_BASE_URL",
    )

    # -------------------------------------------------------------------------
    # HTTP retry (applied inside the adapters)
    # -------------------------------------------------------------------------
    retry_limit: int = Field(default=3, alias="RETRY_LIMIT")
    retry_base_delay: float = Field(default=0.5, alias="RETRY_BASE_DELAY")

    # -------------------------------------------------------------------------
    # Sync tuning
    # -------------------------------------------------------------------------
    sync_concurrency: int = Field(
        default=5,
        alias="SYNC_CONCURRENCY",
        description="Maximum reconciliations in flight at once",
    )
    sync_all_cooldown_minutes: int = Field(
        default=15,
        alias="SYNC_ALL_COOLDOWN_MINUTES",
        description="Minimum time between two full-catalog run starts",
    )
    result_sink_timeout: float = Field(
        default=60.0,
        alias="RESULT_SINK_TIMEOUT",
        description="Seconds allowed for saving history and for the summary email",
    )
    allowed_metafield_namespaces: str = Field(
        default=DEFAULT_METAFIELD_NAMESPACES,
        alias="ALLOWED_METAFIELD_NAMESPACES",
    )

    @property
    def allowed_metafield_namespaces_set(self) -> frozenset[str]:
        """Parse allowed metafield namespaces from comma-separated string."""
        return frozenset(
            ns.strip() for ns in self.allowed_metafield_namespaces.split(",") if ns.strip()
        )

    # -------------------------------------------------------------------------
    # Summary email
    # -------------------------------------------------------------------------
    smtp_host: str | None = Field(default=None, alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, alias="SMTP_USER")
    smtp_pass: str | None = Field(default=None, alias="SMTP_PASS")
    smtp_timeout: float = Field(default=30.0, alias="SMTP_TIMEOUT")
    summary_email_from: str = Field(
        default="Product Sync <sync@localhost>",
        alias="SUMMARY_EMAIL_FROM",
    )
    summary_email_to: str | None = Field(default=None, alias="SUMMARY_EMAIL_TO")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Note: Settings are cached! If you change .env, restart the server.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Call this if you need to reload settings."""
    get_settings.cache_clear()
