"""
Provider Factory.
Builds the Shopify source, the HubSpot sink and the orchestrator from settings.
"""

import logging
from datetime import timedelta
from functools import lru_cache

from catalog_sync.core.config import get_settings
from catalog_sync.core.interfaces.catalog import CatalogSource, CRMSink
from catalog_sync.core.interfaces.results import ResultSink
from catalog_sync.db.session import get_session_maker
from catalog_sync.services.catalog_sync import (
    CatalogSyncOrchestrator,
    RecordMapper,
    RunGuard,
)
from catalog_sync.services.result_sink import (
    CompositeResultSink,
    EmailSummaryNotifier,
    SqlHistoryStore,
)

logger = logging.getLogger(__name__)


class ProviderConfigError(Exception):
    """Raised when a provider cannot be loaded or initialized."""
    pass


@lru_cache
def get_catalog_source() -> CatalogSource:
    """
    Shopify catalog source from settings.

    Raises:
        ProviderConfigError: If Shopify credentials are missing
    """
    settings = get_settings()

    if not settings.shopify_shop:
        raise ProviderConfigError("SHOPIFY_SHOP not configured")

    if not settings.shopify_admin_api_token:
        raise ProviderConfigError("SHOPIFY_ADMIN_API_TOKEN not configured")

    # Import here to avoid loading integration code if not needed
    from catalog_sync.integrations.shopify import ShopifyCatalogSource, ShopifyClient

    logger.info(f"✅ Initializing Shopify catalog source ({settings.shopify_shop})")

    client = ShopifyClient(
        graphql_url=settings.shopify_graphql_url,
        access_token=settings.shopify_admin_api_token,
        retry_attempts=settings.retry_limit,
        retry_base_delay=settings.retry_base_delay,
    )
    return ShopifyCatalogSource(client, page_size=settings.shopify_page_size)


@lru_cache
def get_crm_sink() -> CRMSink:
    """
    HubSpot product sink from settings.

    Raises:
        ProviderConfigError: If the HubSpot token is missing
    """
    settings = get_settings()

    if not settings.hubspot_access_token:
        raise ProviderConfigError("HUBSPOT_ACCESS_TOKEN not configured")

    from catalog_sync.integrations.hubspot import HubSpotClient, HubSpotProductSink

    logger.info("✅ Initializing HubSpot product sink")

    client = HubSpotClient(
        access_token=settings.hubspot_access_token,
        api_base_url=settings.hubspot_api_base_url,
        retry_attempts=settings.retry_limit,
        retry_base_delay=settings.retry_base_delay,
    )
    return HubSpotProductSink(client)


@lru_cache
def get_run_guard() -> RunGuard:
    """Process-wide run guard shared by every orchestrator."""
    settings = get_settings()
    return RunGuard(cooldown=timedelta(minutes=settings.sync_all_cooldown_minutes))


@lru_cache
def get_history_store() -> SqlHistoryStore:
    return SqlHistoryStore(get_session_maker())


@lru_cache
def get_result_sink() -> ResultSink:
    """History store plus summary email (email only when SMTP is configured)."""
    notifier = EmailSummaryNotifier.from_settings(get_settings())
    if not notifier.is_configured:
        logger.info("ℹ️ SMTP not configured, summary emails disabled")
    return CompositeResultSink(get_history_store(), notifier)


@lru_cache
def get_orchestrator() -> CatalogSyncOrchestrator:
    """
    Fully wired orchestrator.

    Raises:
        ProviderConfigError: If either adapter is not configured
    """
    settings = get_settings()
    return CatalogSyncOrchestrator(
        source=get_catalog_source(),
        sink=get_crm_sink(),
        result_sink=get_result_sink(),
        run_guard=get_run_guard(),
        mapper=RecordMapper(settings.allowed_metafield_namespaces_set),
        concurrency=settings.sync_concurrency,
        result_sink_timeout=settings.result_sink_timeout,
    )


async def close_providers() -> None:
    """Close cached adapters (application shutdown)."""
    for factory in (get_catalog_source, get_crm_sink):
        if factory.cache_info().currsize:
            await factory().close()


def clear_provider_cache() -> None:
    """
    Clears every cached provider instance.

    Useful for testing or when credentials are updated at runtime.
    """
    logger.info("🔄 Clearing provider cache")
    for factory in (
        get_catalog_source,
        get_crm_sink,
        get_run_guard,
        get_history_store,
        get_result_sink,
        get_orchestrator,
    ):
        factory.cache_clear()
