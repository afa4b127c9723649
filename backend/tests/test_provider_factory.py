"""
Tests for settings parsing and provider wiring.
"""

import pytest

from catalog_sync.core.config import clear_settings_cache, get_settings
from catalog_sync.integrations.hubspot import HubSpotProductSink
from catalog_sync.integrations.shopify import ShopifyCatalogSource
from catalog_sync.services.provider_factory import (
    ProviderConfigError,
    clear_provider_cache,
    get_catalog_source,
    get_crm_sink,
    get_orchestrator,
    get_run_guard,
)


@pytest.fixture(autouse=True)
def fresh_caches(monkeypatch):
    for name in ("SHOPIFY_SHOP", "SHOPIFY_ADMIN_API_TOKEN", "HUBSPOT_ACCESS_TOKEN"):
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    clear_provider_cache()
    yield
    clear_settings_cache()
    clear_provider_cache()


class TestSettings:
    """Tests for Settings."""

    def test_graphql_url(self, monkeypatch):
        monkeypatch.setenv("SHOPIFY_SHOP", "my-store")
        monkeypatch.setenv("SHOPIFY_API_VERSION", "2024-01")

        assert get_settings().shopify_graphql_url == (
            "https://my-store.myshopify.com/admin/api/2024-01/graphql.json"
        )

    def test_namespace_allow_list(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_METAFIELD_NAMESPACES", " custom, diamond ,,")

        assert get_settings().allowed_metafield_namespaces_set == frozenset({"custom", "diamond"})


class TestProviderFactory:
    """Tests for the cached provider factories."""

    def test_missing_shop(self):
        with pytest.raises(ProviderConfigError, match="SHOPIFY_SHOP"):
            get_catalog_source()

    def test_missing_hubspot_token(self):
        with pytest.raises(ProviderConfigError, match="HUBSPOT_ACCESS_TOKEN"):
            get_crm_sink()

    def test_run_guard_cooldown_from_settings(self, monkeypatch):
        monkeypatch.setenv("SYNC_ALL_COOLDOWN_MINUTES", "5")

        guard = get_run_guard()

        assert guard.cooldown_seconds == 300
        assert get_run_guard() is guard

    def test_orchestrator_wiring(self, monkeypatch):
        monkeypatch.setenv("SHOPIFY_SHOP", "my-store")
        monkeypatch.setenv("SHOPIFY_ADMIN_API_TOKEN", "shpat_test")
        monkeypatch.setenv("HUBSPOT_ACCESS_TOKEN", "pat-test")
        monkeypatch.setenv("SHOPIFY_PAGE_SIZE", "50")
        monkeypatch.setenv("SYNC_CONCURRENCY", "3")
        monkeypatch.setenv("ALLOWED_METAFIELD_NAMESPACES", "custom")

        orchestrator = get_orchestrator()

        assert isinstance(orchestrator.source, ShopifyCatalogSource)
        assert orchestrator.source.page_size == 50
        assert isinstance(orchestrator.sink, HubSpotProductSink)
        assert orchestrator.concurrency == 3
        assert orchestrator.mapper.allowed_namespaces == frozenset({"custom"})
        assert orchestrator.run_guard is get_run_guard()
