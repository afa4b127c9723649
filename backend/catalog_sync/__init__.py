"""Catalog Sync - Shopify to HubSpot product synchronization service."""
