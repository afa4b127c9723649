"""
External system adapters (Shopify catalog source, HubSpot CRM sink).
"""
