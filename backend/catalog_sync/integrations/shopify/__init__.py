from .client import ShopifyAPIError, ShopifyClient
from .processors import parse_product
from .provider import ShopifyCatalogSource

__all__ = ["ShopifyAPIError", "ShopifyClient", "ShopifyCatalogSource", "parse_product"]
