from .client import HubSpotAPIError, HubSpotClient
from .provider import HubSpotProductSink

__all__ = ["HubSpotAPIError", "HubSpotClient", "HubSpotProductSink"]
