"""
Shopify Admin GraphQL Client.
Handles authentication headers, retries and GraphQL error responses.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}


class ShopifyAPIError(Exception):
    """Raised when Shopify returns an error or an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None, transient: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.transient = transient


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, ShopifyAPIError) and error.transient


class ShopifyClient:
    """
    Shopify Admin GraphQL API client.

    Transient failures (network errors, 429, 5xx) are retried with
    exponential backoff; everything else raises ShopifyAPIError at once.
    """

    def __init__(
        self,
        graphql_url: str,
        access_token: str,
        retry_attempts: int = 3,
        retry_base_delay: float = 0.5,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Shopify client.

        Args:
            graphql_url: Admin GraphQL endpoint of the shop
            access_token: Admin API access token
            retry_attempts: Retries after the first attempt
            retry_base_delay: First backoff delay in seconds
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.graphql_url = graphql_url
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay

        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                "X-Shopify-Access-Token": access_token,
            },
        )

        logger.info("ShopifyClient initialized")

    async def graphql(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Executes a GraphQL query with retries.

        Args:
            query: GraphQL document
            variables: Query variables

        Returns:
            The response's data object

        Raises:
            ShopifyAPIError: If Shopify keeps failing or reports GraphQL errors
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.retry_attempts + 1),
            wait=wait_exponential(multiplier=self.retry_base_delay, min=self.retry_base_delay, max=10),
            retry=retry_if_exception(_is_transient),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        f"⚠️ Retrying Shopify request "
                        f"({attempt.retry_state.attempt_number - 1}/{self.retry_attempts})"
                    )
                return await self._post(query, variables or {})

    async def _post(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(
                self.graphql_url,
                json={"query": query, "variables": variables},
            )
        except httpx.RequestError as e:
            raise ShopifyAPIError(f"Network error: {e}", transient=True)

        if response.status_code >= 400:
            raise ShopifyAPIError(
                f"Shopify API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
                transient=response.status_code in RETRYABLE_STATUS_CODES,
            )

        payload = response.json()
        errors = payload.get("errors")
        if errors:
            # Query cost throttling is reported as a GraphQL error with HTTP 200
            throttled = isinstance(errors, list) and any(
                (err.get("extensions") or {}).get("code") == "THROTTLED"
                for err in errors
                if isinstance(err, dict)
            )
            raise ShopifyAPIError(f"GraphQL error: {errors}", transient=throttled)
        if "data" not in payload or payload["data"] is None:
            raise ShopifyAPIError("Shopify response missing expected data.")

        return payload["data"]

    async def close(self):
        """Closes the HTTP client."""
        await self._client.aclose()
        logger.info("ShopifyClient closed")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
