"""
HubSpot CRM API Client.
Handles authentication and HTTP requests to the HubSpot REST API.
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


class HubSpotAPIError(Exception):
    """
    Raised when HubSpot API returns an error.

    body holds the parsed JSON error document when HubSpot sent one,
    otherwise the raw response text.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
        transient: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.transient = transient


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, HubSpotAPIError) and error.transient


class HubSpotClient:
    """
    HubSpot CRM REST API Client.

    Uses private app Bearer token authentication.
    Rate limits (429), 5xx responses and network errors are retried
    with exponential backoff.
    """

    def __init__(
        self,
        access_token: str,
        api_base_url: str = "https://api.hubapi.com",
        retry_attempts: int = 3,
        retry_base_delay: float = 0.5,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize HubSpot client.

        Args:
            access_token: Private app access token
            api_base_url: HubSpot API base URL
            retry_attempts: Retries after the first attempt
            retry_base_delay: First backoff delay in seconds
            timeout: HTTP request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.api_base_url = api_base_url.rstrip("/")
        self.retry_attempts = retry_attempts
        self.retry_base_delay = retry_base_delay

        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Content-Type": "application/json",
            },
        )

        logger.info(f"HubSpotClient initialized (url: {self.api_base_url})")

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Makes an authenticated request to HubSpot API.

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            endpoint: API endpoint (e.g., "/crm/v3/objects/products")
            params: Query parameters
            json: JSON body for POST/PATCH

        Returns:
            API response as dictionary (empty for 204 responses)

        Raises:
            HubSpotAPIError: If API returns an error
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
                        f"⚠️ Retrying HubSpot {method} {endpoint} "
                        f"({attempt.retry_state.attempt_number - 1}/{self.retry_attempts})"
                    )
                return await self._send(method, endpoint, params, json)

    async def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]],
        json: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        url = f"{self.api_base_url}{endpoint}"

        try:
            response = await self._client.request(
                method=method,
                url=url,
                params=params,
                json=json,
            )
        except httpx.RequestError as e:
            raise HubSpotAPIError(f"Network error: {e}", transient=True)

        if response.status_code >= 400:
            try:
                body: Any = response.json()
            except ValueError:
                body = response.text
            message = body.get("message") if isinstance(body, dict) else None
            error_msg = f"HubSpot API error: {response.status_code} - {message or response.text}"
            logger.debug(error_msg)
            raise HubSpotAPIError(
                error_msg,
                status_code=response.status_code,
                body=body,
                transient=response.status_code in RETRYABLE_STATUS_CODES,
            )

        if not response.text or response.text.strip() == "":
            return {}

        return response.json()

    async def post(self, endpoint: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """POST request shorthand."""
        return await self.request("POST", endpoint, json=json)

    async def patch(self, endpoint: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """PATCH request shorthand."""
        return await self.request("PATCH", endpoint, json=json)

    async def delete(self, endpoint: str) -> Dict[str, Any]:
        """DELETE request shorthand."""
        return await self.request("DELETE", endpoint)

    async def close(self):
        """Closes the HTTP client."""
        await self._client.aclose()
        logger.info("HubSpotClient closed")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
