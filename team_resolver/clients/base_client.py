# team_resolver/clients/base_client.py
from typing import Any, Dict, Optional

import httpx
from loguru import logger
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from team_resolver.config.settings import settings

# Define common HTTP status codes that warrant a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class GridClientError(Exception):
    """Custom exception for GRID client errors."""

    pass


class AuthenticationError(GridClientError):
    """Exception raised for authentication failures (401, 403, UNAUTHENTICATED)."""

    pass


class RateLimitError(GridClientError):
    """Exception raised when GRID throttles us (429, ENHANCE_YOUR_CALM)."""

    pass


class BaseClient:
    """HTTP plumbing shared by the GRID API clients."""

    name: str = "grid"

    def __init__(self, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.grid_timeout_seconds),
            follow_redirects=True,
        )

    @retry(
        stop=stop_after_attempt(4),  # 3 retries (4 total attempts)
        wait=wait_exponential(multiplier=1, min=1, max=10),
        # 429 surfaces as RateLimitError and is retried per GraphQL query
        retry=retry_if_exception_type((httpx.RequestError, httpx.HTTPStatusError)),
        reraise=True,  # Reraise the last exception after max attempts
    )
    async def _make_request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> httpx.Response:
        """Makes an asynchronous HTTP request with retry logic."""
        logger.debug(f"Making {method} request to {url}")
        try:
            response = await self.client.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json_data,
                **kwargs,
            )

            if response.status_code in {401, 403}:
                logger.warning(
                    f"Authentication error ({response.status_code}) for {self.name} at {url}. Check GRID_API_KEY."
                )
                # Not retried
                raise AuthenticationError(
                    f"Authentication failed ({response.status_code}) for {self.name}"
                )

            if response.status_code == 429:
                retry_after = response.headers.get("Retry-After")
                logger.warning(
                    f"Rate limit hit (429) for {self.name} at {url}. Retry-After: {retry_after}"
                )
                raise RateLimitError(f"Rate limited by {self.name}")

            response.raise_for_status()
            logger.debug(f"Request successful: {response.status_code} for {url}")
            return response

        except GridClientError:
            raise
        except httpx.HTTPStatusError as e:
            if e.response.status_code in RETRYABLE_STATUS_CODES:
                logger.warning(
                    f"Retrying request for {self.name} due to status {e.response.status_code}: {e}"
                )
                raise
            logger.error(
                f"HTTP error during request for {self.name}: {e.response.status_code} - {e}"
            )
            raise GridClientError(f"HTTP error: {e.response.status_code}") from e
        except httpx.RequestError as e:
            # Network errors, timeouts etc.
            logger.warning(f"Request error for {self.name}, retrying: {e}")
            raise
        except Exception as e:
            logger.exception(f"Unexpected error during request for {self.name}: {e}")
            raise GridClientError("Unexpected error during HTTP request") from e

    async def close(self):
        """Closes the underlying HTTP client."""
        await self.client.aclose()
        logger.info(f"Closed HTTP client for {self.name}")
