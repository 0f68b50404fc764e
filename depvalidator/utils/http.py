"""
HTTP client utilities for depvalidator.

This module provides an asynchronous HTTP client built on ``httpx`` with a
bounded per-request timeout, optional retry with exponential backoff, and
registry-specific error handling. Requests are issued one at a time by the
reconciler; the client itself holds no per-package state.
"""

from __future__ import annotations

import httpx
import random
import asyncio
from typing import Any, Optional

from depvalidator.utils.logger import get_logger
from depvalidator.__version__ import __version__
from depvalidator.exceptions import NetworkError, RegistryError
from depvalidator.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})


class HTTPClient:
    """Asynchronous HTTP client with timeouts and optional retries.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Retry attempts after the first failure (0 disables).
        verify_ssl: Whether to verify SSL certificates.
        user_agent: Custom User-Agent header value.
        transport: Optional ``httpx`` transport (used by tests to mock the
            network).

    Example:
        >>> async with HTTPClient() as client:
        ...     response = await client.get(
        ...         "https://api.nuget.org/v3-flatcontainer/serilog/index.json"
        ...     )
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)

        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "HTTPClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> None:
        """Initialize the underlying httpx client if needed."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={"User-Agent": self.user_agent},
                transport=self._transport,
            )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute an HTTP request with retry and backoff logic.

        Raises:
            RegistryError: The resource does not exist (HTTP 404).
            NetworkError: Any other client error, or the retry budget was
                exhausted on timeouts, transport errors, or 429/5xx.
        """
        await self._ensure_client()
        assert self._client is not None

        clean_url = url.strip().strip("\"'")
        last_exc: Optional[Exception] = None
        last_status: Optional[int] = None

        for attempt in range(self.max_retries + 1):
            try:
                response = await self._client.request(method, clean_url, **kwargs)

                if response.status_code == 404:
                    raise RegistryError(
                        f"Resource not found: {clean_url}",
                        url=clean_url,
                        status_code=404,
                    )

                if response.status_code in _RETRYABLE_STATUS:
                    last_status = response.status_code
                    logger.warning(
                        "HTTP %d (%d/%d): %s",
                        response.status_code,
                        attempt + 1,
                        self.max_retries + 1,
                        clean_url,
                    )
                elif response.status_code >= 400:
                    raise NetworkError(
                        f"HTTP {response.status_code} error for {clean_url}",
                        url=clean_url,
                        status_code=response.status_code,
                        response_body=response.text,
                    )
                else:
                    return response

            except httpx.TimeoutException as exc:
                last_exc = exc
                logger.warning(
                    "Request timeout (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    clean_url,
                )

            except httpx.TransportError as exc:
                last_exc = exc
                logger.warning(
                    "Network error (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                )

            if attempt < self.max_retries:
                delay = (2**attempt) + random.uniform(0.0, 0.3)
                logger.debug("Retrying in %.2fs", delay)
                await asyncio.sleep(delay)

        raise NetworkError(
            f"Request failed after {self.max_retries + 1} attempt(s): {clean_url}",
            url=clean_url,
            status_code=last_status,
        ) from last_exc

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a GET request with retry logic."""
        return await self._request_with_retry("GET", url, **kwargs)
