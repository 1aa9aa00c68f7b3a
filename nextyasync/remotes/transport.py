"""HTTP transport with retry handling shared by the remote clients."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from ..exceptions import (
    AuthenticationError,
    NextyaSyncError,
    NotFoundError,
    QuotaExceededError,
    RateLimitError,
    RemoteUnavailableError,
)
from ..utils import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


class HttpTransport:
    """Wraps an ``httpx.Client`` and maps HTTP failures to sync exceptions."""

    def __init__(
        self,
        service: str,
        headers: dict[str, str] | None = None,
        auth: httpx.Auth | tuple[str, str] | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the transport.

        Args:
            service: Human-readable service name used in error messages
            headers: Headers sent with every request
            auth: Optional httpx authentication (e.g. basic auth tuple)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds (default: 1.0)
            timeout: Request timeout in seconds (default: 60.0)
            transport: Optional custom httpx transport
        """
        self.service = service
        self.headers = headers or {}
        self.auth = auth
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers=self.headers,
                auth=self.auth,
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # Add jitter: +/- 25% of base delay
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def error_for_status(self, response: httpx.Response) -> NextyaSyncError:
        """Build the exception matching a failed response.

        Args:
            response: Response with a non-success status code

        Returns:
            Exception instance (not raised)
        """
        status_code = response.status_code
        if status_code in (401, 403):
            return AuthenticationError(
                f"{self.service}: authentication failed (status {status_code})"
            )
        if status_code == 404:
            return NotFoundError(f"{self.service}: resource not found")
        if status_code == 429:
            return RateLimitError(f"{self.service}: rate limit exceeded")
        if status_code == 507:
            return QuotaExceededError(f"{self.service}: insufficient storage")

        error_msg = f"{self.service}: request failed with status {status_code}"
        # Try to extract more details from a JSON error body
        try:
            if response.content:
                error_data = response.json()
                if isinstance(error_data, dict):
                    msg = (
                        error_data.get("message")
                        or error_data.get("description")
                        or error_data.get("error")
                    )
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except (ValueError, httpx.ResponseNotRead):
            pass
        return RemoteUnavailableError(error_msg)

    def _should_retry(self, response: httpx.Response, attempt: int) -> bool:
        if attempt >= self.max_retries:
            return False
        return response.status_code == 429 or 500 <= response.status_code < 600

    def _retry_delay_for(self, response: httpx.Response, attempt: int) -> float:
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            if retry_after and retry_after.isdigit():
                return float(retry_after)
        return self._calculate_retry_delay(attempt)

    def request(
        self,
        method: str,
        url: str,
        expected: tuple[int, ...] = (200,),
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, retrying transient failures.

        Args:
            method: HTTP method (custom WebDAV verbs are allowed)
            url: Absolute URL
            expected: Status codes treated as success
            **kwargs: Additional arguments passed to httpx

        Returns:
            The successful response

        Raises:
            RemoteError: If the request fails after all retries
        """
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    logger.debug(
                        f"{self.service}: network error on {method} {url}, "
                        f"retrying: {e}"
                    )
                    time.sleep(self._calculate_retry_delay(attempt))
                    continue
                raise RemoteUnavailableError(
                    f"{self.service}: network error: {e}"
                ) from e

            if response.status_code in expected:
                return response

            if self._should_retry(response, attempt):
                delay = self._retry_delay_for(response, attempt)
                logger.debug(
                    f"{self.service}: status {response.status_code} on "
                    f"{method} {url}, retrying in {delay:.1f}s"
                )
                time.sleep(delay)
                continue
            raise self.error_for_status(response)

        # Unreachable: the last attempt either returns or raises
        raise RemoteUnavailableError(f"{self.service}: request failed after retries")

    def send_body(
        self,
        method: str,
        url: str,
        content: Any,
        size: int,
        expected: tuple[int, ...],
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request with a streamed body in a single attempt.

        Streamed bodies can only be consumed once, so no retry is made.

        Args:
            method: HTTP method
            url: Absolute URL
            content: Iterable of byte chunks
            size: Declared body length in bytes
            expected: Status codes treated as success
            **kwargs: Additional arguments passed to httpx

        Returns:
            The successful response
        """
        headers = dict(kwargs.pop("headers", None) or {})
        headers["Content-Length"] = str(size)
        try:
            response = self._get_client().request(
                method, url, content=content, headers=headers, **kwargs
            )
        except httpx.RequestError as e:
            raise RemoteUnavailableError(
                f"{self.service}: network error during upload: {e}"
            ) from e
        if response.status_code not in expected:
            raise self.error_for_status(response)
        return response

    @contextmanager
    def stream(
        self, method: str, url: str, chunk_size: int, **kwargs: Any
    ) -> Iterator[Iterator[bytes]]:
        """Open a streaming response and yield its body as byte chunks.

        The response is closed when the context exits, on success or error.

        Args:
            method: HTTP method
            url: Absolute URL
            chunk_size: Size of the yielded chunks
            **kwargs: Additional arguments passed to httpx
        """
        try:
            with self._get_client().stream(method, url, **kwargs) as response:
                if response.status_code != 200:
                    response.read()
                    raise self.error_for_status(response)
                yield response.iter_bytes(chunk_size=chunk_size)
        except httpx.RequestError as e:
            raise RemoteUnavailableError(
                f"{self.service}: network error during download: {e}"
            ) from e
