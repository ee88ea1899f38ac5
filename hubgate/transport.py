"""
HTTP transport for the GitHub REST API.

Handles HTTP communication with automatic retry logic and error handling,
plus the lightweight service-metadata probe used for availability checks.
"""

import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from hubgate.debug import DebugSettings
from hubgate.exceptions import (
    AuthenticationError,
    AuthorizationError,
    HubGateError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    ValidationError,
)
from hubgate.logging import log_http_request, log_http_response
from hubgate.remote import GITHUB_DOMAIN

DEFAULT_API_URL = "https://api.github.com"
PROBE_PATH = "/rate_limit"
ENTERPRISE_API_PATH = "/api/v3"


@dataclass
class RetryConfig:
    """Configuration for automatic retry behavior."""

    max_retries: int = 2
    backoff_factor: float = 2.0
    retry_on: list[int] = field(default_factory=lambda: [500, 502, 503, 504])
    respect_retry_after: bool = True
    max_backoff: float = 30.0  # Maximum backoff time in seconds
    jitter: float = 0.1  # Jitter factor (0.1 = ±10%)


class HTTPTransport:
    """
    HTTP transport layer for the GitHub REST API.

    Handles:
    - Token authentication
    - Exponential backoff with jitter for retries
    - Retry-After header respect for secondary rate limits
    - Error response parsing into typed exceptions
    """

    def __init__(
        self,
        base_url: str = DEFAULT_API_URL,
        token: str | None = None,
        timeout: float = 10.0,
        retry_config: RetryConfig | None = None,
        debug: DebugSettings | None = None,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize HTTP transport.

        Args:
            base_url: Base URL for API requests (e.g., "https://api.github.com")
            token: Personal access token (optional)
            timeout: Request timeout in seconds
            retry_config: Configuration for retry behavior
            debug: Debug settings; dry-run replaces every request with a stand-in
            http_transport: Custom httpx transport (e.g. ``httpx.MockTransport`` in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self.debug = debug or DebugSettings()

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=http_transport,
        )

        self.get = self.debug.wrap_network(self._get, "GET")
        self.get_once = self.debug.wrap_network(
            self._get_once, "GET (no retry)", stand_in=lambda: 200
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "HTTPTransport":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Make a GET request with automatic retry.

        Args:
            path: API path (e.g., "/repos/owner/name")
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            HubGateError: On API errors
        """
        def make_request() -> httpx.Response:
            return self._request("GET", path, params)

        return self._execute_with_retry(make_request)

    def _get_once(
        self,
        path: str,
        timeout: float | None = None,
    ) -> int:
        """
        Make a single GET request without retries, checking reachability only.

        The body of a successful response is never decoded; a proxy or
        captive portal answering 200 with HTML still counts as a response.

        Args:
            path: API path
            timeout: Per-request timeout overriding the client default

        Returns:
            HTTP status code (below 400)

        Raises:
            httpx.TimeoutException: If the request times out
            httpx.RequestError: On transport errors
            HubGateError: On API errors
        """
        response = self._request("GET", path, None, timeout=timeout)
        if response.status_code < 400:
            return response.status_code
        raise self._parse_error_response(response)

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        timeout: float | None = None,
    ) -> httpx.Response:
        log_http_request(method, f"{self.base_url}{path}", dict(self._client.headers), params)
        started = time.monotonic()
        if timeout is None:
            response = self._client.request(method, path, params=params)
        else:
            response = self._client.request(method, path, params=params, timeout=timeout)
        log_http_response(
            response.status_code,
            f"{self.base_url}{path}",
            elapsed_ms=(time.monotonic() - started) * 1000,
        )
        return response

    def _execute_with_retry(
        self, request_fn: Callable[[], httpx.Response]
    ) -> dict[str, Any]:
        """
        Execute a request with automatic retry on retryable errors.

        Args:
            request_fn: Function that makes the HTTP request

        Returns:
            Parsed JSON response

        Raises:
            HubGateError: On non-retryable errors or after max retries
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                response = request_fn()

                if response.status_code < 400:
                    return self._parse_json(response)

                error = self._parse_error_response(response)

                if not self._should_retry(response.status_code, attempt):
                    raise error

                last_error = error

                retry_after = response.headers.get("Retry-After")
                wait_time = self._get_backoff_time(attempt, retry_after)
                time.sleep(wait_time)

            except httpx.RequestError as e:
                # Network errors are retryable
                if attempt >= self.retry_config.max_retries:
                    raise ServerError("CONNECTION_ERROR", str(e)) from e

                last_error = e
                wait_time = self._get_backoff_time(attempt, None)
                time.sleep(wait_time)

        if last_error:
            if isinstance(last_error, HubGateError):
                raise last_error
            raise ServerError("MAX_RETRIES_EXCEEDED", str(last_error))

        raise ServerError("UNKNOWN_ERROR", "Request failed with no error details")

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        """
        Determine if a request should be retried.

        Args:
            status_code: HTTP status code
            attempt: Current attempt number (0-indexed)

        Returns:
            True if the request should be retried
        """
        if attempt >= self.retry_config.max_retries:
            return False

        return status_code in self.retry_config.retry_on

    def _get_backoff_time(
        self, attempt: int, retry_after: str | None
    ) -> float:
        """
        Calculate backoff time for retry.

        Uses exponential backoff with jitter, respecting Retry-After header
        if present.

        Args:
            attempt: Current attempt number (0-indexed)
            retry_after: Value of Retry-After header (if present)

        Returns:
            Time to wait in seconds
        """
        if retry_after and self.retry_config.respect_retry_after:
            try:
                return min(float(retry_after), self.retry_config.max_backoff)
            except ValueError:
                pass  # Fall through to exponential backoff

        # Exponential backoff: backoff_factor ^ attempt
        base_wait = self.retry_config.backoff_factor ** attempt

        jitter_range = base_wait * self.retry_config.jitter
        jitter = random.uniform(-jitter_range, jitter_range)
        wait_time = base_wait + jitter

        return min(wait_time, self.retry_config.max_backoff)

    def _parse_json(self, response: httpx.Response) -> dict[str, Any]:
        """Decode a successful response; anything but a JSON object is a server error."""
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            raise ServerError(
                "INVALID_RESPONSE",
                f"Expected a JSON object from {response.request.url.path}",
                response.headers.get("X-GitHub-Request-Id"),
            )
        return data

    def _parse_error_response(self, response: httpx.Response) -> HubGateError:
        """
        Parse an error response into a typed exception.

        Args:
            response: HTTP response with error status

        Returns:
            Appropriate HubGateError subclass
        """
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        message = data.get("message") or f"HTTP {response.status_code}"
        request_id = response.headers.get("X-GitHub-Request-Id")
        status_code = response.status_code
        code = f"HTTP_{status_code}"

        if status_code == 401:
            return AuthenticationError(code, message, request_id)
        elif status_code == 403:
            # GitHub reports exhausted primary rate limits as 403
            if response.headers.get("X-RateLimit-Remaining") == "0":
                return RateLimitedError(
                    "RATE_LIMITED", message, _retry_after(response), request_id
                )
            return AuthorizationError(code, message, request_id)
        elif status_code == 404:
            return NotFoundError(code, message, request_id)
        elif status_code == 429:
            return RateLimitedError("RATE_LIMITED", message, _retry_after(response), request_id)
        elif status_code >= 500:
            return ServerError(code, message, request_id)
        else:
            return ValidationError(code, message, request_id)


def _retry_after(response: httpx.Response) -> int:
    retry_after_str = response.headers.get("Retry-After")
    if retry_after_str is None:
        reset = response.headers.get("X-RateLimit-Reset")
        if reset is not None:
            try:
                return max(0, int(reset) - int(time.time()))
            except ValueError:
                return 60
        return 60
    try:
        return int(retry_after_str)
    except ValueError:
        return 60


class ServiceMetadataProbe:
    """
    Availability probe: one ``GET /rate_limit`` without retries.

    The call goes through ``transport.get_once``, so debug tracing and
    dry-run apply to it like any other network call.
    """

    def __init__(self, transport: HTTPTransport, path: str = PROBE_PATH) -> None:
        self.transport = transport
        self.path = path

    def __call__(self, timeout: float) -> int:
        return self.transport.get_once(self.path, timeout=timeout)


def api_url_for(domain: str) -> str:
    """
    REST API base URL for a repository host.

    github.com is served from api.github.com; any other host is treated as
    GitHub Enterprise Server, which serves the API under ``/api/v3``.
    """
    domain = domain.strip().lower()
    if domain == GITHUB_DOMAIN:
        return DEFAULT_API_URL
    return f"https://{domain}{ENTERPRISE_API_PATH}"
