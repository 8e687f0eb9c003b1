"""API-Sports (rugby v1) HTTP client.

Handles raw HTTP requests to the primary upstream with caching, retry and
stale fallback. No data transformation - just fetch and return the
envelope's "response" payload.

Two modes:
- direct: the user's own key goes in the x-apisports-key header
- proxy:  requests go through the shared free-tier proxy (no key); the proxy
          answers 429 once the shared daily/per-minute quota is spent

Failure handling, in order of precedence:
- 401/403: always raised. Old data cannot fix a bad credential.
- 429, other non-2xx, in-body errors, exhausted network retries:
  serve the stale cache entry if one exists, else raise a typed ProviderError.

Every request carries a trace id. Trace ids and stale-fallback hits are
accumulated until the caller drains them with consume_runtime_meta().
"""

import logging
import os
import random
import threading
import time
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx

from rugbyclaw.config import Config
from rugbyclaw.core.errors import ProviderError, ProviderErrorCode
from rugbyclaw.core.types import ProviderRuntimeMeta, ProxyStatus
from rugbyclaw.utilities.response_cache import (
    CachedValue,
    CachePolicy,
    ResponseCache,
    make_cache_key,
)

logger = logging.getLogger(__name__)

PROVIDER_NAME = "API-Sports"

RETRYABLE_HTTP_STATUSES = frozenset({408, 425, 500, 502, 503, 504})
RETRY_MAX_ATTEMPTS = 3

# Backoff: min(cap, base * 2^(attempt-1) + jitter)
RETRY_BASE_DELAY = 0.150
RETRY_MAX_JITTER_MS = 120
RETRY_MAX_DELAY = 1.0

TRACE_HEADER = "x-rugbyclaw-trace-id"
# Checked in order; first present wins over the locally generated id
RESPONSE_TRACE_HEADERS = ("x-request-id", "x-rugbyclaw-trace-id", "cf-ray")

# Error text of transport failures worth retrying
_TRANSIENT_MARKERS = (
    "timeout",
    "timed out",
    "aborted",
    "fetch failed",
    "network",
    "socket",
    "connection reset",
    "econnreset",
    "enotfound",
    "eai_again",
    "name or service not known",
    "temporary failure in name resolution",
)

RATE_LIMIT_MESSAGE_PROXY = (
    'Daily limit reached. Run "rugbyclaw config" to add your own API key for unlimited access.'
)
RATE_LIMIT_MESSAGE_DIRECT = "Rate limit exceeded. Try again later."
NETWORK_MESSAGE_PROXY = (
    "Free mode is temporarily unavailable. Try again later, "
    'or run "rugbyclaw config" to add your own API key.'
)
NETWORK_MESSAGE_DIRECT = "Failed to fetch data. Check your internet connection."
UNAUTHORIZED_MESSAGE = "Invalid API key. Check your configuration."


def is_retryable_network_error(error: BaseException) -> bool:
    """Classify a transport failure as transient (timeout, reset, DNS, ...)."""
    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return True
    message = str(error).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


def _envelope_errors(payload: dict) -> str | None:
    """Return the upstream's in-body error text, or None if there is none."""
    errors = payload.get("errors")
    if not errors:
        return None
    if isinstance(errors, dict):
        return ", ".join(str(v) for v in errors.values())
    if isinstance(errors, list):
        return ", ".join(str(v) for v in errors)
    return str(errors)


class ApiSportsClient:
    """Low-level API-Sports client with SWR cache, retry and diagnostics.

    The response cache is injected; this client owns no global state.
    """

    def __init__(
        self,
        cache: ResponseCache,
        api_key: str | None = None,
        base_url: str | None = None,
        proxy_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
        skip_backoff: bool | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._cache = cache
        self._api_key = api_key or None
        self._base_url = (base_url or Config.API_SPORTS_BASE_URL).rstrip("/")
        self._proxy_url = (proxy_url or Config.PROXY_URL).rstrip("/")
        self._timeout = timeout or Config.HTTP_TIMEOUT
        self._client = http_client
        self._owns_client = http_client is None
        self._client_lock = threading.Lock()
        self._skip_backoff = skip_backoff
        self._rng = rng or random.Random()
        self._sleep = sleep

        self._meta_lock = threading.Lock()
        self._trace_ids: list[str] = []
        self._stale_fallback_timestamps: list[datetime] = []

    @property
    def name(self) -> str:
        return PROVIDER_NAME

    @property
    def mode(self) -> str:
        return "direct" if self._api_key else "proxy"

    def is_proxy_mode(self) -> bool:
        """True when running on the shared free-tier proxy (no user key)."""
        return self.mode == "proxy"

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            with self._client_lock:
                # Double-check after acquiring lock
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._timeout,
                        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                        headers={"Accept": "application/json"},
                    )
        return self._client

    # =========================================================================
    # Runtime diagnostics
    # =========================================================================

    def _record_trace(self, trace_id: str | None) -> None:
        if not trace_id:
            return
        with self._meta_lock:
            if trace_id not in self._trace_ids:
                self._trace_ids.append(trace_id)

    def _mark_stale_fallback(self, cached_at: datetime) -> None:
        with self._meta_lock:
            self._stale_fallback_timestamps.append(cached_at)

    def consume_runtime_meta(self) -> ProviderRuntimeMeta:
        """Drain diagnostics accumulated since the last call.

        Call once per user-facing operation so trace ids and stale flags
        from an earlier operation never leak into a later one.
        """
        with self._meta_lock:
            trace_ids = list(self._trace_ids)
            timestamps = list(self._stale_fallback_timestamps)
            self._trace_ids = []
            self._stale_fallback_timestamps = []

        return ProviderRuntimeMeta(
            trace_id=trace_ids[-1] if trace_ids else None,
            trace_ids=trace_ids,
            stale_fallback=bool(timestamps),
            cached_at=min(timestamps) if timestamps else None,
            stale_fallback_count=len(timestamps),
            stale_fallback_timestamps=timestamps,
        )

    # =========================================================================
    # Request plumbing
    # =========================================================================

    def _should_skip_backoff(self) -> bool:
        if self._skip_backoff is not None:
            return self._skip_backoff
        return "PYTEST_CURRENT_TEST" in os.environ

    def _wait_for_retry(self, attempt: int) -> None:
        if self._should_skip_backoff():
            return
        jitter = self._rng.randrange(RETRY_MAX_JITTER_MS) / 1000
        delay = min(RETRY_MAX_DELAY, RETRY_BASE_DELAY * (2 ** (attempt - 1)) + jitter)
        self._sleep(delay)

    @staticmethod
    def _resolve_response_trace_id(response: httpx.Response, fallback: str) -> str:
        for header in RESPONSE_TRACE_HEADERS:
            value = response.headers.get(header)
            if value:
                return value
        return fallback

    def _request_with_retry(
        self,
        url: str,
        params: dict[str, str],
        headers: dict[str, str],
    ) -> httpx.Response:
        """GET with up to RETRY_MAX_ATTEMPTS sequential attempts.

        Returns the last response (possibly a retryable status on the final
        attempt). Trace ids of retried responses are recorded here; the
        caller records the final one. Raises the transport error if a
        non-transient failure occurs or retries run out.
        """
        for attempt in range(1, RETRY_MAX_ATTEMPTS + 1):
            try:
                response = self._get_client().get(url, params=params, headers=headers)
            except (httpx.RequestError, RuntimeError, OSError) as e:
                # RuntimeError: "Cannot send a request, as the client has been closed"
                if attempt >= RETRY_MAX_ATTEMPTS or not is_retryable_network_error(e):
                    raise
                logger.warning(
                    "[API-SPORTS] Request failed (attempt %d/%d) for %s: %s",
                    attempt,
                    RETRY_MAX_ATTEMPTS,
                    url,
                    e,
                )
                self._wait_for_retry(attempt)
                continue

            if response.status_code in RETRYABLE_HTTP_STATUSES and attempt < RETRY_MAX_ATTEMPTS:
                self._record_trace(
                    self._resolve_response_trace_id(response, headers[TRACE_HEADER])
                )
                logger.warning(
                    "[API-SPORTS] HTTP %d (attempt %d/%d) for %s",
                    response.status_code,
                    attempt,
                    RETRY_MAX_ATTEMPTS,
                    url,
                )
                self._wait_for_retry(attempt)
                continue

            return response

        # Unreachable: the final attempt always returns or raises
        raise RuntimeError("retry loop exited without a response")

    def _stale_or_raise(self, cached: CachedValue | None, error: ProviderError) -> Any:
        """Serve the stale cache entry if one exists, else raise error."""
        if cached is not None:
            logger.info(
                "[API-SPORTS] %s - serving cached data from %s",
                error.code.value,
                cached.cached_at.isoformat(),
            )
            self._mark_stale_fallback(cached.cached_at)
            return cached.data.get("response", [])
        raise error

    # =========================================================================
    # Fetch
    # =========================================================================

    def fetch(self, endpoint: str, params: dict[str, Any], policy: CachePolicy) -> Any:
        """Fetch an endpoint through the response cache.

        Args:
            endpoint: API path, e.g. "games"
            params: Query parameters (None values dropped)
            policy: Stale/expiry durations for this data class

        Returns:
            The envelope's "response" payload (usually a list)

        Raises:
            ProviderError: when the request fails and no cached copy can stand in
        """
        query = {k: str(v) for k, v in params.items() if v is not None}
        key = make_cache_key(endpoint, query)

        cached = self._cache.get(key)
        if cached is not None and not cached.is_stale:
            logger.debug("[API-SPORTS] Cache hit: %s", key)
            return cached.data.get("response", [])

        base_url = self._proxy_url if self.is_proxy_mode() else self._base_url
        url = f"{base_url}/{endpoint}"
        client_trace_id = str(uuid.uuid4())
        headers = {TRACE_HEADER: client_trace_id}
        if self._api_key:
            headers["x-apisports-key"] = self._api_key

        try:
            response = self._request_with_retry(url, query, headers)
        except (httpx.RequestError, RuntimeError, OSError) as e:
            self._record_trace(client_trace_id)
            logger.warning("[API-SPORTS] Network failure for %s: %s", key, e)
            message = NETWORK_MESSAGE_PROXY if self.is_proxy_mode() else NETWORK_MESSAGE_DIRECT
            error = ProviderError(
                message, ProviderErrorCode.NETWORK_ERROR, self.name, client_trace_id
            )
            error.__cause__ = e
            return self._stale_or_raise(cached, error)

        trace_id = self._resolve_response_trace_id(response, client_trace_id)
        self._record_trace(trace_id)
        status = response.status_code

        if status == 429:
            proxy = self.is_proxy_mode()
            message = RATE_LIMIT_MESSAGE_PROXY if proxy else RATE_LIMIT_MESSAGE_DIRECT
            return self._stale_or_raise(
                cached,
                ProviderError(message, ProviderErrorCode.RATE_LIMITED, self.name, trace_id),
            )

        if status in (401, 403):
            raise ProviderError(
                UNAUTHORIZED_MESSAGE, ProviderErrorCode.UNAUTHORIZED, self.name, trace_id
            )

        if not response.is_success:
            logger.warning("[API-SPORTS] HTTP %d for %s (trace %s)", status, key, trace_id)
            return self._stale_or_raise(
                cached,
                ProviderError(
                    f"API returned {status}", ProviderErrorCode.UNKNOWN, self.name, trace_id
                ),
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("[API-SPORTS] Invalid JSON for %s: %s", key, e)
            error = ProviderError(
                "Could not parse API response", ProviderErrorCode.PARSE_ERROR, self.name, trace_id
            )
            error.__cause__ = e
            return self._stale_or_raise(cached, error)

        if not isinstance(payload, dict):
            return self._stale_or_raise(
                cached,
                ProviderError(
                    "Unexpected API response shape",
                    ProviderErrorCode.PARSE_ERROR,
                    self.name,
                    trace_id,
                ),
            )

        if error_text := _envelope_errors(payload):
            logger.warning("[API-SPORTS] In-body error for %s: %s", key, error_text)
            return self._stale_or_raise(
                cached,
                ProviderError(
                    f"API error: {error_text}", ProviderErrorCode.UNKNOWN, self.name, trace_id
                ),
            )

        self._cache.set(key, payload, policy)
        return payload.get("response", [])

    # =========================================================================
    # Proxy status
    # =========================================================================

    def get_proxy_status(self) -> ProxyStatus | None:
        """Fetch free-mode proxy health and remaining quota.

        Returns None when the proxy is unreachable or answers garbage.
        """
        try:
            response = self._get_client().get(f"{self._proxy_url}/status")
            if not response.is_success:
                return None
            data = response.json()
        except (httpx.HTTPError, ValueError, RuntimeError, OSError) as e:
            logger.debug("[API-SPORTS] Proxy status unavailable: %s", e)
            return None

        if not isinstance(data, dict) or not isinstance(data.get("status"), str):
            return None

        rate_limit = data.get("rate_limit") if isinstance(data.get("rate_limit"), dict) else {}
        day = rate_limit.get("day") if isinstance(rate_limit.get("day"), dict) else {}
        minute = rate_limit.get("minute") if isinstance(rate_limit.get("minute"), dict) else {}

        return ProxyStatus(
            status=data["status"],
            mode=data.get("mode"),
            trace_id=data.get("trace_id"),
            day_limit=day.get("limit"),
            day_remaining=day.get("remaining"),
            minute_limit=minute.get("limit"),
            minute_remaining=minute.get("remaining"),
        )

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client and self._owns_client:
            self._client.close()
            self._client = None
