"""Tests for the resilient API-Sports fetch client.

Verifies that:
1. Retries are bounded and only happen for transient failures
2. Auth failures are never retried and never served from cache
3. Stale cache entries stand in for 429/5xx/network failures
4. Runtime diagnostics accumulate per operation and reset when drained
"""

import httpx
import pytest

from rugbyclaw.core.errors import ExitCode, ProviderError, ProviderErrorCode, exit_code_for_error
from rugbyclaw.providers.apisports.client import (
    RATE_LIMIT_MESSAGE_DIRECT,
    RATE_LIMIT_MESSAGE_PROXY,
    TRACE_HEADER,
    ApiSportsClient,
    is_retryable_network_error,
)
from rugbyclaw.utilities.response_cache import CACHE_PROFILES

STANDARD = CACHE_PROFILES["standard"]
PARAMS = {"league": "16", "season": "2025"}


@pytest.fixture
def make_client(response_cache):
    def _make(transport, api_key="test-key", **kwargs):
        return ApiSportsClient(
            response_cache,
            api_key=api_key,
            base_url="https://api.test",
            proxy_url="https://proxy.test",
            http_client=transport.client(),
            skip_backoff=True,
            **kwargs,
        )

    return _make


# =============================================================================
# RETRY POLICY
# =============================================================================


class TestRetryPolicy:
    def test_retries_then_succeeds(self, make_client, scripted, make_envelope):
        transport = scripted(
            httpx.Response(502),
            httpx.Response(502),
            httpx.Response(200, json=make_envelope([{"id": 1}])),
        )
        client = make_client(transport)

        assert client.fetch("games", PARAMS, STANDARD) == [{"id": 1}]
        assert transport.calls == 3

    def test_unauthorized_not_retried(self, make_client, scripted):
        transport = scripted(httpx.Response(401))
        client = make_client(transport)

        with pytest.raises(ProviderError) as exc_info:
            client.fetch("games", PARAMS, STANDARD)

        assert exc_info.value.code == ProviderErrorCode.UNAUTHORIZED
        assert transport.calls == 1

    def test_retries_exhausted_raises_unknown(self, make_client, scripted):
        transport = scripted(httpx.Response(503), httpx.Response(503), httpx.Response(503))
        client = make_client(transport)

        with pytest.raises(ProviderError) as exc_info:
            client.fetch("games", PARAMS, STANDARD)

        assert exc_info.value.code == ProviderErrorCode.UNKNOWN
        assert str(exc_info.value) == "API returned 503"
        assert transport.calls == 3

    def test_non_retryable_status_single_call(self, make_client, scripted):
        transport = scripted(httpx.Response(404))
        client = make_client(transport)

        with pytest.raises(ProviderError):
            client.fetch("games", PARAMS, STANDARD)
        assert transport.calls == 1

    def test_network_error_retried(self, make_client, scripted, make_envelope):
        transport = scripted(
            httpx.ConnectError("connection reset"),
            httpx.ReadTimeout("timed out"),
            httpx.Response(200, json=make_envelope([])),
        )
        client = make_client(transport)

        assert client.fetch("games", PARAMS, STANDARD) == []
        assert transport.calls == 3

    def test_network_error_exhausted_direct_mode(self, make_client, scripted):
        transport = scripted(*[httpx.ConnectError("fetch failed")] * 3)
        client = make_client(transport)

        with pytest.raises(ProviderError) as exc_info:
            client.fetch("games", PARAMS, STANDARD)

        error = exc_info.value
        assert error.code == ProviderErrorCode.NETWORK_ERROR
        assert "internet connection" in error.message
        assert error.trace_id
        assert exit_code_for_error(error) == ExitCode.UPSTREAM_ERROR

    def test_backoff_delays_bounded(self, response_cache, scripted, make_envelope):
        delays = []
        transport = scripted(
            httpx.Response(500),
            httpx.Response(500),
            httpx.Response(200, json=make_envelope([])),
        )
        client = ApiSportsClient(
            response_cache,
            api_key="k",
            http_client=transport.client(),
            skip_backoff=False,
            sleep=delays.append,
        )

        client.fetch("games", PARAMS, STANDARD)

        assert len(delays) == 2
        assert 0.150 <= delays[0] < 0.270
        assert 0.300 <= delays[1] < 0.420
        assert all(d <= 1.0 for d in delays)

    def test_transient_classification(self):
        assert is_retryable_network_error(httpx.ConnectTimeout("slow"))
        assert is_retryable_network_error(OSError("ECONNRESET by peer"))
        assert not is_retryable_network_error(httpx.UnsupportedProtocol("ftp"))


# =============================================================================
# RESPONSE HANDLING
# =============================================================================


class TestResponseHandling:
    def test_fresh_cache_skips_network(self, make_client, scripted, make_envelope):
        transport = scripted(httpx.Response(200, json=make_envelope([{"id": 1}])))
        client = make_client(transport)

        client.fetch("games", PARAMS, STANDARD)
        assert client.fetch("games", {"season": "2025", "league": "16"}, STANDARD) == [{"id": 1}]
        assert transport.calls == 1

    def test_in_body_errors_are_failures(self, make_client, scripted, make_envelope):
        transport = scripted(
            httpx.Response(200, json=make_envelope([], errors={"token": "Missing token"}))
        )
        client = make_client(transport)

        with pytest.raises(ProviderError) as exc_info:
            client.fetch("games", PARAMS, STANDARD)
        assert exc_info.value.code == ProviderErrorCode.UNKNOWN
        assert "Missing token" in str(exc_info.value)

    def test_in_body_errors_not_cached(self, make_client, scripted, make_envelope, response_cache):
        transport = scripted(httpx.Response(200, json=make_envelope([], errors=["bad season"])))
        client = make_client(transport)

        with pytest.raises(ProviderError):
            client.fetch("games", PARAMS, STANDARD)
        assert response_cache.stats()["entries"] == 0

    def test_invalid_json_is_parse_error(self, make_client, scripted):
        transport = scripted(httpx.Response(200, text="<html>oops</html>"))
        client = make_client(transport)

        with pytest.raises(ProviderError) as exc_info:
            client.fetch("games", PARAMS, STANDARD)
        assert exc_info.value.code == ProviderErrorCode.PARSE_ERROR

    def test_direct_mode_headers(self, make_client, scripted, make_envelope):
        transport = scripted(httpx.Response(200, json=make_envelope([])))
        client = make_client(transport, api_key="secret")

        client.fetch("games", PARAMS, STANDARD)
        request = transport.requests[0]

        assert request.url.host == "api.test"
        assert request.headers["x-apisports-key"] == "secret"
        assert request.headers[TRACE_HEADER]
        assert request.url.params["league"] == "16"

    def test_proxy_mode_sends_no_key(self, make_client, scripted, make_envelope):
        transport = scripted(httpx.Response(200, json=make_envelope([])))
        client = make_client(transport, api_key=None)

        client.fetch("games", PARAMS, STANDARD)
        request = transport.requests[0]

        assert client.is_proxy_mode()
        assert request.url.host == "proxy.test"
        assert "x-apisports-key" not in request.headers


# =============================================================================
# RATE LIMITS AND STALE FALLBACK
# =============================================================================


class TestStaleFallback:
    def test_rate_limited_without_cache_direct(self, make_client, scripted):
        client = make_client(scripted(httpx.Response(429)))

        with pytest.raises(ProviderError) as exc_info:
            client.fetch("games", PARAMS, STANDARD)

        assert exc_info.value.code == ProviderErrorCode.RATE_LIMITED
        assert exc_info.value.message == RATE_LIMIT_MESSAGE_DIRECT
        assert exit_code_for_error(exc_info.value) == ExitCode.RATE_LIMITED

    def test_rate_limited_without_cache_proxy(self, make_client, scripted):
        client = make_client(scripted(httpx.Response(429)), api_key=None)

        with pytest.raises(ProviderError) as exc_info:
            client.fetch("games", PARAMS, STANDARD)
        assert exc_info.value.message == RATE_LIMIT_MESSAGE_PROXY

    @pytest.mark.parametrize(
        "failure",
        [
            [httpx.Response(429)],
            [httpx.Response(502) for _ in range(3)],
            [httpx.ConnectError("fetch failed")] * 3,
        ],
        ids=["rate-limited", "server-error", "network"],
    )
    def test_stale_entry_served_on_failure(
        self, make_client, scripted, make_envelope, clock, failure
    ):
        transport = scripted(httpx.Response(200, json=make_envelope([{"id": 7}])), *failure)
        client = make_client(transport)

        client.fetch("games", PARAMS, STANDARD)
        written_at = clock()
        client.consume_runtime_meta()
        clock.advance(minutes=6)

        assert client.fetch("games", PARAMS, STANDARD) == [{"id": 7}]

        meta = client.consume_runtime_meta()
        assert meta.stale_fallback is True
        assert meta.stale_fallback_count == 1
        assert meta.cached_at == written_at
        assert meta.stale_fallback_timestamps == [written_at]

    def test_unauthorized_never_served_stale(self, make_client, scripted, make_envelope, clock):
        transport = scripted(
            httpx.Response(200, json=make_envelope([{"id": 7}])),
            httpx.Response(401),
        )
        client = make_client(transport)

        client.fetch("games", PARAMS, STANDARD)
        clock.advance(minutes=6)

        with pytest.raises(ProviderError) as exc_info:
            client.fetch("games", PARAMS, STANDARD)
        assert exc_info.value.code == ProviderErrorCode.UNAUTHORIZED
        assert exit_code_for_error(exc_info.value) == ExitCode.AUTH_ERROR

    def test_expired_entry_not_served(self, make_client, scripted, make_envelope, clock):
        transport = scripted(
            httpx.Response(200, json=make_envelope([{"id": 7}])),
            httpx.Response(429),
        )
        client = make_client(transport)

        client.fetch("games", PARAMS, STANDARD)
        clock.advance(minutes=16)

        with pytest.raises(ProviderError) as exc_info:
            client.fetch("games", PARAMS, STANDARD)
        assert exc_info.value.code == ProviderErrorCode.RATE_LIMITED

    def test_stale_refreshed_on_success(self, make_client, scripted, make_envelope, clock):
        transport = scripted(
            httpx.Response(200, json=make_envelope([{"id": 1}])),
            httpx.Response(200, json=make_envelope([{"id": 2}])),
        )
        client = make_client(transport)

        client.fetch("games", PARAMS, STANDARD)
        clock.advance(minutes=6)

        assert client.fetch("games", PARAMS, STANDARD) == [{"id": 2}]
        assert client.consume_runtime_meta().stale_fallback is False


# =============================================================================
# RUNTIME DIAGNOSTICS
# =============================================================================


class TestRuntimeMeta:
    def test_trace_from_response_header(self, make_client, scripted, make_envelope):
        transport = scripted(
            httpx.Response(200, json=make_envelope([]), headers={"x-request-id": "req-123"})
        )
        client = make_client(transport)

        client.fetch("games", PARAMS, STANDARD)
        meta = client.consume_runtime_meta()

        assert meta.trace_id == "req-123"
        assert meta.trace_ids == ["req-123"]

    def test_retried_responses_keep_their_traces(self, make_client, scripted, make_envelope):
        transport = scripted(
            httpx.Response(502, headers={"x-request-id": "r1"}),
            httpx.Response(502, headers={"x-request-id": "r2"}),
            httpx.Response(200, json=make_envelope([]), headers={"x-request-id": "r3"}),
        )
        client = make_client(transport)

        client.fetch("games", PARAMS, STANDARD)
        meta = client.consume_runtime_meta()

        assert meta.trace_ids == ["r1", "r2", "r3"]
        assert meta.trace_id == "r3"

    def test_local_trace_when_no_header(self, make_client, scripted, make_envelope):
        transport = scripted(httpx.Response(200, json=make_envelope([])))
        client = make_client(transport)

        client.fetch("games", PARAMS, STANDARD)
        meta = client.consume_runtime_meta()

        assert meta.trace_id == transport.requests[0].headers[TRACE_HEADER]

    def test_accumulates_across_fetches_and_resets(self, make_client, scripted, make_envelope):
        transport = scripted(
            httpx.Response(200, json=make_envelope([]), headers={"cf-ray": "ray-1"}),
            httpx.Response(200, json=make_envelope([]), headers={"cf-ray": "ray-2"}),
        )
        client = make_client(transport)

        client.fetch("games", {"league": "16"}, STANDARD)
        client.fetch("games", {"league": "17"}, STANDARD)
        meta = client.consume_runtime_meta()

        assert meta.trace_ids == ["ray-1", "ray-2"]
        assert meta.trace_id == "ray-2"
        assert meta.stale_fallback is False

        drained = client.consume_runtime_meta()
        assert drained.trace_ids == []
        assert drained.trace_id is None
        assert drained.cached_at is None

    def test_error_carries_trace(self, make_client, scripted):
        transport = scripted(httpx.Response(401, headers={"x-request-id": "req-401"}))
        client = make_client(transport)

        with pytest.raises(ProviderError) as exc_info:
            client.fetch("games", PARAMS, STANDARD)
        assert exc_info.value.trace_id == "req-401"
        assert client.consume_runtime_meta().trace_ids == ["req-401"]

    def test_to_dict(self, make_client, scripted, make_envelope):
        transport = scripted(
            httpx.Response(200, json=make_envelope([]), headers={"x-request-id": "r"})
        )
        client = make_client(transport)

        client.fetch("games", PARAMS, STANDARD)
        assert client.consume_runtime_meta().to_dict() == {
            "trace_id": "r",
            "trace_ids": ["r"],
            "stale_fallback": False,
            "cached_at": None,
            "stale_fallback_count": 0,
            "stale_fallback_timestamps": [],
        }


# =============================================================================
# PROXY STATUS
# =============================================================================


class TestProxyStatus:
    def test_parses_quota(self, make_client, scripted):
        transport = scripted(
            httpx.Response(
                200,
                json={
                    "status": "ok",
                    "mode": "proxy",
                    "trace_id": "t-1",
                    "rate_limit": {
                        "day": {"limit": 50, "remaining": 12},
                        "minute": {"limit": 10, "remaining": 9},
                    },
                },
            )
        )
        client = make_client(transport, api_key=None)

        status = client.get_proxy_status()

        assert transport.requests[0].url.path == "/status"
        assert status.status == "ok"
        assert status.day_remaining == 12
        assert status.minute_limit == 10

    def test_unreachable_returns_none(self, make_client, scripted):
        client = make_client(scripted(httpx.ConnectError("down")), api_key=None)
        assert client.get_proxy_status() is None

    def test_garbage_returns_none(self, make_client, scripted):
        client = make_client(scripted(httpx.Response(200, text="nope")), api_key=None)
        assert client.get_proxy_status() is None
