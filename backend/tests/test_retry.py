"""Tests for retry classification, backoff and the provider cool-down."""

import httpx
import pytest

from decor_search.core.exceptions import ProviderAuthError, RateLimitError
from decor_search.providers.utils import (
    ProviderCooldown,
    RetryPolicy,
    is_auth_error,
    is_retryable_error,
)


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.test/search")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestErrorClassification:
    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_retryable_statuses(self, status):
        assert is_retryable_error(_status_error(status))

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_non_retryable_statuses(self, status):
        assert not is_retryable_error(_status_error(status))

    def test_transport_errors_are_retryable(self):
        request = httpx.Request("GET", "https://example.test")
        assert is_retryable_error(httpx.ConnectError("refused", request=request))
        assert is_retryable_error(httpx.ReadTimeout("slow", request=request))

    def test_provider_errors(self):
        assert is_retryable_error(RateLimitError("etsy"))
        assert not is_retryable_error(ProviderAuthError("etsy", 403))
        assert is_auth_error(ProviderAuthError("etsy", 401))
        assert is_auth_error(_status_error(403))

    def test_unrelated_errors_are_not_retried(self):
        assert not is_retryable_error(ValueError("bad json"))


class TestRetryPolicy:
    async def test_succeeds_after_transient_failures(self, sleep_recorder):
        policy = RetryPolicy(max_retries=3, base_delay=1.0, sleep=sleep_recorder)
        outcomes = [_status_error(500), _status_error(500), "ok"]
        calls = 0

        async def request():
            nonlocal calls
            outcome = outcomes[calls]
            calls += 1
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        assert await policy.call(request) == "ok"
        assert calls == 3
        assert sleep_recorder.calls == [1.0, 2.0]

    async def test_gives_up_after_max_retries(self, sleep_recorder):
        policy = RetryPolicy(max_retries=3, base_delay=1.0, sleep=sleep_recorder)
        calls = 0

        async def request():
            nonlocal calls
            calls += 1
            raise _status_error(503)

        with pytest.raises(httpx.HTTPStatusError):
            await policy.call(request)

        assert calls == 4
        assert sleep_recorder.calls == [1.0, 2.0, 4.0]
        assert policy.backoff_delays() == [1.0, 2.0, 4.0]

    async def test_auth_error_is_not_retried(self, sleep_recorder):
        policy = RetryPolicy(max_retries=3, base_delay=1.0, sleep=sleep_recorder)
        calls = 0

        async def request():
            nonlocal calls
            calls += 1
            raise ProviderAuthError("etsy", 403)

        with pytest.raises(ProviderAuthError):
            await policy.call(request)

        assert calls == 1
        assert sleep_recorder.calls == []

    async def test_zero_retries(self, sleep_recorder):
        policy = RetryPolicy(max_retries=0, sleep=sleep_recorder)

        async def request():
            raise RateLimitError("amazon")

        with pytest.raises(RateLimitError):
            await policy.call(request)
        assert sleep_recorder.calls == []

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)


class TestProviderCooldown:
    def test_available_by_default(self, fake_clock):
        cooldown = ProviderCooldown(window_seconds=300, clock=fake_clock)
        assert not cooldown.should_skip()
        assert cooldown.remaining_seconds == 0.0

    def test_skips_inside_window(self, fake_clock):
        cooldown = ProviderCooldown(window_seconds=300, clock=fake_clock)
        cooldown.mark_unavailable(reason="403")

        fake_clock.advance(299)
        assert cooldown.should_skip()
        assert cooldown.remaining_seconds == pytest.approx(1)

    def test_resets_after_window(self, fake_clock):
        cooldown = ProviderCooldown(window_seconds=300, clock=fake_clock)
        cooldown.mark_unavailable(reason="401")

        fake_clock.advance(300)
        assert not cooldown.should_skip()
        assert cooldown.available
        assert cooldown.last_reason == ""
