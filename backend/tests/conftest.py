"""Pytest configuration and shared fixtures."""

from typing import Callable, List

import httpx
import pytest
import pytest_asyncio

from decor_search.config import Settings


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays instead of waiting."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(float(delay))


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Build Settings with test keys and no .env file."""

    def _make(**overrides) -> Settings:
        values = {
            "RAPIDAPI_KEY_WAYFAIR": "test-wayfair-key",
            "RAPIDAPI_KEY_ETSY": "test-etsy-key",
            "RAPIDAPI_KEY_AMAZON": "test-amazon-key",
            "QUEUE_MAX_CONCURRENT": 1,
            "QUEUE_INTER_BATCH_DELAY": 0.0,
            "RETRY_MAX_RETRIES": 3,
            "RETRY_BASE_DELAY": 1.0,
            "PROVIDER_COOLDOWN_SECONDS": 300.0,
            "MAX_RESULTS_PER_PROVIDER": 500,
            "COMBINED_MAX_RESULTS": 1000,
            "BALANCE_PRIMARY_PROVIDER": "amazon",
            "BALANCE_PRIMARY_RATIO": 0.6,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def test_settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def mock_client_factory():
    """Create httpx clients backed by MockTransport handlers."""
    clients: List[httpx.AsyncClient] = []

    def _make(handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()
