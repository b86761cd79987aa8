"""Tests for the quota gate implementations."""

import pytest

from decor_search.models.product import Provider
from decor_search.services.quota import InMemoryQuotaGate, UnlimitedQuotaGate


class TestUnlimitedQuotaGate:
    async def test_always_allows_and_counts(self):
        gate = UnlimitedQuotaGate()

        for _ in range(3):
            assert await gate.check_usage_limit(Provider.ETSY)
            await gate.increment_usage(Provider.ETSY)

        assert gate.get_usage(Provider.ETSY) == 3
        assert gate.get_usage("amazon") == 0


class TestInMemoryQuotaGate:
    async def test_blocks_when_limit_reached(self):
        gate = InMemoryQuotaGate({"etsy": 2})

        assert await gate.check_usage_limit(Provider.ETSY)
        await gate.increment_usage(Provider.ETSY)
        await gate.increment_usage(Provider.ETSY)

        assert not await gate.check_usage_limit(Provider.ETSY)
        assert gate.remaining(Provider.ETSY) == 0

    async def test_providers_without_limit_are_unlimited(self):
        gate = InMemoryQuotaGate({"etsy": 1})

        await gate.increment_usage(Provider.AMAZON)
        assert await gate.check_usage_limit(Provider.AMAZON)
        assert gate.remaining(Provider.AMAZON) is None

    async def test_zero_limit_blocks_provider(self):
        gate = InMemoryQuotaGate({"wayfair": 0})
        assert not await gate.check_usage_limit("wayfair")

    async def test_reset_starts_new_period(self):
        gate = InMemoryQuotaGate({"amazon": 1})
        await gate.increment_usage(Provider.AMAZON)
        assert not await gate.check_usage_limit(Provider.AMAZON)

        gate.reset()

        assert gate.get_usage(Provider.AMAZON) == 0
        assert await gate.check_usage_limit(Provider.AMAZON)

    def test_unknown_provider_in_limits(self):
        with pytest.raises(ValueError):
            InMemoryQuotaGate({"ikea": 10})
