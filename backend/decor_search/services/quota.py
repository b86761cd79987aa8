"""Per-provider API usage quota gate.

Every provider adapter asks the gate before issuing an upstream request
and notifies it immediately before the HTTP call goes out. Usage is
counted as "attempted", not "succeeded", so retries count too.
"""

from abc import ABC, abstractmethod
from collections import Counter
from typing import Dict, Mapping, Optional

import structlog

from decor_search.models.product import Provider


logger = structlog.get_logger(__name__)


class QuotaGate(ABC):
    """Interface of the external usage-limit service."""

    @abstractmethod
    async def check_usage_limit(self, provider: Provider) -> bool:
        """Return False when the provider's quota is exhausted."""

    @abstractmethod
    async def increment_usage(self, provider: Provider) -> None:
        """Record one upstream call for the provider."""


class UnlimitedQuotaGate(QuotaGate):
    """Gate that never denies; it only counts calls."""

    def __init__(self):
        self._usage: Counter = Counter()

    async def check_usage_limit(self, provider: Provider) -> bool:
        return True

    async def increment_usage(self, provider: Provider) -> None:
        self._usage[Provider.parse(provider)] += 1

    def get_usage(self, provider: Provider) -> int:
        return self._usage[Provider.parse(provider)]


class InMemoryQuotaGate(QuotaGate):
    """Monthly per-provider limits kept in process memory.

    Providers without a configured limit are unlimited. A limit of 0
    blocks the provider entirely.
    """

    def __init__(self, monthly_limits: Optional[Mapping[str, int]] = None):
        """Initialize quota gate.

        Args:
            monthly_limits: Provider slug -> maximum calls per month
        """
        self.monthly_limits: Dict[Provider, int] = {
            Provider.parse(name): int(limit)
            for name, limit in (monthly_limits or {}).items()
        }
        self._usage: Counter = Counter()

    async def check_usage_limit(self, provider: Provider) -> bool:
        provider = Provider.parse(provider)
        limit = self.monthly_limits.get(provider)
        if limit is None:
            return True
        allowed = self._usage[provider] < limit
        if not allowed:
            logger.warning(
                "quota_exhausted",
                provider=provider.value,
                used=self._usage[provider],
                limit=limit,
            )
        return allowed

    async def increment_usage(self, provider: Provider) -> None:
        self._usage[Provider.parse(provider)] += 1

    def get_usage(self, provider: Provider) -> int:
        """Calls recorded for a provider since the last reset."""
        return self._usage[Provider.parse(provider)]

    def remaining(self, provider: Provider) -> Optional[int]:
        """Calls left this month, or None when unlimited."""
        provider = Provider.parse(provider)
        limit = self.monthly_limits.get(provider)
        if limit is None:
            return None
        return max(0, limit - self._usage[provider])

    def reset(self) -> None:
        """Start a new billing period."""
        self._usage.clear()
        logger.info("quota_usage_reset")
