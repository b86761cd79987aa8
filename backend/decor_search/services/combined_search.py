"""Cross-provider search: fan out, merge, balance and shuffle."""

import asyncio
import math
import random
from dataclasses import replace
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from decor_search.config import Settings
from decor_search.core.exceptions import ConfigurationError
from decor_search.models.product import CanonicalProduct, Provider
from decor_search.providers.factory import ProviderFactory, get_provider_factory


logger = structlog.get_logger(__name__)


class CombinedSearchService:
    """Search several marketplaces at once and return one mixed list.

    Upstream failures never escape: a provider that fails contributes no
    results. A missing API key is the exception; it is raised to the
    caller once every provider has settled.
    """

    def __init__(
        self,
        factory: Optional[ProviderFactory] = None,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the service.

        Args:
            factory: Provider factory with adapters registered
            settings: Settings instance (defaults to the factory's)
            rng: Random source for the final shuffle; seed it for
                reproducible ordering
        """
        self.factory = factory or get_provider_factory()
        self.settings = settings or self.factory.settings
        self.rng = rng or random.Random()

    async def search_all(
        self,
        queries_by_provider: Mapping[Provider, Sequence[str]],
        max_results: Optional[int] = None,
    ) -> List[CanonicalProduct]:
        """Search every provider that has queries and balance the results.

        Args:
            queries_by_provider: Provider (or slug) -> queries; an empty
                list skips that provider
            max_results: Size of the returned list (defaults to
                COMBINED_MAX_RESULTS)

        Returns:
            Balanced list of products from all providers

        Raises:
            ConfigurationError: If a provider with queries has no API key
        """
        target = self.settings.COMBINED_MAX_RESULTS if max_results is None else max_results

        planned = []
        for raw_provider, queries in queries_by_provider.items():
            provider = Provider.parse(raw_provider)
            cleaned = [q.strip() for q in (queries or []) if q and q.strip()]
            if not cleaned:
                logger.debug("provider_skipped", provider=provider.value, reason="no_queries")
                continue

            adapter = self.factory.get_adapter(provider)
            if adapter is None:
                logger.warning("provider_skipped", provider=provider.value, reason="not_registered")
                continue
            planned.append((provider, adapter, cleaned))

        searches: List[Tuple[Provider, asyncio.Future]] = [
            (provider, asyncio.ensure_future(adapter.search_many(cleaned)))
            for provider, adapter, cleaned in planned
        ]

        if not searches:
            logger.info("combined_search_no_providers")
            return []

        logger.info(
            "combined_search_started",
            providers=[provider.value for provider, _ in searches],
            max_results=target,
        )

        results = await asyncio.gather(*(task for _, task in searches), return_exceptions=True)

        pool: List[CanonicalProduct] = []
        counts: Dict[str, int] = {}
        config_error: Optional[ConfigurationError] = None
        for (provider, _), result in zip(searches, results):
            if isinstance(result, ConfigurationError):
                config_error = config_error or result
                counts[provider.value] = 0
                continue
            if isinstance(result, BaseException):
                logger.error(
                    "provider_search_failed",
                    provider=provider.value,
                    error_type=type(result).__name__,
                    error=str(result),
                )
                counts[provider.value] = 0
                continue
            counts[provider.value] = len(result)
            pool.extend(result)

        if config_error is not None:
            raise config_error

        balanced = self.balance_results(pool, target)
        logger.info(
            "combined_search_complete",
            per_provider=counts,
            pool_size=len(pool),
            returned=len(balanced),
        )
        return balanced

    def balance_results(
        self,
        products: Sequence[CanonicalProduct],
        max_results: Optional[int] = None,
    ) -> List[CanonicalProduct]:
        """Select at most max_results products with a source-proportional mix.

        A pool that already fits is returned unshuffled in provider order.
        Otherwise the primary provider gets ceil(N * ratio) slots, the rest
        are split evenly across the other providers, unused slots are
        backfilled in provider order, and the selection is shuffled.

        Args:
            products: Merged results of all providers
            max_results: Target size N

        Returns:
            Selected products
        """
        target = self.settings.COMBINED_MAX_RESULTS if max_results is None else max_results
        if target <= 0:
            return []

        pool = self._unique_by_source(products)
        if len(pool) <= target:
            return pool

        by_source: Dict[Provider, List[CanonicalProduct]] = {}
        for product in pool:
            by_source.setdefault(product.source, []).append(product)

        quotas = self._allocate(by_source, target)
        selected = {provider: items[: quotas[provider]] for provider, items in by_source.items()}

        shortfall = target - sum(len(items) for items in selected.values())
        for provider, items in by_source.items():
            if shortfall <= 0:
                break
            taken = len(selected[provider])
            spare = items[taken: taken + shortfall]
            selected[provider].extend(spare)
            shortfall -= len(spare)

        balanced = [product for items in selected.values() for product in items]
        self.rng.shuffle(balanced)

        logger.debug(
            "results_balanced",
            pool_size=len(pool),
            target=target,
            quotas={provider.value: quota for provider, quota in quotas.items()},
            selected={provider.value: len(items) for provider, items in selected.items()},
        )
        return balanced

    def _primary_provider(self, by_source: Dict[Provider, List[CanonicalProduct]]) -> Provider:
        configured = self.settings.BALANCE_PRIMARY_PROVIDER
        if configured:
            try:
                provider = Provider.parse(configured)
            except ValueError:
                logger.warning("invalid_primary_provider", value=configured)
            else:
                if provider in by_source:
                    return provider
        # max() keeps the first of equally large providers
        return max(by_source, key=lambda p: len(by_source[p]))

    def _allocate(self, by_source: Dict[Provider, List[CanonicalProduct]], target: int) -> Dict[Provider, int]:
        primary = self._primary_provider(by_source)
        ratio = Decimal(str(self.settings.BALANCE_PRIMARY_RATIO))
        primary_quota = min(target, math.ceil(ratio * target))

        others = [provider for provider in by_source if provider != primary]
        if not others:
            return {primary: target}

        share, extra = divmod(target - primary_quota, len(others))
        quotas = {primary: primary_quota}
        for index, provider in enumerate(others):
            quotas[provider] = share + (1 if index < extra else 0)
        return quotas

    @staticmethod
    def _unique_by_source(products: Sequence[CanonicalProduct]) -> List[CanonicalProduct]:
        seen = set()
        unique: List[CanonicalProduct] = []
        for product in products:
            if product.key in seen:
                continue
            seen.add(product.key)
            unique.append(product)
        return unique

    async def search_single_provider(
        self,
        provider: Provider,
        query: str,
        element_id: Optional[str] = None,
    ) -> List[CanonicalProduct]:
        """Run one query against one provider without balancing.

        Args:
            provider: Provider or provider slug
            query: Search query
            element_id: Room element the search is for; copied onto every
                returned product

        Returns:
            Products from that provider

        Raises:
            ValueError: If the provider is unknown or not registered
            ConfigurationError: If the provider has no API key
        """
        provider = Provider.parse(provider)
        adapter = self.factory.get_adapter(provider)
        if adapter is None:
            raise ValueError(f"No adapter registered for provider '{provider.value}'")

        products = await adapter.search_one(query)
        if element_id is not None:
            products = [replace(product, element_id=element_id) for product in products]

        logger.info(
            "single_provider_search_complete",
            provider=provider.value,
            query=query,
            element_id=element_id,
            count=len(products),
        )
        return products

    async def test_connections(self) -> Dict[Provider, bool]:
        """Health-check every registered provider concurrently.

        Returns:
            Provider -> True if reachable with the configured key
        """
        providers = self.factory.get_registered_providers()
        adapters = [self.factory.get_adapter(provider) for provider in providers]

        results = await asyncio.gather(
            *(adapter.health_check() for adapter in adapters),
            return_exceptions=True,
        )

        status: Dict[Provider, bool] = {}
        for provider, result in zip(providers, results):
            if isinstance(result, BaseException):
                logger.error("connection_test_failed", provider=provider.value, error=str(result))
                status[provider] = False
            else:
                status[provider] = bool(result)

        logger.info("connection_test_complete", status={p.value: ok for p, ok in status.items()})
        return status
