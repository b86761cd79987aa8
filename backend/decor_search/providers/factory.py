"""Factory for creating and managing provider adapter instances."""

from typing import Dict, List, Optional, Type

import httpx
import structlog

from decor_search.config import Settings, settings as default_settings
from decor_search.models.product import Provider
from decor_search.providers.base import BaseProviderAdapter
from decor_search.services.quota import QuotaGate, UnlimitedQuotaGate


logger = structlog.get_logger(__name__)


class ProviderFactory:
    """Factory for creating and configuring provider adapters.

    Provides dependency injection for the quota gate, HTTP client and
    settings. One adapter instance is kept per provider so its request
    queue and cool-down are shared by every caller.
    """

    def __init__(
        self,
        quota_gate: Optional[QuotaGate] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.quota_gate = quota_gate or UnlimitedQuotaGate()
        self.http_client = http_client
        self.settings = settings or default_settings

        # Registry of adapter classes and the instances built from them
        self._adapter_registry: Dict[Provider, Type[BaseProviderAdapter]] = {}
        self._instances: Dict[Provider, BaseProviderAdapter] = {}

    def register_adapter(self, provider: Provider, adapter_class: Type[BaseProviderAdapter]) -> None:
        """Register an adapter class for a provider.

        Args:
            provider: Provider or provider slug
            adapter_class: Adapter class (must inherit from BaseProviderAdapter)
        """
        if not isinstance(adapter_class, type) or not issubclass(adapter_class, BaseProviderAdapter):
            raise ValueError(f"Adapter class must inherit from BaseProviderAdapter: {adapter_class}")

        provider = Provider.parse(provider)
        self._adapter_registry[provider] = adapter_class
        self._instances.pop(provider, None)
        logger.debug("adapter_registered", provider=provider.value, adapter_class=adapter_class.__name__)

    def get_adapter(self, provider: Provider) -> Optional[BaseProviderAdapter]:
        """Return the adapter for a provider, creating it on first use.

        Args:
            provider: Provider or provider slug

        Returns:
            Configured adapter instance, or None if not registered
        """
        provider = Provider.parse(provider)

        adapter = self._instances.get(provider)
        if adapter is not None:
            return adapter

        adapter_class = self._adapter_registry.get(provider)
        if not adapter_class:
            logger.warning("adapter_not_found", provider=provider.value)
            return None

        adapter = adapter_class(
            quota_gate=self.quota_gate,
            http_client=self.http_client,
            settings=self.settings,
        )
        self._instances[provider] = adapter

        logger.info(
            "adapter_created",
            provider=provider.value,
            configured=adapter.is_configured(),
        )
        return adapter

    def get_registered_providers(self) -> List[Provider]:
        """Registered providers in registration order."""
        return list(self._adapter_registry.keys())

    def has_adapter(self, provider: Provider) -> bool:
        try:
            return Provider.parse(provider) in self._adapter_registry
        except ValueError:
            return False


# Global factory instance
provider_factory = ProviderFactory()


def get_provider_factory() -> ProviderFactory:
    """Get the global provider factory instance.

    Returns:
        ProviderFactory instance
    """
    return provider_factory
