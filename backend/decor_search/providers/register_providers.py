"""Register all provider adapters with a factory.

Call register_all_providers() once at startup (the CLI does) before
asking the factory for adapters.
"""

from typing import Optional

import structlog

from decor_search.models.product import Provider
from decor_search.providers.factory import ProviderFactory, get_provider_factory
from decor_search.providers.adapters import (
    AmazonAdapter,
    EtsyAdapter,
    WayfairAdapter,
)

logger = structlog.get_logger(__name__)


def register_all_providers(factory: Optional[ProviderFactory] = None) -> ProviderFactory:
    """Register every marketplace adapter.

    Args:
        factory: Factory to populate (defaults to the global factory)

    Returns:
        The populated factory
    """
    factory = factory or get_provider_factory()

    adapters = [
        (Provider.WAYFAIR, WayfairAdapter),
        (Provider.ETSY, EtsyAdapter),
        (Provider.AMAZON, AmazonAdapter),
    ]

    for provider, adapter_class in adapters:
        try:
            factory.register_adapter(provider, adapter_class)
        except Exception as e:
            logger.error(
                "adapter_registration_failed",
                provider=provider.value,
                error=str(e),
                exc_info=True,
            )

    logger.info(
        "all_providers_registered",
        count=len(factory.get_registered_providers()),
        providers=[p.value for p in factory.get_registered_providers()],
    )
    return factory
