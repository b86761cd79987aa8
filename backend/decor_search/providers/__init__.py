"""Marketplace provider adapters and the shared request pipeline."""

from decor_search.providers.base import BaseProviderAdapter
from decor_search.providers.factory import ProviderFactory, get_provider_factory
from decor_search.providers.register_providers import register_all_providers

__all__ = [
    "BaseProviderAdapter",
    "ProviderFactory",
    "get_provider_factory",
    "register_all_providers",
]
