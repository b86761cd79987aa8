"""Marketplace adapter implementations."""

from decor_search.providers.adapters.wayfair import WayfairAdapter
from decor_search.providers.adapters.etsy import EtsyAdapter
from decor_search.providers.adapters.amazon import AmazonAdapter

__all__ = [
    "WayfairAdapter",
    "EtsyAdapter",
    "AmazonAdapter",
]
