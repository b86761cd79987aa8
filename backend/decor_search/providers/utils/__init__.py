"""Provider utilities for request queueing, retries, cool-downs and normalization."""

from .request_queue import RequestQueue, QueueEntry
from .retry import RetryPolicy, is_retryable_error, is_auth_error
from .cooldown import ProviderCooldown
from .normalizer import (
    PriceNormalizer,
    Extractor,
    key,
    path,
    scalar,
    first_present,
    find_item_array,
    numeric_key_values,
    deduplicate_products,
    normalize_products,
)


__all__ = [
    # Rate limiting
    "RequestQueue",
    "QueueEntry",
    # Retry
    "RetryPolicy",
    "is_retryable_error",
    "is_auth_error",
    # Availability
    "ProviderCooldown",
    # Normalization
    "PriceNormalizer",
    "Extractor",
    "key",
    "path",
    "scalar",
    "first_present",
    "find_item_array",
    "numeric_key_values",
    "deduplicate_products",
    "normalize_products",
]
