"""Domain models."""

from decor_search.models.product import CanonicalProduct, Provider
from decor_search.models.liked_product import LikedProduct

__all__ = [
    "CanonicalProduct",
    "Provider",
    "LikedProduct",
]
