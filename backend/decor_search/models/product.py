"""Canonical product model shared by every provider adapter."""

import enum
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional


class Provider(str, enum.Enum):
    """Supported marketplaces."""

    WAYFAIR = "wayfair"  # furniture and decor
    ETSY = "etsy"  # handmade goods
    AMAZON = "amazon"  # general home goods

    @classmethod
    def parse(cls, value: "Provider | str") -> "Provider":
        """Coerce a slug (any case) or Provider into a Provider.

        Raises:
            ValueError: If the slug is not a known provider
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown provider '{value}'. Expected one of: {valid}") from None


@dataclass(frozen=True)
class CanonicalProduct:
    """Normalized, source-agnostic product record returned by all adapters."""

    id: str  # SKU, listing id or ASIN depending on source
    title: str
    source: Provider
    price: Decimal = Decimal("0")
    currency: str = "USD"
    rating: float = 0.0
    review_count: int = 0
    image_url: str = ""
    product_url: str = ""
    element_id: Optional[str] = None  # Room element a single-provider search was run for

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.id or not str(self.id).strip():
            raise ValueError("id is required")
        if not self.title or not self.title.strip():
            raise ValueError("title is required")
        if self.price is None or self.price < 0:
            raise ValueError("price must be a non-negative Decimal")
        if not 0 <= self.rating <= 5:
            raise ValueError("rating must be between 0 and 5")
        if self.review_count < 0:
            raise ValueError("review_count must be non-negative")

    @property
    def key(self) -> tuple:
        """Identity across providers: ids are only unique within one source."""
        return (self.source, self.id)

    def to_dict(self) -> Dict[str, Any]:
        """Render a JSON-safe dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "price": str(self.price),
            "currency": self.currency,
            "rating": self.rating,
            "review_count": self.review_count,
            "image_url": self.image_url,
            "product_url": self.product_url,
            "source": self.source.value,
            "element_id": self.element_id,
        }
