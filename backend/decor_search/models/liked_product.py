"""Liked product record persisted on behalf of a user project."""

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Dict

from decor_search.models.product import CanonicalProduct, Provider


@dataclass
class LikedProduct:
    """A product a user liked while curating a project."""

    project_id: str
    product_id: str
    source: Provider
    title: str
    price: Decimal
    currency: str
    rating: float
    review_count: int
    image_url: str
    product_url: str

    @classmethod
    def from_product(cls, project_id: str, product: CanonicalProduct) -> "LikedProduct":
        """Build a record from a search result."""
        return cls(
            project_id=project_id,
            product_id=product.id,
            source=product.source,
            title=product.title,
            price=product.price,
            currency=product.currency,
            rating=product.rating,
            review_count=product.review_count,
            image_url=product.image_url,
            product_url=product.product_url,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source"] = self.source.value
        data["price"] = str(self.price)
        return data
