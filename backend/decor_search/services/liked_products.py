"""Liked-product bookkeeping for user projects."""

from decimal import Decimal
from typing import Optional

import structlog

from decor_search.models.liked_product import LikedProduct
from decor_search.models.product import CanonicalProduct, Provider
from decor_search.services.persistence import InMemoryPersistence, PersistenceBackend


logger = structlog.get_logger(__name__)


class LikedProductsService:
    """Store and retrieve products a user liked for a project."""

    def __init__(self, persistence: Optional[PersistenceBackend] = None):
        self.persistence = persistence or InMemoryPersistence()

    async def like_product(self, project_id: str, product: CanonicalProduct) -> str:
        """Save a search result as liked.

        Args:
            project_id: Project the product was liked for
            product: Search result to store

        Returns:
            Id of the stored record

        Raises:
            ValueError: If the project id or product id is blank
        """
        if not project_id or not str(project_id).strip():
            raise ValueError("project_id is required")
        if not product.id or not str(product.id).strip():
            raise ValueError("Cannot like a product without an id")

        liked = LikedProduct.from_product(project_id, product)
        record_id = await self.persistence.save(liked.to_dict())

        logger.info(
            "product_liked",
            record_id=record_id,
            project_id=project_id,
            product_id=product.id,
            source=product.source.value,
        )
        return record_id

    async def get_liked_product(self, record_id: str) -> LikedProduct:
        """Load a liked product.

        Raises:
            NotFoundError: If the record does not exist
        """
        data = await self.persistence.load(record_id)
        return LikedProduct(
            project_id=data["project_id"],
            product_id=data["product_id"],
            source=Provider.parse(data["source"]),
            title=data["title"],
            price=Decimal(str(data["price"])),
            currency=data["currency"],
            rating=float(data["rating"]),
            review_count=int(data["review_count"]),
            image_url=data.get("image_url", ""),
            product_url=data.get("product_url", ""),
        )

    async def unlike_product(self, record_id: str) -> None:
        """Remove a liked product.

        Raises:
            NotFoundError: If the record does not exist
        """
        await self.persistence.delete(record_id)
        logger.info("product_unliked", record_id=record_id)
