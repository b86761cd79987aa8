"""Tests for liked-product persistence."""

from decimal import Decimal

import pytest

from decor_search.core.exceptions import NotFoundError
from decor_search.models.product import CanonicalProduct, Provider
from decor_search.services.liked_products import LikedProductsService
from decor_search.services.persistence import InMemoryPersistence


@pytest.fixture
def product():
    return CanonicalProduct(
        id="B0TEST1",
        title="Linen Throw Pillow",
        source=Provider.AMAZON,
        price=Decimal("19.99"),
        rating=4.4,
        review_count=532,
        image_url="https://img.test/a1.jpg",
        product_url="https://amazon.com/dp/B0TEST1",
    )


@pytest.fixture
def persistence():
    return InMemoryPersistence()


@pytest.fixture
def service(persistence):
    return LikedProductsService(persistence)


class TestLikedProductsService:
    async def test_like_and_load(self, service, product):
        record_id = await service.like_product("project-1", product)

        liked = await service.get_liked_product(record_id)

        assert liked.project_id == "project-1"
        assert liked.product_id == "B0TEST1"
        assert liked.source == Provider.AMAZON
        assert liked.title == "Linen Throw Pillow"
        assert liked.price == Decimal("19.99")
        assert liked.currency == "USD"
        assert liked.rating == pytest.approx(4.4)
        assert liked.review_count == 532
        assert liked.product_url == "https://amazon.com/dp/B0TEST1"

    async def test_stored_record_is_json_safe(self, service, persistence, product):
        record_id = await service.like_product("project-1", product)

        stored = await persistence.load(record_id)

        assert stored["price"] == "19.99"
        assert stored["source"] == "amazon"

    async def test_each_like_gets_its_own_id(self, service, product):
        first = await service.like_product("project-1", product)
        second = await service.like_product("project-2", product)
        assert first != second

    async def test_unlike(self, service, persistence, product):
        record_id = await service.like_product("project-1", product)

        await service.unlike_product(record_id)

        assert len(persistence) == 0
        with pytest.raises(NotFoundError):
            await service.get_liked_product(record_id)

    async def test_unlike_unknown_record(self, service):
        with pytest.raises(NotFoundError):
            await service.unlike_product("missing")

    async def test_blank_project_rejected(self, service, product):
        with pytest.raises(ValueError):
            await service.like_product("  ", product)
