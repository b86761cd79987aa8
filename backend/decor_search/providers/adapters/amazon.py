"""Amazon adapter (general home goods).

Searches Amazon through the RapidAPI "amazon-online-data-api" endpoint.
Field names vary between snake_case and camelCase across responses, so
every attribute has a long list of candidates.
"""

from typing import Any, Dict

from decor_search.models.product import Provider
from decor_search.providers.base import BaseProviderAdapter
from decor_search.providers.utils import key, path, scalar


PRODUCT_URL = "https://amazon.com/dp/{asin}"


def _keys(*names: str) -> tuple:
    """Top-level candidates; nested objects count as missing."""
    return tuple(scalar(key(name)) for name in names)


class AmazonAdapter(BaseProviderAdapter):
    """Amazon product search via RapidAPI."""

    provider = Provider.AMAZON
    provider_name = "Amazon"

    API_HOST = "amazon-online-data-api.p.rapidapi.com"
    SEARCH_PATH = "/search"

    ITEM_ARRAY_PATHS = (
        key("products"),
        key("results"),
        key("data"),
        key("items"),
        path("data", "products"),
    )

    FIELDS = {
        "title": _keys("product_title", "title", "name", "productTitle"),
        "id": _keys("asin", "id", "product_id", "productId", "product_asin", "productAsin"),
        "price": _keys(
            "product_price", "price", "current_price", "currentPrice",
            "price_current", "priceCurrent", "list_price", "listPrice",
        ),
        "currency": _keys("currency"),
        "rating": _keys(
            "product_star_rating", "rating", "stars", "star_rating",
            "starRating", "average_rating", "averageRating",
        ),
        "review_count": _keys(
            "product_num_ratings", "reviews_count", "reviewsCount", "review_count",
            "reviewCount", "total_reviews", "totalReviews",
        ),
        "image_url": _keys("product_photo", "image", "image_url", "imageUrl", "thumbnail", "img", "picture"),
        "product_url": _keys(
            "product_url", "url", "link", "productUrl", "amazon_url", "amazonUrl",
        ),
    }

    def build_params(self, query: str) -> Dict[str, Any]:
        return {
            "query": query,
            "page": 1,
            "geo": self.settings.AMAZON_GEO,
        }

    def fallback_product_url(self, product_id: str, title: str) -> str:
        return PRODUCT_URL.format(asin=product_id)
