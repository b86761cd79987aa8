"""Wayfair adapter (furniture and decor).

Searches Wayfair through the RapidAPI "wayfair" endpoint. Only the first
results page (48 items) is requested per query.
"""

import re
from typing import Any, Dict, Optional

from decor_search.models.product import Provider
from decor_search.providers.base import BaseProviderAdapter
from decor_search.providers.utils import key, path, scalar


LEAD_IMAGE_URL = (
    "https://secure.img1-fg.wfcdn.com/im/29272037/resize-h800-w800%5Ecompr-r85/{image_id}/default.jpg"
)
SKU_IMAGE_URL = "https://secure.img1-fg.wfcdn.com/im/47664163/resize-h800%5Ecompr-r85/1388/{sku}.jpg"
PRODUCT_URL = "https://www.wayfair.com/furniture/pdp/{slug}-{sku}.html"


def _first_image(item: Dict[str, Any]) -> Optional[str]:
    """images[0], which is either a URL string or an object with url/src."""
    images = item.get("images")
    if not isinstance(images, list) or not images:
        return None
    first = images[0]
    if isinstance(first, str):
        return first
    if isinstance(first, dict):
        return first.get("url") or first.get("src")
    return None


def _lead_image_from_id(item: Dict[str, Any]) -> Optional[str]:
    lead = item.get("leadImage")
    if isinstance(lead, dict) and lead.get("id"):
        return LEAD_IMAGE_URL.format(image_id=lead["id"])
    return None


def slugify(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


class WayfairAdapter(BaseProviderAdapter):
    """Wayfair product search via RapidAPI."""

    provider = Provider.WAYFAIR
    provider_name = "Wayfair"

    API_HOST = "wayfair.p.rapidapi.com"
    SEARCH_PATH = "/products/v2/search"
    ITEMS_PER_PAGE = 48

    ITEM_ARRAY_PATHS = (
        key("products"),
        path("data", "keyword", "results", "products"),
    )

    FIELDS = {
        "title": (scalar(key("name")), scalar(key("title"))),
        "id": (scalar(key("sku")), scalar(key("id"))),
        "price": (
            path("pricing", "customerPrice", "display", "value"),
            path("pricing", "listPrice", "unitPrice", "value"),
            scalar(key("price")),
        ),
        "currency": (
            path("pricing", "customerPrice", "display", "currency"),
            scalar(key("currency")),
        ),
        "rating": (
            path("customerReviews", "averageRating"),
            path("customer_reviews", "average_rating_value"),
            scalar(key("rating")),
        ),
        "review_count": (
            path("customerReviews", "reviewCount"),
            path("customer_reviews", "rating_count"),
            scalar(key("review_count")),
        ),
        "image_url": (
            _first_image,
            scalar(path("leadImage", "url")),
            _lead_image_from_id,
            scalar(key("image")),
            scalar(key("image_url")),
            scalar(key("thumbnail")),
        ),
        "product_url": (scalar(key("url")), scalar(key("product_url"))),
    }

    def build_params(self, query: str) -> Dict[str, Any]:
        return {
            "keyword": query,
            "itemsPerPage": self.ITEMS_PER_PAGE,
            "page": 1,
            "sortId": 0,
        }

    def fallback_image_url(self, item: Dict[str, Any], product_id: str) -> str:
        return SKU_IMAGE_URL.format(sku=product_id)

    def fallback_product_url(self, product_id: str, title: str) -> str:
        return PRODUCT_URL.format(slug=slugify(title), sku=product_id)
