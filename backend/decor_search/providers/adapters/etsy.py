"""Etsy adapter (handmade goods).

Searches Etsy listings through the RapidAPI "etsy-api2" endpoint. This
upstream sometimes serializes the result array as an object keyed
"0", "1", ... so item extraction is more forgiving than for the other
marketplaces.
"""

from typing import Any, Dict, List, Optional

from decor_search.models.product import Provider
from decor_search.providers.base import BaseProviderAdapter
from decor_search.providers.utils import key, numeric_key_values, path, scalar


LISTING_URL = "https://www.etsy.com/listing/{listing_id}"


class EtsyAdapter(BaseProviderAdapter):
    """Etsy listing search via RapidAPI."""

    provider = Provider.ETSY
    provider_name = "Etsy"

    API_HOST = "etsy-api2.p.rapidapi.com"
    SEARCH_PATH = "/product/search"

    ITEM_ARRAY_PATHS = (
        key("results"),
        key("data"),
        key("products"),
    )

    FIELDS = {
        "title": (scalar(key("title")),),
        "id": (scalar(key("listingId")), scalar(key("listing_id")), scalar(key("id"))),
        "price": (
            path("price", "salePrice"),
            scalar(key("salePrice")),
            scalar(key("originalPrice")),
            path("price", "originalPrice"),
            scalar(key("price")),
        ),
        "currency": (scalar(key("currency")), path("price", "currency")),
        "rating": (scalar(key("rating")),),
        "review_count": (scalar(key("reviewsCount")), scalar(key("reviews_count"))),
        "image_url": (
            scalar(key("imageUrl")),
            scalar(key("image")),
            path("images", 0, "url_570xN"),
            path("images", 0, "url"),
            scalar(key("image_url")),
            scalar(key("thumbnail_url")),
        ),
        "product_url": (scalar(key("productUrl")), scalar(key("url"))),
    }

    def build_params(self, query: str) -> Dict[str, Any]:
        return {"query": query, "page": 1}

    def extract_items(self, payload: Any) -> Optional[List[Any]]:
        """Find listings in the payload.

        Checked in order: ``response`` (list or numeric-keyed object), a
        bare list, ``results``/``data``/``products``, then numeric keys at
        the root.
        """
        if isinstance(payload, dict):
            response = payload.get("response")
            if isinstance(response, list):
                return response
            items = numeric_key_values(response)
            if items:
                return items

        items = super().extract_items(payload)
        if items is not None:
            return items

        items = numeric_key_values(payload)
        return items or None

    def fallback_product_url(self, product_id: str, title: str) -> str:
        return LISTING_URL.format(listing_id=product_id)
