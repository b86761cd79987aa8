"""Base provider adapter interface.

All marketplace adapters inherit from BaseProviderAdapter and declare
their upstream endpoint, request parameters and response field tables.
The base class owns the request pipeline shared by every marketplace:

    credentials -> cool-down -> quota gate -> request queue -> retry -> HTTP -> mapping
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx
import structlog

from decor_search.config import Settings, settings as default_settings
from decor_search.core.exceptions import (
    ConfigurationError,
    ProviderAuthError,
    RateLimitError,
)
from decor_search.models.product import CanonicalProduct, Provider
from decor_search.providers.utils import (
    Extractor,
    PriceNormalizer,
    ProviderCooldown,
    RequestQueue,
    RetryPolicy,
    deduplicate_products,
    find_item_array,
    first_present,
    is_auth_error,
    normalize_products,
)
from decor_search.services.quota import QuotaGate, UnlimitedQuotaGate


logger = structlog.get_logger(__name__)


class BaseProviderAdapter(ABC):
    """Abstract base class for all marketplace search adapters.

    Subclasses set the class attributes below and implement
    build_params(). Everything a caller uses (search_one, search_many,
    health_check) lives here.
    """

    provider: Provider  # Must be overridden in subclass
    provider_name: str = ""  # Display name (e.g., "Wayfair")

    # Upstream configuration
    API_HOST: str = ""  # RapidAPI host, also sent as X-RapidAPI-Host
    SEARCH_PATH: str = ""

    # Where the item array may live in a response, highest priority first.
    # A bare list payload is always accepted.
    ITEM_ARRAY_PATHS: Sequence[Extractor] = ()

    # Candidate extractors per canonical attribute, highest priority first
    FIELDS: Dict[str, Sequence[Extractor]] = {}

    def __init__(
        self,
        quota_gate: Optional[QuotaGate] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the adapter.

        Args:
            quota_gate: Usage-limit service consulted before every call
            http_client: Shared httpx.AsyncClient; a client is created per
                request when omitted
            settings: Settings instance (defaults to the global settings)
            clock: Monotonic clock used by the cool-down
            sleep: Coroutine used for queue delays and retry backoff
        """
        self.settings = settings or default_settings
        self.quota_gate = quota_gate or UnlimitedQuotaGate()
        self.http_client = http_client
        self.logger = logger.bind(provider=self.slug)

        self.request_queue = RequestQueue(
            max_concurrent=self.settings.QUEUE_MAX_CONCURRENT,
            inter_batch_delay=self.settings.QUEUE_INTER_BATCH_DELAY,
            name=self.slug,
            sleep=sleep,
        )
        self.retry_policy = RetryPolicy(
            max_retries=self.settings.RETRY_MAX_RETRIES,
            base_delay=self.settings.RETRY_BASE_DELAY,
            name=self.slug,
            sleep=sleep,
        )
        self.cooldown = ProviderCooldown(
            window_seconds=self.settings.PROVIDER_COOLDOWN_SECONDS,
            name=self.slug,
            clock=clock,
        )

        self.max_results = self.settings.MAX_RESULTS_PER_PROVIDER
        self._timeout = self.settings.REQUEST_TIMEOUT

    # -- configuration -----------------------------------------------------

    @property
    def slug(self) -> str:
        return self.provider.value

    @property
    def base_url(self) -> str:
        return f"https://{self.API_HOST}"

    @property
    def credential_setting(self) -> str:
        """Name of the environment variable holding this provider's key."""
        return f"RAPIDAPI_KEY_{self.slug.upper()}"

    @property
    def api_key(self) -> str:
        return self.settings.get_api_key(self.slug)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def check_api_key(self) -> None:
        """Fail fast when the provider key is missing or a placeholder.

        Raises:
            ConfigurationError: If the key is not configured
        """
        if not self.is_configured():
            self.logger.error(
                "api_key_not_configured",
                setting=self.credential_setting,
            )
            raise ConfigurationError(self.provider_name or self.slug, self.credential_setting)

    def _headers(self) -> Dict[str, str]:
        return {
            "X-RapidAPI-Key": self.api_key,
            "X-RapidAPI-Host": self.API_HOST,
        }

    @abstractmethod
    def build_params(self, query: str) -> Dict[str, Any]:
        """Build upstream query parameters for one search (first page).

        Args:
            query: Stripped, non-empty search query

        Returns:
            Query-string parameters for the search endpoint
        """

    # -- public API --------------------------------------------------------

    async def search_one(self, query: str) -> List[CanonicalProduct]:
        """Search the marketplace for a single query.

        Never raises for upstream problems: quota exhaustion, cool-down,
        HTTP errors that survive retries and unparseable payloads all yield
        an empty list so sibling queries are unaffected.

        Args:
            query: Free-text search query

        Returns:
            Products mapped from the first results page

        Raises:
            ConfigurationError: If the provider API key is not configured
        """
        query = (query or "").strip()
        if not query:
            return []

        self.check_api_key()

        if self.cooldown.should_skip():
            self.logger.info(
                "search_skipped_cooldown",
                query=query,
                remaining_seconds=round(self.cooldown.remaining_seconds, 1),
            )
            return []

        if not await self._check_quota():
            self.logger.warning("search_skipped_quota_exceeded", query=query)
            return []

        try:
            products = await self._execute(query)
        except Exception as e:
            self.logger.error(
                "search_failed",
                query=query,
                error_type=type(e).__name__,
                status_code=getattr(getattr(e, "response", None), "status_code", None)
                or getattr(e, "status_code", None),
                error=str(e),
            )
            return []

        self.logger.info("search_complete", query=query, count=len(products))
        return products

    async def search_many(self, queries: Sequence[str]) -> List[CanonicalProduct]:
        """Search several queries concurrently and merge the results.

        Every query is awaited even if others fail. Results are concatenated
        in query order, deduplicated by id (first occurrence wins) and capped
        at max_results.

        Args:
            queries: Free-text queries; blank entries are ignored

        Returns:
            Unique products across all queries

        Raises:
            ConfigurationError: If the provider API key is not configured
        """
        cleaned = [q.strip() for q in queries if q and q.strip()]
        if not cleaned:
            self.logger.info("no_queries_provided")
            return []

        self.check_api_key()

        if self.cooldown.should_skip():
            self.logger.info("search_many_skipped_cooldown", query_count=len(cleaned))
            return []

        self.logger.info("search_many_started", query_count=len(cleaned), queries=cleaned)

        results = await asyncio.gather(
            *(self.search_one(query) for query in cleaned),
            return_exceptions=True,
        )

        all_products: List[CanonicalProduct] = []
        successful = 0
        for query, result in zip(cleaned, results):
            if isinstance(result, ConfigurationError):
                raise result
            if isinstance(result, BaseException):
                self.logger.warning("query_failed", query=query, error=str(result))
                continue
            if result:
                successful += 1
                all_products.extend(result)

        unique = deduplicate_products(all_products)
        limited = unique[: self.max_results]

        self.logger.info(
            "search_many_complete",
            successful_queries=successful,
            total_queries=len(cleaned),
            total_products=len(all_products),
            unique_products=len(unique),
            returned=len(limited),
        )
        return limited

    async def health_check(self) -> bool:
        """Check if this provider can be searched right now.

        Returns:
            True if a probe search succeeded, False otherwise
        """
        if not self.is_configured():
            self.logger.warning("health_check_skipped", reason="api_key_not_configured")
            return False

        if self.cooldown.should_skip():
            self.logger.warning("health_check_skipped", reason="cooldown")
            return False

        if not await self._check_quota():
            self.logger.warning("health_check_skipped", reason="quota_exceeded")
            return False

        try:
            await self._execute("test")
        except Exception as e:
            self.logger.error("health_check_failed", error=str(e))
            return False

        healthy = not self.cooldown.should_skip()
        self.logger.info("health_check_complete", healthy=healthy)
        return healthy

    # -- request pipeline --------------------------------------------------

    async def _check_quota(self) -> bool:
        """Ask the quota gate; an unreachable gate does not block searches."""
        try:
            return bool(await self.quota_gate.check_usage_limit(self.provider))
        except Exception as e:
            self.logger.warning("quota_check_failed", error=str(e))
            return True

    async def _notify_usage(self) -> None:
        try:
            await self.quota_gate.increment_usage(self.provider)
        except Exception as e:
            self.logger.warning("quota_increment_failed", error=str(e))

    async def _execute(self, query: str) -> List[CanonicalProduct]:
        """Queue one search and run it under the retry policy."""
        return await self.request_queue.enqueue(lambda: self._run_with_retry(query))

    async def _run_with_retry(self, query: str) -> List[CanonicalProduct]:
        # Another queued call may have tripped the cool-down while this one waited
        if self.cooldown.should_skip():
            self.logger.info("queued_search_skipped_cooldown", query=query)
            return []

        try:
            return await self.retry_policy.call(lambda: self._request(query))
        except Exception as e:
            if is_auth_error(e):
                self.cooldown.mark_unavailable(reason=str(e))
            raise

    async def _request(self, query: str) -> List[CanonicalProduct]:
        """One HTTP call plus response mapping."""
        payload = await self._call_api(query)
        return self.process_results(payload)

    async def _call_api(self, query: str) -> Any:
        """Make one GET request to the search endpoint.

        Returns:
            Decoded JSON payload

        Raises:
            ProviderAuthError: On 401/403
            RateLimitError: On 429
            httpx.HTTPStatusError: On other error statuses
            httpx.TimeoutException: If the request times out
            httpx.NetworkError: If a network error occurs
        """
        url = f"{self.base_url}{self.SEARCH_PATH}"
        params = self.build_params(query)

        self.logger.debug("api_call", query=query, params=params)

        # Counted as attempted, not succeeded
        await self._notify_usage()

        if self.http_client is not None:
            response = await self.http_client.get(
                url,
                headers=self._headers(),
                params=params,
                timeout=self._timeout,
            )
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(url, headers=self._headers(), params=params)

        self._raise_for_status(response)

        data = response.json()
        self.logger.debug(
            "api_success",
            query=query,
            response_keys=list(data.keys())[:20] if isinstance(data, dict) else None,
        )
        return data

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if status in (401, 403):
            raise ProviderAuthError(self.slug, status, detail=self._error_detail(response))
        if status == 429:
            self.logger.warning("rate_limit_hit")
            raise RateLimitError(self.slug)
        response.raise_for_status()

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        """Best-effort error message from an error response body."""
        try:
            body = response.json()
        except ValueError:
            return response.text[:200] if response.text else ""
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or "")[:200]
        return ""

    # -- response mapping --------------------------------------------------

    def extract_items(self, payload: Any) -> Optional[List[Any]]:
        """Find the raw item list in a response payload."""
        return find_item_array(payload, self.ITEM_ARRAY_PATHS)

    def process_results(self, payload: Any) -> List[CanonicalProduct]:
        """Convert a response payload to unique canonical products.

        Args:
            payload: Decoded JSON response

        Returns:
            Mapped products; empty if no item array can be found
        """
        if not payload:
            self.logger.warning("empty_payload")
            return []

        items = self.extract_items(payload)
        if items is None:
            self.logger.warning(
                "item_array_not_found",
                response_keys=list(payload.keys())[:20] if isinstance(payload, dict) else type(payload).__name__,
            )
            return []

        products = normalize_products(items, self.map_item)
        self.logger.debug("items_mapped", raw=len(items), mapped=len(products))
        return products

    def _field(self, item: Dict[str, Any], name: str, default: Any = None) -> Any:
        return first_present(item, self.FIELDS.get(name, ()), default)

    def map_item(self, item: Any) -> Optional[CanonicalProduct]:
        """Convert one raw item to a CanonicalProduct.

        Args:
            item: Raw item from the provider response

        Returns:
            CanonicalProduct, or None if the item has no title or id
        """
        if not isinstance(item, dict):
            return None

        title = self._field(item, "title")
        product_id = self._field(item, "id")
        if title is None or product_id is None:
            return None
        title = str(title).strip()
        product_id = str(product_id).strip()
        if not title or not product_id:
            return None

        currency = str(self._field(item, "currency", "USD")).strip().upper() or "USD"
        image_url = self._field(item, "image_url") or self.fallback_image_url(item, product_id)
        product_url = self._field(item, "product_url") or self.fallback_product_url(product_id, title)

        return CanonicalProduct(
            id=product_id,
            title=title,
            source=self.provider,
            price=PriceNormalizer.extract_price(self._field(item, "price", 0)),
            currency=currency,
            rating=PriceNormalizer.extract_rating(self._field(item, "rating", 0)),
            review_count=PriceNormalizer.extract_review_count(self._field(item, "review_count", 0)),
            image_url=str(image_url or ""),
            product_url=str(product_url or ""),
        )

    def fallback_image_url(self, item: Dict[str, Any], product_id: str) -> str:
        """Image URL used when the item has none."""
        return ""

    def fallback_product_url(self, product_id: str, title: str) -> str:
        """Product page URL used when the item has none."""
        return ""
