"""Data normalization utilities for mapping marketplace payloads."""

import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

import structlog

from decor_search.models.product import CanonicalProduct


logger = structlog.get_logger(__name__)

# One candidate source for an attribute: takes the raw item, returns a value or None
Extractor = Callable[[Dict[str, Any]], Any]

_MISSING = object()


def key(name: str) -> Extractor:
    """Extractor reading a top-level field."""

    def _extract(item: Dict[str, Any]) -> Any:
        return item.get(name) if isinstance(item, dict) else None

    _extract.__name__ = f"key_{name}"
    return _extract


def path(*parts: Any) -> Extractor:
    """Extractor walking nested dicts and lists.

    Integer parts index into lists, so ``path("images", 0, "url")`` reads
    the url of the first image.
    """

    def _extract(item: Dict[str, Any]) -> Any:
        current: Any = item
        for part in parts:
            if isinstance(part, int):
                if not isinstance(current, list) or len(current) <= part:
                    return None
                current = current[part]
            elif isinstance(current, dict):
                current = current.get(part)
            else:
                return None
            if current is None:
                return None
        return current

    _extract.__name__ = "path_" + "_".join(str(p) for p in parts)
    return _extract


def scalar(extractor: Extractor) -> Extractor:
    """Wrap an extractor so nested objects count as missing."""

    def _extract(item: Dict[str, Any]) -> Any:
        value = extractor(item)
        if isinstance(value, (dict, list)):
            return None
        return value

    _extract.__name__ = f"scalar_{extractor.__name__}"
    return _extract


def is_empty(value: Any) -> bool:
    """None, blank strings and empty containers carry no information."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple)):
        return len(value) == 0
    return False


def first_present(item: Dict[str, Any], extractors: Sequence[Extractor], default: Any = None) -> Any:
    """Evaluate extractors in priority order; the first non-empty value wins.

    Args:
        item: Raw item from a provider response
        extractors: Candidate extractors, highest priority first
        default: Returned when no candidate yields a value

    Returns:
        The winning value or ``default``
    """
    for extractor in extractors:
        try:
            value = extractor(item)
        except (AttributeError, TypeError, KeyError, IndexError):
            continue
        if not is_empty(value):
            return value
    return default


def find_item_array(payload: Any, candidates: Sequence[Extractor]) -> Optional[List[Any]]:
    """Locate the list of result items inside a provider payload.

    Returns:
        The first candidate that resolves to a list, or None
    """
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return None
    for extractor in candidates:
        value = extractor(payload)
        if isinstance(value, list):
            return value
    return None


def numeric_key_values(obj: Any) -> List[Any]:
    """Values of an object keyed "0", "1", ... in numeric order.

    Some providers serialize arrays as objects with numeric keys.
    """
    if not isinstance(obj, dict):
        return []
    numeric = [k for k in obj.keys() if str(k).isdigit()]
    return [obj[k] for k in sorted(numeric, key=lambda k: int(k))]


class PriceNormalizer:
    """Parsing helpers for price, rating and review count fields.

    Upstreams return these as numbers, display strings ("$1,299.00",
    "4.5 out of 5 stars", "1.2K") or anything in between; all helpers fall
    back to 0 rather than raising.
    """

    _NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
    _DECIMAL_COMMA_RE = re.compile(r"^\d*,\d{1,2}$")
    # "10,202", "1.2K", "1.2Kreviews", "3.4m", "3.4 M". Only an uppercase suffix may
    # be glued to a following word ("5months" is 5). Everything after the digits
    # is optional, so the digits themselves never shrink.
    _COUNT_RE = re.compile(
        r"(\d[\d,]*(?:\.\d+)?)(?:([KM])|([km])(?![A-Za-z])|\s+([KkMm])(?![A-Za-z]))?"
    )
    _SUFFIX_MULTIPLIERS = {"K": Decimal("1000"), "M": Decimal("1000000")}

    @staticmethod
    def _is_number(value: Any) -> bool:
        return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)

    @classmethod
    def extract_price(cls, raw: Any) -> Decimal:
        """Parse a price value.

        Handles various formats:
        - 19.99 -> 19.99
        - "$19.99" -> 19.99
        - "1,234.56" -> 1234.56
        - "15,99" -> 15.99 (comma as decimal separator)
        - "1,234" -> 1234 (comma as thousands separator)
        - "Call for price" -> 0

        Args:
            raw: Raw price value

        Returns:
            Non-negative Decimal price, 0 if parsing fails
        """
        if cls._is_number(raw):
            if isinstance(raw, float) and not math.isfinite(raw):
                return Decimal("0")
            return max(Decimal("0"), Decimal(str(raw)))

        if not isinstance(raw, str):
            return Decimal("0")

        cleaned = re.sub(r"[^\d.,]", "", raw)
        if not cleaned:
            return Decimal("0")

        if "," in cleaned and "." not in cleaned:
            if cls._DECIMAL_COMMA_RE.match(cleaned):
                cleaned = cleaned.replace(",", ".")
            else:
                cleaned = cleaned.replace(",", "")
        else:
            cleaned = cleaned.replace(",", "")

        try:
            value = Decimal(cleaned)
        except InvalidOperation:
            return Decimal("0")
        if not value.is_finite():
            return Decimal("0")
        return max(Decimal("0"), value)

    @classmethod
    def extract_rating(cls, raw: Any) -> float:
        """Parse a star rating and clamp it to [0, 5].

        Args:
            raw: Number or string such as "4.5 out of 5 stars"

        Returns:
            Rating between 0.0 and 5.0
        """
        if cls._is_number(raw):
            value = float(raw)
        elif isinstance(raw, str):
            match = cls._NUMBER_RE.search(raw.replace(",", "."))
            if not match:
                return 0.0
            value = float(match.group())
        else:
            return 0.0

        if math.isnan(value):
            return 0.0
        return min(5.0, max(0.0, value))

    @classmethod
    def extract_review_count(cls, raw: Any) -> int:
        """Parse a review count.

        Handles various formats:
        - 1234 -> 1234
        - "10,202" -> 10202
        - "1.2K" -> 1200
        - "(3.4M ratings)" -> 3400000

        Args:
            raw: Raw review count value

        Returns:
            Non-negative integer count, 0 if parsing fails
        """
        if cls._is_number(raw):
            if isinstance(raw, float) and not math.isfinite(raw):
                return 0
            return max(0, int(math.floor(raw)))

        if not isinstance(raw, str):
            return 0

        match = cls._COUNT_RE.search(raw)
        if not match:
            return 0

        number = match.group(1)
        suffix = next((s for s in match.groups()[1:] if s), "")
        multiplier = cls._SUFFIX_MULTIPLIERS.get(suffix.upper(), Decimal("1"))
        try:
            value = Decimal(number.replace(",", "")) * multiplier
        except InvalidOperation:
            return 0
        return max(0, int(value))


def deduplicate_products(products: Iterable[CanonicalProduct]) -> List[CanonicalProduct]:
    """Keep the first product seen for every id.

    No fields are merged: a later record with the same id is dropped even if
    its price or rating differs.
    """
    seen = set()
    unique: List[CanonicalProduct] = []
    for product in products:
        if product.id in seen:
            continue
        seen.add(product.id)
        unique.append(product)
    return unique


def normalize_products(
    records: Iterable[Any],
    mapper: Callable[[Any], Optional[CanonicalProduct]],
    limit: Optional[int] = None,
) -> List[CanonicalProduct]:
    """Map raw records, drop invalid ones and deduplicate by id.

    Args:
        records: Raw records (already-canonical products pass through)
        mapper: Converts one raw record, returning None for unusable ones
        limit: Optional cap on the returned list

    Returns:
        Unique products in first-seen order
    """
    mapped: List[CanonicalProduct] = []
    dropped = 0
    for record in records:
        if isinstance(record, CanonicalProduct):
            mapped.append(record)
            continue
        try:
            product = mapper(record)
        except (ValueError, TypeError, AttributeError) as e:
            logger.debug("record_mapping_failed", error=str(e))
            product = None
        if product is None:
            dropped += 1
            continue
        mapped.append(product)

    unique = deduplicate_products(mapped)
    if dropped:
        logger.debug("records_dropped", count=dropped)
    if limit is not None:
        unique = unique[:limit]
    return unique
