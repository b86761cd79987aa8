"""Manual search runner for testing and debugging providers.

Runs a combined search across the marketplaces given on the command line
and prints the balanced results, or checks provider connectivity.

Usage:
    python scripts/run_search.py --amazon "velvet sofa" --etsy "macrame wall hanging"
    python scripts/run_search.py --wayfair "oak coffee table" --wayfair "rattan chair" --limit 5
    python scripts/run_search.py --amazon "floor lamp" --json
    python scripts/run_search.py --health
"""

import asyncio
import argparse
import json
import sys
import os
from decimal import Decimal
from typing import Dict, List

import httpx

# Add backend to path so the script also runs from a plain checkout
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

from decor_search.config import settings
from decor_search.core.exceptions import ConfigurationError
from decor_search.core.logging import configure_logging
from decor_search.models.product import CanonicalProduct, Provider
from decor_search.providers import ProviderFactory, register_all_providers
from decor_search.services.combined_search import CombinedSearchService


async def run_search(queries: Dict[Provider, List[str]], limit: int, max_results: int, as_json: bool) -> int:
    """Run a combined search and display the results.

    Args:
        queries: Provider -> queries
        limit: Maximum number of products to display
        max_results: Size of the balanced result set
        as_json: Print JSON instead of the summary

    Returns:
        Process exit code
    """
    async with httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT) as client:
        factory = register_all_providers(ProviderFactory(http_client=client))
        service = CombinedSearchService(factory=factory)

        try:
            products = await service.search_all(queries, max_results=max_results)
        except ConfigurationError as e:
            print(f"\n❌ Configuration error: {e}\n", file=sys.stderr)
            return 2

    if as_json:
        print(json.dumps([p.to_dict() for p in products[:limit]], indent=2, ensure_ascii=False))
        return 0

    print(f"\n{'='*70}")
    print(f"  Combined Search")
    print(f"{'='*70}")
    for provider, provider_queries in queries.items():
        print(f"  🔍 {provider.value}: {', '.join(provider_queries)}")
    print(f"{'='*70}\n")

    if not products:
        print("⚠️  No products found.\n")
        return 0

    for i, product in enumerate(products[:limit], 1):
        _print_product(i, product)

    # Summary
    by_source: Dict[str, int] = {}
    for product in products:
        by_source[product.source.value] = by_source.get(product.source.value, 0) + 1

    print(f"{'='*70}")
    print(f"  Summary")
    print(f"{'='*70}")
    print(f"  Total Products: {len(products)}")
    print(f"  Displayed: {min(limit, len(products))}")
    print(f"  By Source:")
    for source, count in sorted(by_source.items()):
        print(f"    - {source}: {count}")
    print(f"{'='*70}\n")
    return 0


async def run_health_check() -> int:
    """Check every provider and print its status."""
    async with httpx.AsyncClient(timeout=settings.REQUEST_TIMEOUT) as client:
        factory = register_all_providers(ProviderFactory(http_client=client))
        status = await CombinedSearchService(factory=factory).test_connections()

    print(f"\n{'='*70}")
    print(f"  Provider Connections")
    print(f"{'='*70}")
    for provider, ok in status.items():
        print(f"  {'✅' if ok else '❌'} {provider.value}")
    print(f"{'='*70}\n")
    return 0 if all(status.values()) else 1


def _print_product(index: int, product: CanonicalProduct) -> None:
    print(f"[{index}] {product.title}")
    print(f"    💰 Price: {_format_price(product.price, product.currency)}")
    if product.rating:
        print(f"    ⭐ Rating: {product.rating:.1f} ({product.review_count:,} reviews)")
    print(f"    🏪 Source: {product.source.value}")
    if product.product_url:
        print(f"    🔗 URL: {product.product_url[:80]}")
    print()


def _format_price(price: Decimal, currency: str) -> str:
    """Format price with currency symbol.

    Args:
        price: The price value
        currency: Currency code (e.g., "USD", "EUR")

    Returns:
        Formatted price string
    """
    if currency == "USD":
        return f"${price:,.2f}"
    elif currency == "EUR":
        return f"€{price:,.2f}"
    elif currency == "GBP":
        return f"£{price:,.2f}"
    else:
        return f"{price:,.2f} {currency}"


def main():
    """Parse arguments and run the search."""
    parser = argparse.ArgumentParser(
        description="Search home decor marketplaces from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/run_search.py --amazon "velvet sofa" --etsy "macrame wall hanging"
  python scripts/run_search.py --wayfair "oak coffee table" --limit 5
  python scripts/run_search.py --health
        """,
    )

    for provider in Provider:
        parser.add_argument(
            f"--{provider.value}",
            action="append",
            default=[],
            metavar="QUERY",
            help=f"Query to run on {provider.value} (repeatable)",
        )

    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Maximum number of products to display (default: 10)",
    )

    parser.add_argument(
        "--max-results",
        type=int,
        default=settings.COMBINED_MAX_RESULTS,
        help=f"Size of the balanced result set (default: {settings.COMBINED_MAX_RESULTS})",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )

    parser.add_argument(
        "--health",
        action="store_true",
        help="Check connectivity of every provider and exit",
    )

    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Log level (default: {settings.LOG_LEVEL})",
    )

    args = parser.parse_args()
    configure_logging(level=args.log_level)

    if args.health:
        sys.exit(asyncio.run(run_health_check()))

    queries = {
        provider: getattr(args, provider.value)
        for provider in Provider
        if getattr(args, provider.value)
    }
    if not queries:
        parser.error("give at least one of --wayfair, --etsy or --amazon")

    sys.exit(asyncio.run(run_search(queries, args.limit, args.max_results, args.json)))


if __name__ == "__main__":
    main()
