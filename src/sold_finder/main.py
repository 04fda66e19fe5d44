"""Command line entry point for sold-finder."""

import argparse
import asyncio
import json
import logging
import sys

from sold_finder.config import Settings
from sold_finder.errors import MissingInputError
from sold_finder.logging import configure_logging, get_logger
from sold_finder.pipeline import PropertySearch, SearchOutcome

logger = get_logger(__name__)


def print_outcome(outcome: SearchOutcome) -> None:
    """Print a human-readable summary of a search."""
    print(f"\n{'=' * 60}")
    print(f"Sold properties in {outcome.postcode.full} ({len(outcome.properties)} found)")
    print(f"Sales search: {outcome.sales_mode.value}")
    for label, result in (("Sales", outcome.sales), ("EPC", outcome.certificates)):
        if result.error is not None:
            print(f"{label} unavailable: {result.error}")
    print(f"{'=' * 60}\n")

    for prop in outcome.properties:
        price = f"£{prop.last_sold_price:,}" if prop.last_sold_price else "price unknown"
        sold = prop.last_sold_date or "never recorded"
        print(f"{prop.address}, {prop.city} {prop.postcode}")
        print(f"  {prop.property_type or 'Unknown type'} | {price} | sold {sold}")
        print(f"  {prop.area_sqm} sqm | EPC {prop.energy_rating}")
        print()


async def run_search(settings: Settings, postcode: str, *, as_json: bool = False) -> int:
    """Run one search and print it. Returns the process exit code."""
    try:
        outcome = await PropertySearch.from_settings(settings).search(postcode)
    except MissingInputError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if as_json:
        print(json.dumps([p.model_dump(by_alias=True) for p in outcome.properties], indent=2))
    else:
        print_outcome(outcome)
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Sold Finder - UK sold prices enriched with EPC floor areas"
    )
    parser.add_argument(
        "postcode",
        nargs="?",
        help="Postcode to search (e.g. 'SW1A 1AA')",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON, in the same shape as the HTTP API",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Start the HTTP API server",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug-level logging for troubleshooting",
    )
    args = parser.parse_args()

    try:
        settings = Settings()
    except Exception as e:
        print(f"Error: Failed to load settings. {e}", file=sys.stderr)
        print("Optional: SOLD_FINDER_EPC_USER, SOLD_FINDER_EPC_KEY", file=sys.stderr)
        sys.exit(1)

    configure_logging(
        json_output=settings.log_json,
        level=logging.DEBUG if args.debug else logging.INFO,
    )

    if args.serve:
        import uvicorn

        from sold_finder.web.app import create_app

        logger.info("starting_sold_finder", host=settings.web_host, port=settings.web_port)
        uvicorn.run(create_app(settings), host=settings.web_host, port=settings.web_port)
        return

    if not args.postcode:
        parser.error("a postcode is required unless --serve is given")

    sys.exit(asyncio.run(run_search(settings, args.postcode, as_json=args.json)))


if __name__ == "__main__":
    main()
