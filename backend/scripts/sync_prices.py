import argparse
from datetime import date

from loguru import logger

from pricefeed.service import sync_prices
from tradeleague.db import init_db


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fetch end-of-day prices into the price ledger")
    parser.add_argument(
        "--through",
        type=date.fromisoformat,
        default=None,
        help="Last trading date to fetch (YYYY-MM-DD); defaults to today",
    )
    parser.add_argument(
        "--symbol",
        action="append",
        default=None,
        help="Restrict the sync to this symbol (repeatable); defaults to all tracked symbols",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    init_db()

    through = args.through or date.today()
    report = sync_prices(through, args.symbol)
    for failure in report.failed:
        logger.warning("Failed to refresh {}: {}", failure.symbol, failure.error)
    logger.info(
        "Synced prices through {}: {} fetched, {} skipped, {} failed",
        through,
        report.fetched,
        report.skipped,
        len(report.failed),
    )


if __name__ == "__main__":
    main()
