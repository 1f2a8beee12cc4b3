import argparse
from datetime import date

from loguru import logger

from tradeleague.db import init_db, session_scope
from tradeleague.services import TradingCalendarService


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Populate the persisted trading calendar")
    parser.add_argument(
        "years",
        nargs="*",
        type=int,
        help="Calendar years to (re)write; defaults to the current and next year",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    init_db()

    current = date.today().year
    years = args.years or [current, current + 1]
    with session_scope() as session:
        service = TradingCalendarService(session)
        for year in years:
            result = service.populate_year(year)
            logger.info(
                "Calendar {}: {} days, {} trading days",
                result.year,
                result.total_days,
                result.trading_days,
            )


if __name__ == "__main__":
    main()
