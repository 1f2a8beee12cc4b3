import argparse

from loguru import logger

from pricefeed.service import populate_season
from tradeleague.db import init_db


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Rebuild a season's instrument set, tiered by market cap"
    )
    parser.add_argument("season_id", help="Season to populate; it must still be in setup")
    parser.add_argument(
        "--symbols",
        required=True,
        help="Comma-separated candidate symbols, e.g. 'AZN.L,SHEL.L,HSBA.L'",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of candidates to look up (clamped to 5-500, default 200)",
    )
    parser.add_argument(
        "--activate",
        action="store_true",
        help="Activate the season once its instruments are written",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    init_db()

    symbols = [symbol for symbol in args.symbols.split(",") if symbol.strip()]
    result = populate_season(
        args.season_id, symbols, symbol_limit=args.limit, activate=args.activate
    )
    logger.info(
        "Season {}: {} instruments from {} symbols, tiers {}",
        result.season_id,
        result.inserted_instruments,
        result.requested_symbols,
        result.tier_counts,
    )


if __name__ == "__main__":
    main()
