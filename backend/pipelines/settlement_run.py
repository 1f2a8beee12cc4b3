from __future__ import annotations

import argparse
import json
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, ContextManager, Iterator
from uuid import uuid4

from loguru import logger
from sqlalchemy.orm import Session

from pricefeed.client import QuoteClient
from pricefeed.service import PriceSyncService
from tradeleague.core.config import Settings, get_settings
from tradeleague.db import SessionLocal, init_db, session_scope
from tradeleague.models import LeagueStatus, OwnershipMode
from tradeleague.repositories import LeagueRepository
from tradeleague.services import ScoringService, TradeService, TradingCalendarService, WaiverService

from .context import SettlementContext


@dataclass(slots=True)
class LeagueSettlement:
    league_id: str
    claims_won: int = 0
    claims_lost: int = 0
    trades_expired: int = 0
    teams_scored: int = 0
    error: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "league_id": self.league_id,
            "claims_won": self.claims_won,
            "claims_lost": self.claims_lost,
            "trades_expired": self.trades_expired,
            "teams_scored": self.teams_scored,
            "error": self.error,
        }


@dataclass(slots=True)
class SettlementSummary:
    run_id: str
    run_date: date
    as_of: date
    claims_effective_date: date
    dry_run: bool
    prices_fetched: int = 0
    prices_skipped: int = 0
    price_failures: list[dict[str, str]] = field(default_factory=list)
    leagues: list[LeagueSettlement] = field(default_factory=list)

    @property
    def failed_leagues(self) -> int:
        return sum(1 for league in self.leagues if league.error)

    def to_dict(self) -> dict[str, object]:
        return {
            "run_id": self.run_id,
            "run_date": self.run_date.isoformat(),
            "as_of": self.as_of.isoformat(),
            "claims_effective_date": self.claims_effective_date.isoformat(),
            "dry_run": self.dry_run,
            "prices_fetched": self.prices_fetched,
            "prices_skipped": self.prices_skipped,
            "price_failures": self.price_failures,
            "leagues": [league.to_dict() for league in self.leagues],
        }


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the end-of-day settlement pipeline")
    parser.add_argument(
        "--as-of",
        type=str,
        default=None,
        help="Trading date being settled in YYYY-MM-DD (defaults to today, UTC)",
    )
    parser.add_argument(
        "--skip-prices",
        action="store_true",
        help="Do not refresh the price ledger before scoring",
    )
    parser.add_argument(
        "--league",
        action="append",
        default=None,
        help="Restrict settlement to league_id (repeatable)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Execute without persisting any database changes",
    )
    parser.add_argument(
        "--summary-path",
        type=Path,
        default=None,
        help="Write JSON summary to the specified path",
    )
    return parser.parse_args()


@contextmanager
def _rollback_scope() -> Iterator[Session]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _settle_league(
    context: SettlementContext, session: Session, league_id: str
) -> LeagueSettlement:
    outcome = LeagueSettlement(league_id=league_id)
    league = LeagueRepository(session).require_league(league_id)

    if league.ownership_mode == OwnershipMode.UNIQUE.value:
        resolution = WaiverService(session).resolve_claims(
            league.league_id, context.claims_effective_date
        )
        outcome.claims_won = resolution.won
        outcome.claims_lost = resolution.lost
        outcome.trades_expired = TradeService(session).expire_pending(
            league.league_id, context.as_of
        )

    hydrated = ScoringService(session).hydrate_league(league.league_id, context.as_of)
    outcome.teams_scored = len(hydrated)
    return outcome


def run_settlement(
    args: argparse.Namespace,
    settings: Settings,
    *,
    now: datetime | None = None,
    client_factory: Callable[[], QuoteClient] | None = None,
    session_factory: Callable[[], ContextManager[Session]] | None = None,
    init_db_fn: Callable[[], None] = init_db,
) -> SettlementSummary:
    if session_factory is None:
        init_db_fn()
        session_factory = _rollback_scope if args.dry_run else session_scope
    client_factory = client_factory or QuoteClient

    now = now or datetime.now(timezone.utc)
    run_date = now.date()
    as_of = date.fromisoformat(args.as_of) if args.as_of else run_date
    with session_factory() as session:
        claims_effective_date = TradingCalendarService(session).next_trading_day(
            as_of + timedelta(days=1)
        )

    context = SettlementContext(
        run_id=str(uuid4()),
        run_date=run_date,
        as_of=as_of,
        claims_effective_date=claims_effective_date,
        settings=settings,
        dry_run=bool(args.dry_run),
    )
    summary = SettlementSummary(
        run_id=context.run_id,
        run_date=run_date,
        as_of=as_of,
        claims_effective_date=claims_effective_date,
        dry_run=context.dry_run,
    )
    logger.info(
        "Settlement run {} for {} (claims effective {}, dry_run={})",
        context.run_id,
        as_of,
        claims_effective_date,
        context.dry_run,
    )

    if not args.skip_prices:
        with client_factory() as client:
            with session_factory() as session:
                report = PriceSyncService(session, client).ensure_fresh_through(as_of)
        summary.prices_fetched = report.fetched
        summary.prices_skipped = report.skipped
        summary.price_failures = [
            {"symbol": failure.symbol, "error": failure.error} for failure in report.failed
        ]

    with session_factory() as session:
        repo = LeagueRepository(session)
        league_ids = [league.league_id for league in repo.leagues(status=LeagueStatus.ACTIVE.value)]
    if args.league:
        requested = set(args.league)
        league_ids = [league_id for league_id in league_ids if league_id in requested]

    for league_id in league_ids:
        try:
            with session_factory() as session:
                outcome = _settle_league(context, session, league_id)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Settlement failed for league {}", league_id)
            outcome = LeagueSettlement(league_id=league_id, error=str(exc))
        summary.leagues.append(outcome)

    logger.info(
        "Settlement run {} completed. leagues={}, failed={}",
        context.run_id,
        len(summary.leagues),
        summary.failed_leagues,
    )

    if args.summary_path:
        _write_summary(args.summary_path, summary)
        logger.info("Wrote settlement summary to {}", args.summary_path)

    return summary


def _write_summary(path: Path, summary: SettlementSummary) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(summary.to_dict(), indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )


def main() -> None:
    args = _parse_args()
    run_settlement(args, get_settings())


if __name__ == "__main__":
    main()
