from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Sequence

import httpx
from loguru import logger
from sqlalchemy.orm import Session

from tradeleague.core.config import settings
from tradeleague.db import session_scope
from tradeleague.models import utcnow
from tradeleague.repositories import LeagueRepository, PriceRepository
from tradeleague.services.season_service import (
    InstrumentCandidate,
    InstrumentPopulation,
    SeasonService,
    bounded_symbol_limit,
)

from .client import QuoteClient


@dataclass(slots=True)
class SymbolFailure:
    symbol: str
    error: str


@dataclass(slots=True)
class PriceSyncReport:
    through: date
    attempted: int = 0
    fetched: int = 0
    skipped: int = 0
    failed: list[SymbolFailure] = field(default_factory=list)


class PriceSyncService:
    """Keep ``price_daily`` current through a date, one symbol at a time.

    A symbol that fails to fetch is recorded on the report and the sync moves
    on; scoring later treats the gap as missing data.
    """

    def __init__(
        self,
        session: Session,
        client: QuoteClient,
        *,
        delay_seconds: float | None = None,
    ) -> None:
        self._session = session
        self._prices = PriceRepository(session)
        self._leagues = LeagueRepository(session)
        self._client = client
        self._delay = settings.price_fetch_delay_seconds if delay_seconds is None else delay_seconds

    def ensure_fresh_through(
        self, through: date, symbols: Iterable[str] | None = None
    ) -> PriceSyncReport:
        wanted = sorted(set(symbols)) if symbols is not None else self._leagues.tracked_symbols()
        report = PriceSyncReport(through=through)

        for index, symbol in enumerate(wanted):
            if index and self._delay:
                time.sleep(self._delay)
            report.attempted += 1

            latest = self._prices.latest_price_date(symbol)
            if latest is not None and latest >= through:
                report.skipped += 1
                continue
            start = (
                latest + timedelta(days=1)
                if latest is not None
                else through - timedelta(days=settings.price_lookback_days)
            )

            try:
                bars = self._client.fetch_daily_bars(symbol, start, through)
            except (httpx.HTTPError, ValueError) as exc:
                logger.warning("Price fetch failed for {}: {}", symbol, exc)
                report.failed.append(SymbolFailure(symbol=symbol, error=str(exc)))
                continue

            if not bars:
                report.skipped += 1
                continue

            fetched_at = utcnow()
            for bar in bars:
                self._prices.upsert_close(
                    bar.symbol, bar.price_date, bar.adj_close, fetched_at=fetched_at
                )
            self._session.flush()
            report.fetched += 1

        logger.info(
            "Price sync through {}: attempted={} fetched={} skipped={} failed={}",
            through,
            report.attempted,
            report.fetched,
            report.skipped,
            len(report.failed),
        )
        return report


def sync_prices(through: date, symbols: Iterable[str] | None = None) -> PriceSyncReport:
    with QuoteClient() as client:
        with session_scope() as session:
            return PriceSyncService(session, client).ensure_fresh_through(through, symbols)


def fetch_instrument_candidates(
    client: QuoteClient,
    symbols: Sequence[str],
    *,
    symbol_limit: int | None = None,
    delay_seconds: float | None = None,
) -> list[InstrumentCandidate]:
    """Look up name and market cap for each symbol.

    A symbol whose lookup fails is still returned, without a market cap, so
    that season population counts it as requested and then leaves it out.
    """

    delay = settings.price_fetch_delay_seconds if delay_seconds is None else delay_seconds
    wanted = [symbol.strip().upper() for symbol in symbols if symbol and symbol.strip()]
    candidates: list[InstrumentCandidate] = []
    for index, symbol in enumerate(wanted[: bounded_symbol_limit(symbol_limit)]):
        if index and delay:
            time.sleep(delay)
        try:
            profile = client.fetch_profile(symbol)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Profile fetch failed for {}: {}", symbol, exc)
            profile = None
        if profile is None:
            candidates.append(InstrumentCandidate(symbol=symbol, name=symbol, market_cap=None))
            continue
        candidates.append(
            InstrumentCandidate(symbol=symbol, name=profile.name, market_cap=profile.market_cap)
        )
    return candidates


def populate_season(
    season_id: str,
    symbols: Sequence[str],
    *,
    symbol_limit: int | None = None,
    activate: bool = False,
) -> InstrumentPopulation:
    with QuoteClient() as client:
        candidates = fetch_instrument_candidates(client, symbols, symbol_limit=symbol_limit)
    with session_scope() as session:
        service = SeasonService(session)
        result = service.populate_instruments(season_id, candidates, symbol_limit=symbol_limit)
        if activate:
            service.activate_season(season_id)
        return result
