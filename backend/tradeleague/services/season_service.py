"""Season setup: market-cap tiering of the instrument universe and activation."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Sequence

from loguru import logger
from sqlalchemy.orm import Session

from tradeleague.core.errors import RuleViolation
from tradeleague.domain import empty_tier_counts, tier_cost, tier_for_index
from tradeleague.models import Instrument, Season, SeasonStatus
from tradeleague.repositories import LeagueRepository

from .draft_service import normalize_symbol

DEFAULT_SYMBOL_LIMIT = 200
MIN_SYMBOL_LIMIT = 5
MAX_SYMBOL_LIMIT = 500


@dataclass(frozen=True, slots=True)
class InstrumentCandidate:
    symbol: str
    name: str
    market_cap: Decimal | None
    exchange: str = "LSE"


@dataclass(slots=True)
class InstrumentPopulation:
    season_id: str
    requested_symbols: int
    inserted_instruments: int
    tier_counts: dict[int, int] = field(default_factory=empty_tier_counts)


def bounded_symbol_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_SYMBOL_LIMIT
    return max(MIN_SYMBOL_LIMIT, min(int(limit), MAX_SYMBOL_LIMIT))


class SeasonService:
    """Build a season's tiered instrument set and open it for play.

    Candidates are ranked by market cap, largest first, and cut into five
    equal buckets: the top fifth is tier 1 (most expensive), the bottom fifth
    tier 5. Tiers are frozen once the season leaves setup.
    """

    def __init__(self, session: Session) -> None:
        self._leagues = LeagueRepository(session)

    def populate_instruments(
        self,
        season_id: str,
        candidates: Sequence[InstrumentCandidate],
        *,
        symbol_limit: int | None = None,
    ) -> InstrumentPopulation:
        season = self._leagues.require_season(season_id)
        if season.status != SeasonStatus.SETUP.value:
            raise RuleViolation("Instruments can only be rebuilt while the season is in setup")

        seen: dict[str, InstrumentCandidate] = {}
        for candidate in candidates[: bounded_symbol_limit(symbol_limit)]:
            symbol = normalize_symbol(candidate.symbol)
            if not symbol or symbol in seen:
                continue
            if candidate.market_cap is None or candidate.market_cap <= 0:
                logger.debug("Skipping {}: no usable market cap", symbol)
                continue
            seen[symbol] = candidate

        ranked = sorted(seen.items(), key=lambda item: (-item[1].market_cap, item[0]))
        result = InstrumentPopulation(
            season_id=season.season_id,
            requested_symbols=len(candidates),
            inserted_instruments=len(ranked),
        )
        rows: list[Instrument] = []
        for index, (symbol, candidate) in enumerate(ranked):
            tier = tier_for_index(index, len(ranked))
            result.tier_counts[tier] += 1
            rows.append(
                Instrument(
                    symbol=symbol,
                    name=(candidate.name or "").strip() or symbol,
                    tier=tier,
                    tier_cost=tier_cost(tier),
                    market_cap=candidate.market_cap,
                    exchange=candidate.exchange,
                )
            )

        self._leagues.replace_instruments(season, rows)
        logger.info(
            "Season {} instruments rebuilt: {} of {} candidates, tiers {}",
            season.season_id,
            result.inserted_instruments,
            result.requested_symbols,
            result.tier_counts,
        )
        return result

    def activate_season(self, season_id: str) -> Season:
        season = self._leagues.require_season(season_id)
        if not self._leagues.instruments_for_season(season.season_id):
            raise RuleViolation("Cannot activate a season with no instruments")
        if season.status != SeasonStatus.SETUP.value:
            raise RuleViolation(f"Season is {season.status.lower()}, not in setup")
        season.status = SeasonStatus.ACTIVE.value
        logger.info("Season {} activated", season.season_id)
        return season

    def season_instruments(self, season_id: str) -> list[Instrument]:
        season = self._leagues.require_season(season_id)
        return self._leagues.instruments_for_season(season.season_id)


__all__ = [
    "DEFAULT_SYMBOL_LIMIT",
    "InstrumentCandidate",
    "InstrumentPopulation",
    "SeasonService",
    "bounded_symbol_limit",
]
