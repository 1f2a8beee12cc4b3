"""Daily scoring and the derived score cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

from loguru import logger
from sqlalchemy.orm import Session

from tradeleague.domain import (
    DayScore,
    InstrumentRef,
    ScoringConfig,
    compute_day_score,
    non_trading_score,
    round_points,
)
from tradeleague.models import Season, Team, utcnow
from tradeleague.repositories import LeagueRepository, PriceRepository, ScoreRepository

from .calendar_service import TradingCalendarService
from .holdings_service import HoldingsService


@dataclass(slots=True)
class RangeScore:
    team_id: str
    start: date
    end: date
    total_points: Decimal
    days: list[DayScore] = field(default_factory=list)


@dataclass(slots=True)
class StandingRow:
    rank: int
    team_id: str
    team_name: str
    user_id: str
    total_points: Decimal
    day_points: Decimal


@dataclass(slots=True)
class ScoreHistoryPoint:
    score_date: date
    points: Decimal
    cumulative_points: Decimal


def scoring_config_for(season: Season) -> ScoringConfig:
    return ScoringConfig(
        multiplier=Decimal(str(season.scoring_multiplier)),
        first_day_penalty=Decimal(str(season.first_day_penalty)),
    )


class ScoringService:
    """Compute day scores and keep the ``team_day_scores`` cache consistent.

    Every cached row can be deleted and rebuilt from roster moves and prices;
    the cache never holds state that the log cannot reproduce.
    """

    def __init__(self, session: Session) -> None:
        self._leagues = LeagueRepository(session)
        self._prices = PriceRepository(session)
        self._scores = ScoreRepository(session)
        self._calendar = TradingCalendarService(session)
        self._holdings = HoldingsService(session)

    # ------------------------------------------------------------------
    # Engine

    def day_score(
        self,
        team_id: str,
        score_date: date,
        instruments: dict[str, InstrumentRef] | None = None,
    ) -> DayScore:
        team = self._leagues.require_team(team_id)
        if not self._calendar.is_trading_day(score_date):
            return non_trading_score(team.team_id, score_date)

        season = team.league.season
        holdings = self._holdings.holdings_at(team.team_id, score_date, instruments)
        previous_day = self._calendar.previous_trading_day(score_date)
        score = compute_day_score(
            team.team_id,
            score_date,
            holdings,
            self._prices.closes_on(holdings, score_date),
            self._prices.closes_on(holdings, previous_day),
            scoring_config_for(season),
        )
        if score.missing_symbols:
            logger.warning(
                "Missing prices for team {} on {}: {}",
                team.team_id,
                score_date,
                ", ".join(score.missing_symbols),
            )
        return score

    # ------------------------------------------------------------------
    # Cache

    def get_or_compute(
        self,
        team_id: str,
        score_date: date,
        *,
        force_recompute: bool = False,
        instruments: dict[str, InstrumentRef] | None = None,
    ) -> DayScore:
        if not force_recompute:
            cached = self._scores.get(team_id, score_date)
            if cached is not None:
                return cached

        score = self.day_score(team_id, score_date, instruments)
        score.computed_at = utcnow()
        self._scores.upsert(score)
        return score

    def invalidate(
        self,
        *,
        team_id: str | None = None,
        from_date: date | None = None,
        to_date: date | None = None,
    ) -> int:
        removed = self._scores.delete_range(team_id=team_id, from_date=from_date, to_date=to_date)
        logger.info(
            "Invalidated {} cached scores (team={}, from={}, to={})",
            removed,
            team_id or "*",
            from_date or "-",
            to_date or "-",
        )
        return removed

    def range_score(
        self,
        team_id: str,
        start: date,
        end: date,
        *,
        force_recompute: bool = False,
    ) -> RangeScore:
        """Accumulate day scores over trading days in ``[start, end]`` that have prices."""

        team = self._leagues.require_team(team_id)
        instruments = self._leagues.instrument_map(team.league.season_id)
        result = RangeScore(team_id=team.team_id, start=start, end=end, total_points=Decimal("0"))
        if end < start:
            return result

        for score_date in self._prices.price_dates_between(start, end):
            if not self._calendar.is_trading_day(score_date):
                continue
            score = self.get_or_compute(
                team.team_id,
                score_date,
                force_recompute=force_recompute,
                instruments=instruments,
            )
            result.days.append(score)
            result.total_points += score.points
        result.total_points = round_points(result.total_points)
        return result

    def hydrate_league(
        self, league_id: str, up_to: date, *, force_recompute: bool = False
    ) -> dict[str, RangeScore]:
        league = self._leagues.require_league(league_id)
        start = league.season.start_date
        results = {
            team.team_id: self.range_score(
                team.team_id, start, up_to, force_recompute=force_recompute
            )
            for team in self._leagues.teams_for_league(league.league_id)
        }
        logger.info("Hydrated scores for league {} through {}", league.league_id, up_to)
        return results

    # ------------------------------------------------------------------
    # Standings

    def cumulative_points(self, league_id: str, as_of: date) -> dict[str, Decimal]:
        teams = self._leagues.teams_for_league(league_id)
        return self._scores.totals_through([team.team_id for team in teams], as_of)

    def league_standings(self, league_id: str, up_to: date) -> list[StandingRow]:
        league = self._leagues.require_league(league_id)
        teams: list[Team] = self._leagues.teams_for_league(league.league_id)
        ids = [team.team_id for team in teams]
        totals = self._scores.totals_through(ids, up_to)
        day_points = self._scores.points_on(ids, up_to)

        ordered = sorted(teams, key=lambda team: (-totals[team.team_id], team.name))
        return [
            StandingRow(
                rank=index,
                team_id=team.team_id,
                team_name=team.name,
                user_id=team.user_id,
                total_points=totals[team.team_id],
                day_points=day_points.get(team.team_id, Decimal("0")),
            )
            for index, team in enumerate(ordered, start=1)
        ]

    def score_history(self, team_id: str, up_to: date, days: int = 30) -> list[ScoreHistoryPoint]:
        team = self._leagues.require_team(team_id)
        window = max(1, days)
        start = up_to - timedelta(days=window - 1)
        running = self._scores.totals_through([team.team_id], start - timedelta(days=1))[
            team.team_id
        ]
        history: list[ScoreHistoryPoint] = []
        for score in self._scores.history(team.team_id, start, up_to):
            running = round_points(running + score.points)
            history.append(
                ScoreHistoryPoint(
                    score_date=score.score_date,
                    points=score.points,
                    cumulative_points=running,
                )
            )
        return history


__all__ = [
    "RangeScore",
    "ScoreHistoryPoint",
    "ScoringService",
    "StandingRow",
    "scoring_config_for",
]
