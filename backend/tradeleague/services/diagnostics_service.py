"""Read-only view of a team's state on one date, for operational debugging."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from tradeleague.domain import DayScore, Holding, RosterValidation, validate_roster
from tradeleague.repositories import LeagueRepository

from .holdings_service import HoldingsService
from .scoring_service import ScoringService


@dataclass(slots=True)
class TeamSnapshot:
    team_id: str
    league_id: str
    snapshot_date: date
    holdings: list[Holding]
    validation: RosterValidation
    score: DayScore


class DiagnosticsService:
    def __init__(self, session: Session) -> None:
        self._leagues = LeagueRepository(session)
        self._holdings = HoldingsService(session)
        self._scoring = ScoringService(session)

    def snapshot(
        self, team_id: str, snapshot_date: date, *, force_recompute: bool = False
    ) -> TeamSnapshot:
        team = self._leagues.require_team(team_id)
        season = team.league.season
        instruments = self._leagues.instrument_map(season.season_id)
        holdings = self._holdings.holdings_at(team.team_id, snapshot_date, instruments)
        return TeamSnapshot(
            team_id=team.team_id,
            league_id=team.league_id,
            snapshot_date=snapshot_date,
            holdings=list(holdings.values()),
            validation=validate_roster(holdings.values(), season.budget),
            score=self._scoring.get_or_compute(
                team.team_id,
                snapshot_date,
                force_recompute=force_recompute,
                instruments=instruments,
            ),
        )


__all__ = ["DiagnosticsService", "TeamSnapshot"]
