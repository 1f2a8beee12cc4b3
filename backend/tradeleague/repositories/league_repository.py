"""Season, league, team and instrument lookups."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from tradeleague.core.errors import NotFoundError
from tradeleague.domain import InstrumentRef
from tradeleague.models import Instrument, League, Season, SeasonStatus, Team


class LeagueRepository:
    """Seasons, instruments, leagues and teams: the tables settlement builds on."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Lookups that raise when the row is missing

    def require_season(self, season_id: str) -> Season:
        season = self._session.get(Season, season_id)
        if season is None:
            raise NotFoundError(f"Season {season_id} not found")
        return season

    def require_league(self, league_id: str) -> League:
        league = self._session.get(League, league_id)
        if league is None:
            raise NotFoundError(f"League {league_id} not found")
        return league

    def require_team(self, team_id: str) -> Team:
        team = self._session.get(Team, team_id)
        if team is None:
            raise NotFoundError(f"Team {team_id} not found")
        return team

    # ------------------------------------------------------------------
    # Mutations

    def add_league(self, league: League) -> League:
        self._session.add(league)
        self._session.flush()
        return league

    def add_team(self, team: Team) -> Team:
        self._session.add(team)
        self._session.flush()
        return team

    def replace_instruments(self, season: Season, instruments: list[Instrument]) -> None:
        """Swap the season's whole instrument set; the old rows are deleted as orphans."""

        season.instruments.clear()
        self._session.flush()
        season.instruments.extend(instruments)
        self._session.flush()

    # ------------------------------------------------------------------
    # Queries

    def team_for_user(self, league_id: str, user_id: str) -> Team | None:
        stmt = select(Team).where(Team.league_id == league_id, Team.user_id == user_id)
        return self._session.scalars(stmt).first()

    def teams_for_league(self, league_id: str) -> list[Team]:
        stmt = select(Team).where(Team.league_id == league_id).order_by(Team.name, Team.team_id)
        return list(self._session.scalars(stmt))

    def instruments_for_season(self, season_id: str) -> list[Instrument]:
        stmt = (
            select(Instrument)
            .where(Instrument.season_id == season_id)
            .order_by(Instrument.tier, Instrument.symbol)
        )
        return list(self._session.scalars(stmt))

    def instrument_map(self, season_id: str) -> dict[str, InstrumentRef]:
        return {
            row.symbol: InstrumentRef(symbol=row.symbol, tier=row.tier, tier_cost=row.tier_cost)
            for row in self.instruments_for_season(season_id)
        }

    def tracked_symbols(self) -> list[str]:
        """Distinct symbols of every season that is not yet completed."""

        stmt = (
            select(Instrument.symbol)
            .join(Season, Season.season_id == Instrument.season_id)
            .where(Season.status != SeasonStatus.COMPLETED.value)
            .distinct()
            .order_by(Instrument.symbol)
        )
        return list(self._session.scalars(stmt))

    def leagues(self, *, status: str | None = None) -> list[League]:
        stmt = select(League).order_by(League.created_at, League.league_id)
        if status:
            stmt = stmt.where(League.status == status)
        return list(self._session.scalars(stmt))


__all__ = ["LeagueRepository"]
