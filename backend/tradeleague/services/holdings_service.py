"""Point-in-time holdings reconstructed from the roster move log."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from sqlalchemy.orm import Session

from tradeleague.domain import (
    Holding,
    InstrumentRef,
    build_holdings,
    replay_moves,
    replay_ownership,
)
from tradeleague.models import League, Team
from tradeleague.repositories import LeagueRepository, RosterRepository


@dataclass(slots=True)
class LeagueHoldings:
    holdings_by_team: dict[str, dict[str, Holding]]
    owner_by_symbol: dict[str, str]


class HoldingsService:
    def __init__(self, session: Session) -> None:
        self._leagues = LeagueRepository(session)
        self._moves = RosterRepository(session)

    def instruments_for_team(self, team: Team) -> dict[str, InstrumentRef]:
        return self._leagues.instrument_map(team.league.season_id)

    def holdings_at(
        self,
        team_id: str,
        as_of: date,
        instruments: dict[str, InstrumentRef] | None = None,
    ) -> dict[str, Holding]:
        """Return ``symbol -> Holding`` for ``team_id`` as of ``as_of``.

        Raises ``NotFoundError`` for an unknown team. Symbols outside the
        season's instrument set are dropped.
        """

        team = self._leagues.require_team(team_id)
        if instruments is None:
            instruments = self.instruments_for_team(team)
        acquired = replay_moves(self._moves.moves_for_team(team.team_id, as_of))
        return build_holdings(acquired, instruments)

    def league_ownership(
        self,
        league: League,
        as_of: date,
        instruments: dict[str, InstrumentRef] | None = None,
    ) -> LeagueHoldings:
        if instruments is None:
            instruments = self._leagues.instrument_map(league.season_id)
        team_ids = [team.team_id for team in self._leagues.teams_for_league(league.league_id)]
        ownership = replay_ownership(self._moves.moves_for_league(league.league_id, as_of), team_ids)
        return LeagueHoldings(
            holdings_by_team={
                team_id: build_holdings(acquired, instruments)
                for team_id, acquired in ownership.holdings_by_team.items()
            },
            owner_by_symbol=dict(ownership.owner_by_symbol),
        )


__all__ = ["HoldingsService", "LeagueHoldings"]
