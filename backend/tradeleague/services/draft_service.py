"""Initial portfolio selection: validation and DRAFT move submission."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from loguru import logger
from sqlalchemy.orm import Session

from tradeleague.core.errors import RuleViolation
from tradeleague.domain import (
    DraftDetails,
    Holding,
    ROSTER_SIZE,
    RosterValidation,
    validate_roster,
)
from tradeleague.models import League, LeagueStatus, MoveKind, OwnershipMode, Season, Team, utcnow
from tradeleague.repositories import LeagueRepository, RosterRepository

from .holdings_service import HoldingsService


@dataclass(slots=True)
class PortfolioCheck:
    is_valid: bool
    errors: list[str]
    symbols: list[str]
    validation: RosterValidation | None = None


@dataclass(slots=True)
class DraftResult:
    team_id: str
    symbols: list[str]
    effective_date: date
    league_status: str


@dataclass(slots=True)
class InstrumentAvailability:
    symbol: str
    name: str
    tier: int
    tier_cost: int
    is_available: bool
    owner_team_id: str | None = None


def normalize_symbol(value: str) -> str:
    return (value or "").strip().upper()


class DraftService:
    def __init__(self, session: Session) -> None:
        self._leagues = LeagueRepository(session)
        self._moves = RosterRepository(session)
        self._holdings = HoldingsService(session)

    def _owners(
        self, league: League, exclude_team_id: str | None, as_of: date
    ) -> dict[str, str]:
        ownership = self._holdings.league_ownership(league, as_of)
        return {
            symbol: owner
            for symbol, owner in ownership.owner_by_symbol.items()
            if owner != exclude_team_id
        }

    def validate_portfolio(
        self,
        symbols: list[str],
        season: Season,
        *,
        league: League | None = None,
        team_id: str | None = None,
    ) -> PortfolioCheck:
        normalized = [normalize_symbol(symbol) for symbol in symbols]
        errors: list[str] = []

        if len(normalized) != ROSTER_SIZE:
            errors.append(f"Portfolio must contain exactly {ROSTER_SIZE} symbols")
        if len(set(normalized)) != len(normalized):
            errors.append("Portfolio contains duplicate symbols")

        instruments = self._leagues.instrument_map(season.season_id)
        unknown = sorted({symbol for symbol in normalized if symbol not in instruments})
        if unknown:
            errors.append(f"Unknown symbols for this season: {', '.join(unknown)}")

        if league is not None and league.ownership_mode == OwnershipMode.UNIQUE.value:
            taken = self._owners(league, team_id, season.start_date)
            clashes = sorted({symbol for symbol in normalized if symbol in taken})
            if clashes:
                errors.append(f"Already drafted by another team: {', '.join(clashes)}")

        holdings = [
            Holding(
                symbol=symbol,
                added_date=season.start_date,
                tier=instruments[symbol].tier,
                tier_cost=instruments[symbol].tier_cost,
            )
            for symbol in dict.fromkeys(normalized)
            if symbol in instruments
        ]
        validation = validate_roster(holdings, season.budget)
        for message in validation.errors:
            if message not in errors:
                errors.append(message)

        return PortfolioCheck(
            is_valid=not errors,
            errors=errors,
            symbols=normalized,
            validation=validation,
        )

    def submit_portfolio(
        self, team_id: str, symbols: list[str], *, submitted_at: datetime | None = None
    ) -> DraftResult:
        team = self._leagues.require_team(team_id)
        league = team.league
        season = league.season

        if league.status not in (LeagueStatus.DRAFT_PENDING.value, LeagueStatus.DRAFTING.value):
            raise RuleViolation("League is not accepting draft portfolios")
        if self._moves.has_drafted(team.team_id):
            raise RuleViolation("Team has already submitted a draft portfolio")

        check = self.validate_portfolio(symbols, season, league=league, team_id=team.team_id)
        if not check.is_valid:
            raise RuleViolation("; ".join(check.errors))

        created_at = submitted_at or utcnow()
        for symbol in check.symbols:
            self._moves.append_move(
                team_id=team.team_id,
                kind=MoveKind.DRAFT,
                symbol=symbol,
                effective_date=season.start_date,
                details=DraftDetails(),
                created_at=created_at,
            )

        league.status = self._league_status_after_draft(league)
        logger.info(
            "Team {} drafted {} symbols; league {} is now {}",
            team.team_id,
            len(check.symbols),
            league.league_id,
            league.status,
        )
        return DraftResult(
            team_id=team.team_id,
            symbols=check.symbols,
            effective_date=season.start_date,
            league_status=league.status,
        )

    def _league_status_after_draft(self, league: League) -> str:
        teams: list[Team] = self._leagues.teams_for_league(league.league_id)
        complete = all(
            self._moves.count_kind(team.team_id, MoveKind.DRAFT) >= ROSTER_SIZE for team in teams
        )
        return LeagueStatus.ACTIVE.value if complete else LeagueStatus.DRAFTING.value

    def available_instruments(
        self, league_id: str, as_of: date | None = None
    ) -> list[InstrumentAvailability]:
        """List season instruments; in unique leagues owned symbols are unavailable."""

        league = self._leagues.require_league(league_id)
        unique = league.ownership_mode == OwnershipMode.UNIQUE.value
        owners = self._owners(league, None, as_of or date.max) if unique else {}
        return [
            InstrumentAvailability(
                symbol=row.symbol,
                name=row.name,
                tier=row.tier,
                tier_cost=row.tier_cost,
                is_available=row.symbol not in owners,
                owner_team_id=owners.get(row.symbol),
            )
            for row in self._leagues.instruments_for_season(league.season_id)
        ]


__all__ = [
    "DraftResult",
    "DraftService",
    "InstrumentAvailability",
    "PortfolioCheck",
    "normalize_symbol",
]
