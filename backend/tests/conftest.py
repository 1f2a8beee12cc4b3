from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tradeleague.db import Base
from tradeleague.domain import DraftDetails, TIER_COSTS
from tradeleague.models import (
    Instrument,
    League,
    LeagueStatus,
    MoveKind,
    OwnershipMode,
    PriceDaily,
    Season,
    Team,
)
from tradeleague.repositories import RosterRepository

SEASON_START = date(2025, 1, 6)
DRAFTED_AT = datetime(2025, 1, 5, 12, 0, tzinfo=timezone.utc)

# symbol -> tier
UNIVERSE: dict[str, int] = {
    "AAA.L": 1,
    "AAB.L": 1,
    "AAC.L": 1,
    "BBA.L": 2,
    "BBB.L": 2,
    "BBC.L": 2,
    "CCA.L": 3,
    "CCB.L": 3,
    "CCC.L": 3,
    "CCD.L": 3,
    "DDA.L": 4,
    "DDB.L": 4,
    "DDC.L": 4,
    "DDD.L": 4,
    "EEA.L": 5,
    "EEB.L": 5,
    "EEC.L": 5,
    "EED.L": 5,
    "EEE.L": 5,
}

# Both rosters cost 84 with tiers [1, 2, 3, 3, 4, 4, 5, 5].
ROSTER_A = ["AAA.L", "BBA.L", "CCA.L", "CCB.L", "DDA.L", "DDB.L", "EEA.L", "EEB.L"]
ROSTER_B = ["AAB.L", "BBB.L", "CCC.L", "CCD.L", "DDC.L", "DDD.L", "EEC.L", "EED.L"]


class GameFactory:
    """Build seasons, leagues, teams, drafts and prices directly in the test database."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def season(self, **overrides) -> Season:
        values = {
            "name": "Spring 2025",
            "start_date": SEASON_START,
            "end_date": date(2025, 6, 30),
            "trade_deadline_date": date(2025, 3, 31),
            "status": "ACTIVE",
        }
        values.update(overrides)
        season = Season(**values)
        self.session.add(season)
        for symbol, tier in UNIVERSE.items():
            self.session.add(
                Instrument(
                    season=season,
                    symbol=symbol,
                    name=f"{symbol} plc",
                    tier=tier,
                    tier_cost=TIER_COSTS[tier],
                )
            )
        self.session.flush()
        return season

    def league(
        self,
        season: Season,
        *,
        mode: OwnershipMode = OwnershipMode.UNIQUE,
        status: LeagueStatus = LeagueStatus.ACTIVE,
        name: str = "Test League",
    ) -> League:
        league = League(
            season=season,
            name=name,
            ownership_mode=mode.value,
            status=status.value,
            creator_id="creator",
        )
        self.session.add(league)
        self.session.flush()
        return league

    def team(self, league: League, name: str, *, faab_budget: int = 100) -> Team:
        team = Team(league=league, user_id=f"user-{name}", name=name, faab_budget=faab_budget)
        self.session.add(team)
        self.session.flush()
        return team

    def draft(self, team: Team, symbols: list[str], *, on: date = SEASON_START) -> None:
        repo = RosterRepository(self.session)
        for symbol in symbols:
            repo.append_move(
                team_id=team.team_id,
                kind=MoveKind.DRAFT,
                symbol=symbol,
                effective_date=on,
                details=DraftDetails(),
                created_at=DRAFTED_AT,
            )

    def prices(self, price_date: date, closes: dict[str, str | Decimal]) -> None:
        for symbol, close in closes.items():
            self.session.add(
                PriceDaily(symbol=symbol, price_date=price_date, adj_close=Decimal(str(close)))
            )
        self.session.flush()

    def flat_prices(self, price_date: date, close: str = "100") -> None:
        self.prices(price_date, {symbol: close for symbol in UNIVERSE})


@dataclass(slots=True)
class LeagueSetup:
    season: Season
    league: League
    team_a: Team
    team_b: Team


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    factory = sessionmaker(bind=engine, autoflush=True, future=True)
    session = factory()
    yield session
    session.close()


@pytest.fixture
def factory(session) -> GameFactory:
    return GameFactory(session)


def _drafted_league(factory: GameFactory, mode: OwnershipMode, **season_overrides) -> LeagueSetup:
    season = factory.season(**season_overrides)
    league = factory.league(season, mode=mode)
    team_a = factory.team(league, "Alpha")
    team_b = factory.team(league, "Bravo")
    factory.draft(team_a, ROSTER_A)
    factory.draft(team_b, ROSTER_B)
    return LeagueSetup(season=season, league=league, team_a=team_a, team_b=team_b)


@pytest.fixture
def unique_league(factory) -> LeagueSetup:
    return _drafted_league(factory, OwnershipMode.UNIQUE, max_swaps_per_day=3)


@pytest.fixture
def duplicate_league(factory) -> LeagueSetup:
    return _drafted_league(factory, OwnershipMode.DUPLICATES)

