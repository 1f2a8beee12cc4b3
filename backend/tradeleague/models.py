from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class SeasonStatus(str, Enum):
    SETUP = "SETUP"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class OwnershipMode(str, Enum):
    UNIQUE = "UNIQUE"
    DUPLICATES = "DUPLICATES"


class LeagueStatus(str, Enum):
    DRAFT_PENDING = "DRAFT_PENDING"
    DRAFTING = "DRAFTING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"


class MoveKind(str, Enum):
    DRAFT = "DRAFT"
    ADD = "ADD"
    DROP = "DROP"
    TRADE = "TRADE"


class WaiverClaimStatus(str, Enum):
    PENDING = "PENDING"
    WON = "WON"
    LOST = "LOST"
    CANCELLED = "CANCELLED"


class TradeProposalStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid4().hex


class Season(Base):
    __tablename__ = "seasons"

    season_id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    market: Mapped[str] = mapped_column(String, nullable=False, default="LSE")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    trade_deadline_date: Mapped[date] = mapped_column(Date, nullable=False)
    budget: Mapped[int] = mapped_column(Integer, nullable=False, default=100)
    scoring_multiplier: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    first_day_penalty: Mapped[Decimal] = mapped_column(
        Numeric(4, 2), nullable=False, default=Decimal("0.50")
    )
    max_swaps_per_day: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    max_swaps_per_week: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    status: Mapped[str] = mapped_column(String, nullable=False, default=SeasonStatus.SETUP.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    instruments: Mapped[list["Instrument"]] = relationship(
        "Instrument", back_populates="season", cascade="all, delete-orphan"
    )
    leagues: Mapped[list["League"]] = relationship(
        "League", back_populates="season", cascade="all, delete-orphan"
    )


class Instrument(Base):
    __tablename__ = "instruments"

    instrument_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    season_id: Mapped[str] = mapped_column(String, ForeignKey("seasons.season_id"), nullable=False)
    symbol: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    tier: Mapped[int] = mapped_column(Integer, nullable=False)
    tier_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    market_cap: Mapped[Decimal | None] = mapped_column(Numeric(20, 2), nullable=True)
    exchange: Mapped[str] = mapped_column(String, nullable=False, default="LSE")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    season: Mapped[Season] = relationship("Season", back_populates="instruments")

    __table_args__ = (
        UniqueConstraint("season_id", "symbol", name="uq_instrument_season_symbol"),
        Index("ix_instruments_season_tier", "season_id", "tier"),
    )


class League(Base):
    __tablename__ = "leagues"

    league_id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    season_id: Mapped[str] = mapped_column(String, ForeignKey("seasons.season_id"), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    ownership_mode: Mapped[str] = mapped_column(
        String, nullable=False, default=OwnershipMode.UNIQUE.value
    )
    creator_id: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=LeagueStatus.DRAFT_PENDING.value
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    season: Mapped[Season] = relationship("Season", back_populates="leagues")
    teams: Mapped[list["Team"]] = relationship(
        "Team", back_populates="league", cascade="all, delete-orphan"
    )


class Team(Base):
    __tablename__ = "teams"

    team_id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    league_id: Mapped[str] = mapped_column(String, ForeignKey("leagues.league_id"), nullable=False)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    faab_budget: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    league: Mapped[League] = relationship("League", back_populates="teams")

    __table_args__ = (
        UniqueConstraint("league_id", "user_id", name="uq_team_league_user"),
    )


class RosterMove(Base):
    """Append-only ownership fact; rows are never updated or deleted."""

    __tablename__ = "roster_moves"

    move_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[str] = mapped_column(String, ForeignKey("teams.team_id"), nullable=False)
    kind: Mapped[str] = mapped_column(String, nullable=False)
    symbol: Mapped[str] = mapped_column(String, nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_roster_moves_team_effective", "team_id", "effective_date"),
        Index("ix_roster_moves_symbol_effective", "symbol", "effective_date"),
    )


class PriceDaily(Base):
    __tablename__ = "price_daily"

    symbol: Mapped[str] = mapped_column(String, primary_key=True)
    price_date: Mapped[date] = mapped_column(Date, primary_key=True)
    adj_close: Mapped[Decimal] = mapped_column(Numeric(18, 8), nullable=False)
    fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (Index("ix_price_daily_date", "price_date"),)


class TeamDayScore(Base):
    """Derived cache row; safe to delete and rebuild from moves and prices."""

    __tablename__ = "team_day_scores"

    team_id: Mapped[str] = mapped_column(String, ForeignKey("teams.team_id"), primary_key=True)
    score_date: Mapped[date] = mapped_column(Date, primary_key=True)
    points: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    breakdown: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    missing_symbols: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_trading_day: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    computed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (Index("ix_team_day_scores_date", "score_date"),)


class TradingCalendarDay(Base):
    __tablename__ = "trading_calendar"

    calendar_date: Mapped[date] = mapped_column(Date, primary_key=True)
    is_trading_day: Mapped[bool] = mapped_column(Boolean, nullable=False)
    prev_trading_day: Mapped[date | None] = mapped_column(Date, nullable=True)
    next_trading_day: Mapped[date | None] = mapped_column(Date, nullable=True)


class WaiverClaim(Base):
    __tablename__ = "waiver_claims"

    claim_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    team_id: Mapped[str] = mapped_column(String, ForeignKey("teams.team_id"), nullable=False)
    add_symbol: Mapped[str] = mapped_column(String, nullable=False)
    drop_symbol: Mapped[str] = mapped_column(String, nullable=False)
    faab_bid: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=WaiverClaimStatus.PENDING.value
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    team: Mapped[Team] = relationship("Team")

    __table_args__ = (
        Index("ix_waiver_claims_team_effective", "team_id", "effective_date"),
        Index("ix_waiver_claims_status", "status"),
    )


class TradeProposal(Base):
    __tablename__ = "trade_proposals"

    trade_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    league_id: Mapped[str] = mapped_column(String, ForeignKey("leagues.league_id"), nullable=False)
    from_team_id: Mapped[str] = mapped_column(String, ForeignKey("teams.team_id"), nullable=False)
    to_team_id: Mapped[str] = mapped_column(String, ForeignKey("teams.team_id"), nullable=False)
    offered_symbols: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    requested_symbols: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    status: Mapped[str] = mapped_column(
        String, nullable=False, default=TradeProposalStatus.PENDING.value
    )
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_trade_proposals_league_status", "league_id", "status"),
    )
