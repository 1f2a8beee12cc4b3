from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


class HoldingOut(BaseModel):
    symbol: str
    added_date: date
    tier: int
    tier_cost: int

    model_config = {"from_attributes": True}


class RosterValidationOut(BaseModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
    holding_count: int
    total_cost: int
    tier_counts: dict[int, int] = Field(default_factory=dict)

    model_config = {"from_attributes": True}


class DayScoreOut(BaseModel):
    team_id: str
    score_date: date
    points: float
    breakdown: dict[str, float] = Field(default_factory=dict)
    missing_symbols: list[str] = Field(default_factory=list)
    is_trading_day: bool
    computed_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, value: Any) -> float | None:
        return _as_float(value)

    @field_validator("breakdown", mode="before")
    @classmethod
    def _coerce_breakdown(cls, value: Any) -> dict[str, float]:
        return {symbol: float(points) for symbol, points in (value or {}).items()}


class RangeScoreOut(BaseModel):
    team_id: str
    start: date
    end: date
    total_points: float
    days: list[DayScoreOut] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("total_points", mode="before")
    @classmethod
    def _coerce_total(cls, value: Any) -> float | None:
        return _as_float(value)


class BackfillRequest(BaseModel):
    start: date
    end: date
    force_recompute: bool = False


class InvalidateRequest(BaseModel):
    team_id: str | None = None
    from_date: date | None = None
    to_date: date | None = None


class InvalidateResult(BaseModel):
    removed: int


class TeamSnapshotOut(BaseModel):
    team_id: str
    league_id: str
    snapshot_date: date
    holdings: list[HoldingOut]
    validation: RosterValidationOut
    score: DayScoreOut

    model_config = {"from_attributes": True}


class StandingOut(BaseModel):
    rank: int
    team_id: str
    team_name: str
    user_id: str
    total_points: float
    day_points: float

    model_config = {"from_attributes": True}

    @field_validator("total_points", "day_points", mode="before")
    @classmethod
    def _coerce_points(cls, value: Any) -> float | None:
        return _as_float(value)


class StandingsOut(BaseModel):
    league_id: str
    as_of: date
    items: list[StandingOut]


class ScoreHistoryPointOut(BaseModel):
    score_date: date
    points: float
    cumulative_points: float

    model_config = {"from_attributes": True}

    @field_validator("points", "cumulative_points", mode="before")
    @classmethod
    def _coerce_points(cls, value: Any) -> float | None:
        return _as_float(value)


class RosterMoveOut(BaseModel):
    move_id: int
    team_id: str
    kind: str
    symbol: str
    effective_date: date
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    model_config = {"from_attributes": True}


class WaiverClaimOut(BaseModel):
    claim_id: int
    team_id: str
    add_symbol: str
    drop_symbol: str
    faab_bid: int
    status: str
    effective_date: date
    created_at: datetime

    model_config = {"from_attributes": True}


class SwapRequest(BaseModel):
    team_id: str
    drop_symbol: str
    add_symbol: str
    bid: int | None = None


class SwapCapacityOut(BaseModel):
    daily_used: int
    daily_limit: int
    daily_remaining: int
    weekly_used: int
    weekly_limit: int
    weekly_remaining: int

    model_config = {"from_attributes": True}


class SwapResultOut(BaseModel):
    mode: str
    team_id: str
    drop_symbol: str
    add_symbol: str
    effective_date: date
    capacity: SwapCapacityOut
    moves: list[RosterMoveOut] = Field(default_factory=list)
    claim: WaiverClaimOut | None = None

    model_config = {"from_attributes": True}


class SwapHistoryOut(BaseModel):
    moves: list[RosterMoveOut]
    claims: list[WaiverClaimOut]

    model_config = {"from_attributes": True}


class TeamActionRequest(BaseModel):
    team_id: str


class ResolveClaimsRequest(BaseModel):
    effective_date: date


class WaiverAwardOut(BaseModel):
    claim_id: int
    team_id: str
    add_symbol: str
    drop_symbol: str
    faab_bid: int

    model_config = {"from_attributes": True}


class WaiverResolutionOut(BaseModel):
    league_id: str
    effective_date: date
    processed: int
    won: int
    lost: int
    winners: list[WaiverAwardOut] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class TradeProposalRequest(BaseModel):
    from_team_id: str
    to_team_id: str
    offered_symbols: list[str]
    requested_symbols: list[str]


class TradeResponseRequest(BaseModel):
    team_id: str


class TradeProposalOut(BaseModel):
    trade_id: int
    league_id: str
    from_team_id: str
    to_team_id: str
    offered_symbols: list[str]
    requested_symbols: list[str]
    status: str
    effective_date: date
    created_at: datetime
    responded_at: datetime | None = None

    model_config = {"from_attributes": True}


class ExpireTradesRequest(BaseModel):
    as_of: date


class ExpireTradesResult(BaseModel):
    expired: int


class CalendarPopulationOut(BaseModel):
    year: int
    total_days: int
    trading_days: int

    model_config = {"from_attributes": True}


class DraftRequest(BaseModel):
    team_id: str
    symbols: list[str]


class DraftResultOut(BaseModel):
    team_id: str
    symbols: list[str]
    effective_date: date
    league_status: str

    model_config = {"from_attributes": True}


class InstrumentAvailabilityOut(BaseModel):
    symbol: str
    name: str
    tier: int
    tier_cost: int
    is_available: bool
    owner_team_id: str | None = None

    model_config = {"from_attributes": True}


class SeasonOut(BaseModel):
    season_id: str
    name: str
    market: str
    status: str
    start_date: date
    end_date: date
    trade_deadline_date: date
    budget: int

    model_config = {"from_attributes": True}


class InstrumentOut(BaseModel):
    symbol: str
    name: str
    tier: int
    tier_cost: int
    market_cap: float | None = None
    exchange: str

    model_config = {"from_attributes": True}

    @field_validator("market_cap", mode="before")
    @classmethod
    def _coerce_market_cap(cls, value: Any) -> float | None:
        return _as_float(value)


class InstrumentCandidateIn(BaseModel):
    symbol: str
    name: str = ""
    market_cap: Decimal | None = None
    exchange: str = "LSE"


class PopulateInstrumentsRequest(BaseModel):
    candidates: list[InstrumentCandidateIn]
    symbol_limit: int | None = None


class InstrumentPopulationOut(BaseModel):
    season_id: str
    requested_symbols: int
    inserted_instruments: int
    tier_counts: dict[int, int]

    model_config = {"from_attributes": True}


class LeagueCreateRequest(BaseModel):
    season_id: str
    name: str
    ownership_mode: str = "UNIQUE"
    creator_id: str


class LeagueOut(BaseModel):
    league_id: str
    season_id: str
    name: str
    ownership_mode: str
    creator_id: str
    status: str

    model_config = {"from_attributes": True}


class TeamCreateRequest(BaseModel):
    user_id: str
    name: str


class TeamOut(BaseModel):
    team_id: str
    league_id: str
    user_id: str
    name: str
    faab_budget: int

    model_config = {"from_attributes": True}


class HoldingPriceOut(BaseModel):
    symbol: str
    tier: int
    tier_cost: int
    added_date: date
    current_price: float | None = None
    previous_price: float | None = None
    daily_return_pct: float | None = None

    model_config = {"from_attributes": True}

    @field_validator("current_price", "previous_price", "daily_return_pct", mode="before")
    @classmethod
    def _coerce_prices(cls, value: Any) -> float | None:
        return _as_float(value)


class MoverOut(BaseModel):
    symbol: str
    current_price: float
    change_pct: float

    model_config = {"from_attributes": True}

    @field_validator("current_price", "change_pct", mode="before")
    @classmethod
    def _coerce_prices(cls, value: Any) -> float | None:
        return _as_float(value)
