"""Pure game rules: calendar, roster replay and validation."""

from .calendar import (
    CalendarEntry,
    ensure_utc,
    generate_calendar_entries,
    is_market_open_at,
    is_trading_day_date,
    next_trading_day_date,
    previous_trading_day_date,
    utc_date,
)
from .holdings import (
    LeagueOwnership,
    build_holdings,
    project_holdings,
    replay_moves,
    replay_ownership,
    validate_roster,
)
from .scoring import compute_day_score, non_trading_score, percent_change, round_points
from .tiers import tier_cost, tier_for_index
from .models import (
    DayScore,
    DraftDetails,
    Holding,
    InstrumentRef,
    MoveDetails,
    MoveRecord,
    ROSTER_SIZE,
    RosterValidation,
    ScoringConfig,
    SwapDetails,
    TIER_COSTS,
    TIER_COUNT,
    TradeDetails,
    WaiverDetails,
    details_to_payload,
    empty_tier_counts,
    parse_move_details,
)

__all__ = [
    "CalendarEntry",
    "DayScore",
    "DraftDetails",
    "Holding",
    "InstrumentRef",
    "LeagueOwnership",
    "MoveDetails",
    "MoveRecord",
    "ROSTER_SIZE",
    "RosterValidation",
    "ScoringConfig",
    "SwapDetails",
    "TIER_COSTS",
    "TIER_COUNT",
    "TradeDetails",
    "WaiverDetails",
    "build_holdings",
    "compute_day_score",
    "details_to_payload",
    "empty_tier_counts",
    "ensure_utc",
    "generate_calendar_entries",
    "is_market_open_at",
    "is_trading_day_date",
    "next_trading_day_date",
    "non_trading_score",
    "parse_move_details",
    "percent_change",
    "previous_trading_day_date",
    "project_holdings",
    "replay_moves",
    "replay_ownership",
    "round_points",
    "tier_cost",
    "tier_for_index",
    "utc_date",
    "validate_roster",
]
