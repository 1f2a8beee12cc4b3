"""Typed domain representations shared by the replay, scoring and transaction services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Union

from tradeleague.models import MoveKind

ROSTER_SIZE = 8
TIER_COUNT = 5
TIER_COSTS: dict[int, int] = {1: 20, 2: 16, 3: 12, 4: 8, 5: 4}


def empty_tier_counts() -> dict[int, int]:
    return {tier: 0 for tier in range(1, TIER_COUNT + 1)}


@dataclass(frozen=True, slots=True)
class InstrumentRef:
    """Frozen tier assignment of one symbol within a season."""

    symbol: str
    tier: int
    tier_cost: int


@dataclass(slots=True)
class Holding:
    symbol: str
    added_date: date
    tier: int
    tier_cost: int


@dataclass(slots=True)
class RosterValidation:
    is_valid: bool
    errors: list[str]
    holding_count: int
    total_cost: int
    tier_counts: dict[int, int]


# ----------------------------------------------------------------------
# Move details: one variant per move kind / source


@dataclass(frozen=True, slots=True)
class DraftDetails:
    source: str = "DRAFT"


@dataclass(frozen=True, slots=True)
class SwapDetails:
    source: str = "SWAP"


@dataclass(frozen=True, slots=True)
class WaiverDetails:
    claim_id: int
    faab_bid: int
    source: str = "WAIVER"


@dataclass(frozen=True, slots=True)
class TradeDetails:
    direction: str
    trade_id: int
    counterparty_team_id: str
    source: str = "TRADE"

    @property
    def is_incoming(self) -> bool:
        return self.direction == "IN"


MoveDetails = Union[DraftDetails, SwapDetails, WaiverDetails, TradeDetails]


def details_to_payload(details: MoveDetails) -> dict[str, Any]:
    """Serialize move details into the JSON stored on the roster move row."""

    if isinstance(details, TradeDetails):
        return {
            "source": details.source,
            "direction": details.direction,
            "trade_id": details.trade_id,
            "counterparty_team_id": details.counterparty_team_id,
        }
    if isinstance(details, WaiverDetails):
        return {
            "source": details.source,
            "claim_id": details.claim_id,
            "faab_bid": details.faab_bid,
        }
    return {"source": details.source}


def parse_move_details(kind: MoveKind, payload: dict[str, Any] | None) -> MoveDetails:
    """Rebuild the details variant for a stored move.

    TRADE rows must carry a direction; anything else is rejected so the replay
    never guesses whether a symbol left or joined a roster.
    """

    payload = payload or {}
    if kind is MoveKind.TRADE:
        direction = str(payload.get("direction", "")).upper()
        if direction not in {"IN", "OUT"}:
            raise ValueError(f"Trade move is missing a valid direction: {payload!r}")
        return TradeDetails(
            direction=direction,
            trade_id=int(payload.get("trade_id", 0)),
            counterparty_team_id=str(payload.get("counterparty_team_id", "")),
        )
    if kind is MoveKind.DRAFT:
        return DraftDetails()
    if payload.get("source") == "WAIVER":
        return WaiverDetails(
            claim_id=int(payload.get("claim_id", 0)),
            faab_bid=int(payload.get("faab_bid", 0)),
        )
    return SwapDetails()


@dataclass(frozen=True, slots=True)
class MoveRecord:
    """Replay-ready view of one roster move."""

    move_id: int
    team_id: str
    kind: MoveKind
    symbol: str
    effective_date: date
    created_at: datetime
    details: MoveDetails

    @property
    def adds_symbol(self) -> bool:
        if self.kind is MoveKind.TRADE:
            return isinstance(self.details, TradeDetails) and self.details.is_incoming
        return self.kind in (MoveKind.DRAFT, MoveKind.ADD)


@dataclass(slots=True)
class DayScore:
    team_id: str
    score_date: date
    points: Decimal
    breakdown: dict[str, Decimal] = field(default_factory=dict)
    missing_symbols: list[str] = field(default_factory=list)
    is_trading_day: bool = True
    computed_at: datetime | None = None


@dataclass(slots=True)
class ScoringConfig:
    multiplier: Decimal
    first_day_penalty: Decimal


__all__ = [
    "DayScore",
    "DraftDetails",
    "Holding",
    "InstrumentRef",
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
    "details_to_payload",
    "empty_tier_counts",
    "parse_move_details",
]
