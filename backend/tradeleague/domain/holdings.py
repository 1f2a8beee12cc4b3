"""Replay of the append-only roster log and roster legality rules.

Everything in this module is a pure function of its arguments: the season's
instrument map is always passed in, never looked up globally.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date

from .calendar import ensure_utc
from .models import (
    Holding,
    InstrumentRef,
    MoveRecord,
    ROSTER_SIZE,
    RosterValidation,
    TIER_COUNT,
    empty_tier_counts,
)


def replay_order(moves: Iterable[MoveRecord]) -> list[MoveRecord]:
    return sorted(
        moves,
        key=lambda move: (move.effective_date, ensure_utc(move.created_at), move.move_id),
    )


def replay_moves(moves: Iterable[MoveRecord]) -> dict[str, date]:
    """Fold one team's moves into ``symbol -> acquisition date``."""

    held: dict[str, date] = {}
    for move in replay_order(moves):
        if move.adds_symbol:
            held[move.symbol] = move.effective_date
        elif move.symbol in held:
            del held[move.symbol]
    return held


@dataclass(slots=True)
class LeagueOwnership:
    holdings_by_team: dict[str, dict[str, date]] = field(default_factory=dict)
    owner_by_symbol: dict[str, str] = field(default_factory=dict)

    def held_by(self, team_id: str) -> dict[str, date]:
        return self.holdings_by_team.setdefault(team_id, {})


def replay_ownership(
    moves: Iterable[MoveRecord], team_ids: Iterable[str] = ()
) -> LeagueOwnership:
    """Fold a whole league's moves into per-team holdings and a symbol owner map."""

    ownership = LeagueOwnership()
    for team_id in team_ids:
        ownership.held_by(team_id)

    for move in replay_order(moves):
        held = ownership.held_by(move.team_id)
        if move.adds_symbol:
            held[move.symbol] = move.effective_date
            ownership.owner_by_symbol[move.symbol] = move.team_id
            continue
        if move.symbol not in held:
            continue
        del held[move.symbol]
        if ownership.owner_by_symbol.get(move.symbol) == move.team_id:
            del ownership.owner_by_symbol[move.symbol]
    return ownership


def build_holdings(
    acquired: Mapping[str, date], instruments: Mapping[str, InstrumentRef]
) -> dict[str, Holding]:
    """Join replayed symbols against the season's instruments, dropping unknown ones."""

    holdings: dict[str, Holding] = {}
    for symbol in sorted(acquired):
        ref = instruments.get(symbol)
        if ref is None:
            continue
        holdings[symbol] = Holding(
            symbol=symbol,
            added_date=acquired[symbol],
            tier=ref.tier,
            tier_cost=ref.tier_cost,
        )
    return holdings


def project_holdings(
    holdings: Mapping[str, Holding],
    *,
    remove: Iterable[str] = (),
    add: Iterable[str] = (),
    added_on: date,
    instruments: Mapping[str, InstrumentRef],
) -> dict[str, Holding]:
    """Return a copy of ``holdings`` with ``remove`` dropped and ``add`` acquired on ``added_on``."""

    projected = dict(holdings)
    for symbol in remove:
        projected.pop(symbol, None)
    for symbol in add:
        ref = instruments.get(symbol)
        if ref is None:
            continue
        projected[symbol] = Holding(
            symbol=symbol, added_date=added_on, tier=ref.tier, tier_cost=ref.tier_cost
        )
    return projected


def validate_roster(holdings: Iterable[Holding], budget: int) -> RosterValidation:
    items = list(holdings)
    tier_counts = empty_tier_counts()
    total_cost = 0
    for holding in items:
        if holding.tier in tier_counts:
            tier_counts[holding.tier] += 1
        total_cost += holding.tier_cost

    errors: list[str] = []
    if len(items) != ROSTER_SIZE:
        errors.append(f"Roster must have exactly {ROSTER_SIZE} holdings")
    for tier in range(1, TIER_COUNT + 1):
        if tier_counts[tier] < 1:
            errors.append(f"Roster must include at least one Tier {tier} holding")
    if total_cost > budget:
        errors.append(f"Roster cost {total_cost} exceeds budget {budget}")

    return RosterValidation(
        is_valid=not errors,
        errors=errors,
        holding_count=len(items),
        total_cost=total_cost,
        tier_counts=tier_counts,
    )


__all__ = [
    "LeagueOwnership",
    "build_holdings",
    "project_holdings",
    "replay_moves",
    "replay_order",
    "replay_ownership",
    "validate_roster",
]
