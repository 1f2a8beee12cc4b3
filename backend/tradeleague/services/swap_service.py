"""Drop/add roster changes: direct moves or queued waiver claims."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Sequence

from loguru import logger
from sqlalchemy.orm import Session

from tradeleague.core.errors import NotFoundError, RuleViolation
from tradeleague.domain import SwapDetails, ensure_utc, project_holdings, utc_date, validate_roster
from tradeleague.models import (
    LeagueStatus,
    MoveKind,
    OwnershipMode,
    RosterMove,
    Season,
    Team,
    WaiverClaim,
    WaiverClaimStatus,
    utcnow,
)
from tradeleague.repositories import LeagueRepository, RosterRepository, TransactionRepository

from .calendar_service import TradingCalendarService
from .draft_service import normalize_symbol
from .holdings_service import HoldingsService

HISTORY_LIMIT_MAX = 500


@dataclass(slots=True)
class SwapCapacity:
    daily_used: int
    daily_limit: int
    weekly_used: int
    weekly_limit: int

    @property
    def daily_remaining(self) -> int:
        return max(0, self.daily_limit - self.daily_used)

    @property
    def weekly_remaining(self) -> int:
        return max(0, self.weekly_limit - self.weekly_used)


@dataclass(slots=True)
class SwapResult:
    mode: str
    team_id: str
    drop_symbol: str
    add_symbol: str
    effective_date: date
    capacity: SwapCapacity
    moves: list[RosterMove] = field(default_factory=list)
    claim: WaiverClaim | None = None


@dataclass(slots=True)
class SwapHistory:
    moves: Sequence[RosterMove]
    claims: Sequence[WaiverClaim]


def day_window(instant: datetime) -> tuple[datetime, datetime]:
    start = ensure_utc(instant).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def week_window(instant: datetime) -> tuple[datetime, datetime]:
    day_start, _ = day_window(instant)
    start = day_start - timedelta(days=day_start.weekday())
    return start, start + timedelta(days=7)


class SwapService:
    """Submit drop/add swaps and report swap capacity.

    Duplicate-ownership leagues commit the swap immediately as a DROP and ADD
    pair. Unique-ownership leagues queue a FAAB-backed waiver claim that the
    auction resolver settles later.
    """

    def __init__(self, session: Session) -> None:
        self._leagues = LeagueRepository(session)
        self._moves = RosterRepository(session)
        self._transactions = TransactionRepository(session)
        self._calendar = TradingCalendarService(session)
        self._holdings = HoldingsService(session)

    # ------------------------------------------------------------------
    # Capacity

    def _used_in_window(self, team: Team, start: datetime, end: datetime) -> int:
        if team.league.ownership_mode == OwnershipMode.UNIQUE.value:
            return self._transactions.count_open_claims(
                team.team_id, created_from=start, created_before=end
            )
        return self._moves.count_moves(
            team.team_id, MoveKind.ADD, created_from=start, created_before=end
        )

    def _capacity(self, team: Team, season: Season, at: datetime) -> SwapCapacity:
        return SwapCapacity(
            daily_used=self._used_in_window(team, *day_window(at)),
            daily_limit=season.max_swaps_per_day,
            weekly_used=self._used_in_window(team, *week_window(at)),
            weekly_limit=season.max_swaps_per_week,
        )

    def remaining_swaps(self, team_id: str, at: datetime | None = None) -> SwapCapacity:
        team = self._leagues.require_team(team_id)
        return self._capacity(team, team.league.season, ensure_utc(at or utcnow()))

    # ------------------------------------------------------------------
    # Submission

    def effective_date_for(self, submitted_at: datetime) -> date:
        tomorrow = utc_date(submitted_at) + timedelta(days=1)
        return self._calendar.next_trading_day(tomorrow)

    def submit_swap(
        self,
        team_id: str,
        drop_symbol: str,
        add_symbol: str,
        *,
        bid: int | None = None,
        submitted_at: datetime | None = None,
    ) -> SwapResult:
        drop = normalize_symbol(drop_symbol)
        add = normalize_symbol(add_symbol)
        if not drop or not add:
            raise RuleViolation("Both a drop symbol and an add symbol are required")
        if drop == add:
            raise RuleViolation("Drop and add symbols must be different")

        team = self._leagues.require_team(team_id)
        league = team.league
        season = league.season
        at = ensure_utc(submitted_at or utcnow())

        if self._calendar.is_market_open(at):
            raise RuleViolation("Roster changes are locked while the market is open")
        if league.status != LeagueStatus.ACTIVE.value:
            raise RuleViolation("League is not active")

        capacity = self._capacity(team, season, at)
        if capacity.daily_remaining <= 0:
            raise RuleViolation(f"Daily swap limit of {season.max_swaps_per_day} reached")
        if capacity.weekly_remaining <= 0:
            raise RuleViolation(f"Weekly swap limit of {season.max_swaps_per_week} reached")

        effective_date = self.effective_date_for(at)
        instruments = self._leagues.instrument_map(season.season_id)
        if add not in instruments:
            raise RuleViolation(f"{add} is not available in this season")

        holdings = self._holdings.holdings_at(team.team_id, effective_date, instruments)
        if drop not in holdings:
            raise RuleViolation(f"You do not hold {drop}")
        if add in holdings:
            raise RuleViolation(f"You already hold {add}")

        projected = project_holdings(
            holdings,
            remove=[drop],
            add=[add],
            added_on=effective_date,
            instruments=instruments,
        )
        validation = validate_roster(projected.values(), season.budget)
        if not validation.is_valid:
            raise RuleViolation("; ".join(validation.errors))

        result = SwapResult(
            mode=league.ownership_mode,
            team_id=team.team_id,
            drop_symbol=drop,
            add_symbol=add,
            effective_date=effective_date,
            capacity=capacity,
        )

        if league.ownership_mode == OwnershipMode.UNIQUE.value:
            self._check_bid(team, bid)
            owner = self._holdings.league_ownership(
                league, effective_date, instruments
            ).owner_by_symbol.get(add)
            if owner is not None and owner != team.team_id:
                raise RuleViolation(f"{add} is already owned by another team")
            result.claim = self._transactions.add_claim(
                WaiverClaim(
                    team_id=team.team_id,
                    add_symbol=add,
                    drop_symbol=drop,
                    faab_bid=bid,
                    status=WaiverClaimStatus.PENDING.value,
                    effective_date=effective_date,
                    created_at=at,
                )
            )
            logger.info(
                "Queued waiver claim {} for team {}: +{} -{} bid {} effective {}",
                result.claim.claim_id,
                team.team_id,
                add,
                drop,
                bid,
                effective_date,
            )
        else:
            for kind, symbol in ((MoveKind.DROP, drop), (MoveKind.ADD, add)):
                result.moves.append(
                    self._moves.append_move(
                        team_id=team.team_id,
                        kind=kind,
                        symbol=symbol,
                        effective_date=effective_date,
                        details=SwapDetails(),
                        created_at=at,
                    )
                )
            logger.info(
                "Committed swap for team {}: +{} -{} effective {}",
                team.team_id,
                add,
                drop,
                effective_date,
            )

        result.capacity = self._capacity(team, season, at)
        return result

    @staticmethod
    def _check_bid(team: Team, bid: int | None) -> None:
        if bid is None:
            raise RuleViolation("A FAAB bid is required in unique-ownership leagues")
        if isinstance(bid, bool) or not isinstance(bid, int) or bid < 0:
            raise RuleViolation("Bid must be a non-negative whole number")
        if bid > team.faab_budget:
            raise RuleViolation(f"Bid {bid} exceeds remaining budget {team.faab_budget}")

    # ------------------------------------------------------------------
    # Claims and history

    def cancel_claim(self, claim_id: int, team_id: str) -> WaiverClaim:
        claim = self._transactions.get_claim(claim_id)
        if claim is None:
            raise NotFoundError(f"Waiver claim {claim_id} not found")
        if claim.team_id != team_id:
            raise RuleViolation("Only the claiming team can cancel this claim")
        if claim.status != WaiverClaimStatus.PENDING.value:
            raise RuleViolation("Only pending claims can be cancelled")
        claim.status = WaiverClaimStatus.CANCELLED.value
        logger.info("Cancelled waiver claim {} for team {}", claim.claim_id, team_id)
        return claim

    def swap_history(self, team_id: str, limit: int = 50) -> SwapHistory:
        team = self._leagues.require_team(team_id)
        bounded = min(max(int(limit), 1), HISTORY_LIMIT_MAX)
        return SwapHistory(
            moves=self._moves.recent_moves(team.team_id, bounded),
            claims=self._transactions.recent_claims(team.team_id, bounded),
        )


__all__ = [
    "HISTORY_LIMIT_MAX",
    "SwapCapacity",
    "SwapHistory",
    "SwapResult",
    "SwapService",
    "day_window",
    "week_window",
]
