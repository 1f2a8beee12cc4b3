"""Bilateral multi-symbol trades between two teams of a unique-ownership league."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone

from loguru import logger
from sqlalchemy.orm import Session

from tradeleague.core.errors import NotFoundError, RuleViolation
from tradeleague.domain import (
    Holding,
    InstrumentRef,
    TradeDetails,
    ensure_utc,
    project_holdings,
    utc_date,
    validate_roster,
)
from tradeleague.models import (
    League,
    LeagueStatus,
    MoveKind,
    OwnershipMode,
    Team,
    TradeProposal,
    TradeProposalStatus,
    utcnow,
)
from tradeleague.repositories import LeagueRepository, RosterRepository, TransactionRepository

from .calendar_service import TradingCalendarService
from .draft_service import normalize_symbol
from .holdings_service import HoldingsService


def _normalize_side(symbols: list[str]) -> list[str]:
    cleaned = [normalize_symbol(symbol) for symbol in symbols]
    return list(dict.fromkeys(symbol for symbol in cleaned if symbol))


class TradeService:
    """Propose, accept, reject, cancel and expire trade proposals.

    Acceptance re-checks everything proposal time checked, since either roster
    may have changed while the proposal was pending.
    """

    def __init__(self, session: Session) -> None:
        self._leagues = LeagueRepository(session)
        self._moves = RosterRepository(session)
        self._transactions = TransactionRepository(session)
        self._calendar = TradingCalendarService(session)
        self._holdings = HoldingsService(session)

    # ------------------------------------------------------------------
    # Shared checks

    def _effective_date_after(self, instant: datetime) -> date:
        return self._calendar.next_trading_day(utc_date(instant) + timedelta(days=1))

    def _require_proposal(self, trade_id: int) -> TradeProposal:
        proposal = self._transactions.get_proposal(trade_id)
        if proposal is None:
            raise NotFoundError(f"Trade {trade_id} not found")
        return proposal

    @staticmethod
    def _check_league(league: League) -> None:
        if league.status != LeagueStatus.ACTIVE.value:
            raise RuleViolation("League is not active")
        if league.ownership_mode != OwnershipMode.UNIQUE.value:
            raise RuleViolation("Trades are only available in unique-ownership leagues")

    @staticmethod
    def _check_deadline(league: League, at: datetime) -> None:
        if utc_date(at) > league.season.trade_deadline_date:
            raise RuleViolation("The trade deadline has passed")

    def _check_rosters(
        self,
        proposal_from: Team,
        proposal_to: Team,
        offered: list[str],
        requested: list[str],
        effective_date: date,
        instruments: dict[str, InstrumentRef],
    ) -> tuple[dict[str, Holding], dict[str, Holding]]:
        budget = proposal_from.league.season.budget
        from_holdings = self._holdings.holdings_at(proposal_from.team_id, effective_date, instruments)
        to_holdings = self._holdings.holdings_at(proposal_to.team_id, effective_date, instruments)

        missing_offered = [symbol for symbol in offered if symbol not in from_holdings]
        if missing_offered:
            raise RuleViolation(f"{proposal_from.name} does not hold {', '.join(missing_offered)}")
        missing_requested = [symbol for symbol in requested if symbol not in to_holdings]
        if missing_requested:
            raise RuleViolation(f"{proposal_to.name} does not hold {', '.join(missing_requested)}")

        projected_from = project_holdings(
            from_holdings, remove=offered, add=requested, added_on=effective_date, instruments=instruments
        )
        projected_to = project_holdings(
            to_holdings, remove=requested, add=offered, added_on=effective_date, instruments=instruments
        )
        for team, projected in ((proposal_from, projected_from), (proposal_to, projected_to)):
            validation = validate_roster(projected.values(), budget)
            if not validation.is_valid:
                raise RuleViolation(f"{team.name}: {'; '.join(validation.errors)}")
        return projected_from, projected_to

    # ------------------------------------------------------------------
    # Lifecycle

    def propose(
        self,
        from_team_id: str,
        to_team_id: str,
        offered: list[str],
        requested: list[str],
        *,
        proposed_at: datetime | None = None,
    ) -> TradeProposal:
        if from_team_id == to_team_id:
            raise RuleViolation("A team cannot trade with itself")
        at = ensure_utc(proposed_at or utcnow())
        if self._calendar.is_market_open(at):
            raise RuleViolation("Trades cannot be proposed while the market is open")

        offered_symbols = _normalize_side(offered)
        requested_symbols = _normalize_side(requested)
        if not offered_symbols or not requested_symbols:
            raise RuleViolation("Both sides of a trade must include at least one symbol")
        overlap = sorted(set(offered_symbols) & set(requested_symbols))
        if overlap:
            raise RuleViolation(f"Symbols cannot be on both sides of a trade: {', '.join(overlap)}")

        from_team = self._leagues.require_team(from_team_id)
        to_team = self._leagues.require_team(to_team_id)
        if from_team.league_id != to_team.league_id:
            raise RuleViolation("Both teams must belong to the same league")
        league = from_team.league
        self._check_league(league)
        self._check_deadline(league, at)

        effective_date = self._effective_date_after(at)
        instruments = self._leagues.instrument_map(league.season_id)
        self._check_rosters(
            from_team, to_team, offered_symbols, requested_symbols, effective_date, instruments
        )

        proposal = self._transactions.add_proposal(
            TradeProposal(
                league_id=league.league_id,
                from_team_id=from_team.team_id,
                to_team_id=to_team.team_id,
                offered_symbols=offered_symbols,
                requested_symbols=requested_symbols,
                status=TradeProposalStatus.PENDING.value,
                effective_date=effective_date,
                created_at=at,
            )
        )
        logger.info(
            "Trade {} proposed: {} offers {} to {} for {} (effective {})",
            proposal.trade_id,
            from_team.team_id,
            offered_symbols,
            to_team.team_id,
            requested_symbols,
            effective_date,
        )
        return proposal

    def accept(
        self,
        trade_id: int,
        *,
        acting_team_id: str | None = None,
        accepted_at: datetime | None = None,
    ) -> TradeProposal:
        at = ensure_utc(accepted_at or utcnow())
        if self._calendar.is_market_open(at):
            raise RuleViolation("Trades cannot be accepted while the market is open")

        proposal = self._require_proposal(trade_id)
        if proposal.status != TradeProposalStatus.PENDING.value:
            raise RuleViolation(f"Trade is {proposal.status.lower()}, not pending")
        if acting_team_id is not None and acting_team_id != proposal.to_team_id:
            raise RuleViolation("Only the receiving team can accept this trade")

        from_team = self._leagues.require_team(proposal.from_team_id)
        to_team = self._leagues.require_team(proposal.to_team_id)
        league = from_team.league
        self._check_league(league)
        self._check_deadline(league, at)

        effective_date = max(proposal.effective_date, self._effective_date_after(at))
        offered = list(proposal.offered_symbols)
        requested = list(proposal.requested_symbols)
        instruments = self._leagues.instrument_map(league.season_id)
        self._check_rosters(from_team, to_team, offered, requested, effective_date, instruments)

        for giver, receiver, symbols in (
            (from_team, to_team, offered),
            (to_team, from_team, requested),
        ):
            for symbol in symbols:
                self._append_trade_move(proposal, giver, receiver, symbol, "OUT", effective_date, at)
                self._append_trade_move(proposal, receiver, giver, symbol, "IN", effective_date, at)

        proposal.effective_date = effective_date
        proposal.status = TradeProposalStatus.ACCEPTED.value
        proposal.responded_at = at
        logger.info("Trade {} accepted, effective {}", proposal.trade_id, effective_date)
        return proposal

    def _append_trade_move(
        self,
        proposal: TradeProposal,
        team: Team,
        counterparty: Team,
        symbol: str,
        direction: str,
        effective_date: date,
        at: datetime,
    ) -> None:
        self._moves.append_move(
            team_id=team.team_id,
            kind=MoveKind.TRADE,
            symbol=symbol,
            effective_date=effective_date,
            details=TradeDetails(
                direction=direction,
                trade_id=proposal.trade_id,
                counterparty_team_id=counterparty.team_id,
            ),
            created_at=at,
        )

    def reject(
        self, trade_id: int, acting_team_id: str, *, responded_at: datetime | None = None
    ) -> TradeProposal:
        proposal = self._require_proposal(trade_id)
        if acting_team_id != proposal.to_team_id:
            raise RuleViolation("Only the receiving team can reject this trade")
        return self._close(proposal, TradeProposalStatus.REJECTED, responded_at)

    def cancel(
        self, trade_id: int, acting_team_id: str, *, responded_at: datetime | None = None
    ) -> TradeProposal:
        proposal = self._require_proposal(trade_id)
        if acting_team_id != proposal.from_team_id:
            raise RuleViolation("Only the proposing team can cancel this trade")
        return self._close(proposal, TradeProposalStatus.CANCELLED, responded_at)

    @staticmethod
    def _close(
        proposal: TradeProposal, status: TradeProposalStatus, responded_at: datetime | None
    ) -> TradeProposal:
        if proposal.status != TradeProposalStatus.PENDING.value:
            raise RuleViolation(f"Trade is {proposal.status.lower()}, not pending")
        proposal.status = status.value
        proposal.responded_at = ensure_utc(responded_at or utcnow())
        logger.info("Trade {} {}", proposal.trade_id, status.value.lower())
        return proposal

    def expire_pending(self, league_id: str, as_of: date) -> int:
        """Expire pending proposals effective on or before ``as_of`` once the deadline has passed."""

        league = self._leagues.require_league(league_id)
        if as_of <= league.season.trade_deadline_date:
            return 0
        expired_at = datetime.combine(as_of, time.min, tzinfo=timezone.utc)
        expired = self._transactions.expire_pending(league.league_id, as_of, expired_at)
        if expired:
            logger.info("Expired {} pending trades in league {}", expired, league.league_id)
        return expired

    def proposals_for_team(self, team_id: str) -> list[TradeProposal]:
        team = self._leagues.require_team(team_id)
        return self._transactions.proposals_for_team(team.team_id)


__all__ = ["TradeService"]
