"""Waiver claims and trade proposals: the two pending-transaction tables."""

from __future__ import annotations

from datetime import date, datetime
from typing import Sequence

from sqlalchemy import asc, desc, func, or_, select, update
from sqlalchemy.orm import Session

from tradeleague.models import (
    Team,
    TradeProposal,
    TradeProposalStatus,
    WaiverClaim,
    WaiverClaimStatus,
)


class TransactionRepository:
    """Claim and proposal persistence; status changes only move forward from PENDING."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Waiver claims

    def add_claim(self, claim: WaiverClaim) -> WaiverClaim:
        self._session.add(claim)
        self._session.flush()
        return claim

    def get_claim(self, claim_id: int) -> WaiverClaim | None:
        return self._session.get(WaiverClaim, claim_id)

    def pending_claims(self, league_id: str, effective_date: date) -> list[WaiverClaim]:
        stmt = (
            select(WaiverClaim)
            .join(Team, Team.team_id == WaiverClaim.team_id)
            .where(
                Team.league_id == league_id,
                WaiverClaim.effective_date == effective_date,
                WaiverClaim.status == WaiverClaimStatus.PENDING.value,
            )
            .order_by(asc(WaiverClaim.created_at), asc(WaiverClaim.claim_id))
        )
        return list(self._session.scalars(stmt))

    def count_open_claims(
        self, team_id: str, *, created_from: datetime, created_before: datetime
    ) -> int:
        stmt = select(func.count(WaiverClaim.claim_id)).where(
            WaiverClaim.team_id == team_id,
            WaiverClaim.status != WaiverClaimStatus.CANCELLED.value,
            WaiverClaim.created_at >= created_from,
            WaiverClaim.created_at < created_before,
        )
        return int(self._session.scalar(stmt) or 0)

    def recent_claims(self, team_id: str, limit: int) -> Sequence[WaiverClaim]:
        stmt = (
            select(WaiverClaim)
            .where(WaiverClaim.team_id == team_id)
            .order_by(desc(WaiverClaim.created_at), desc(WaiverClaim.claim_id))
            .limit(limit)
        )
        return list(self._session.scalars(stmt))

    # ------------------------------------------------------------------
    # Trade proposals

    def add_proposal(self, proposal: TradeProposal) -> TradeProposal:
        self._session.add(proposal)
        self._session.flush()
        return proposal

    def get_proposal(self, trade_id: int) -> TradeProposal | None:
        return self._session.get(TradeProposal, trade_id)

    def proposals_for_team(self, team_id: str) -> list[TradeProposal]:
        stmt = (
            select(TradeProposal)
            .where(
                or_(
                    TradeProposal.from_team_id == team_id,
                    TradeProposal.to_team_id == team_id,
                )
            )
            .order_by(desc(TradeProposal.created_at), desc(TradeProposal.trade_id))
        )
        return list(self._session.scalars(stmt))

    def expire_pending(self, league_id: str, as_of: date, responded_at: datetime) -> int:
        stmt = (
            update(TradeProposal)
            .where(
                TradeProposal.league_id == league_id,
                TradeProposal.status == TradeProposalStatus.PENDING.value,
                TradeProposal.effective_date <= as_of,
            )
            .values(status=TradeProposalStatus.EXPIRED.value, responded_at=responded_at)
            .execution_options(synchronize_session="fetch")
        )
        result = self._session.execute(stmt)
        return int(result.rowcount or 0)


__all__ = ["TransactionRepository"]
