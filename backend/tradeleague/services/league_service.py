"""League and team creation."""

from __future__ import annotations

from loguru import logger
from sqlalchemy.orm import Session

from tradeleague.core.config import settings
from tradeleague.core.errors import RuleViolation
from tradeleague.models import League, LeagueStatus, OwnershipMode, Team
from tradeleague.repositories import LeagueRepository


class LeagueService:
    def __init__(self, session: Session, *, faab_budget: int | None = None) -> None:
        self._leagues = LeagueRepository(session)
        self._faab_budget = settings.default_faab_budget if faab_budget is None else faab_budget

    def create_league(
        self, season_id: str, name: str, ownership_mode: str, creator_id: str
    ) -> League:
        season = self._leagues.require_season(season_id)
        mode = (ownership_mode or "").strip().upper()
        if mode not in {item.value for item in OwnershipMode}:
            raise RuleViolation(f"Unknown ownership mode {ownership_mode!r}")
        if not (name or "").strip():
            raise RuleViolation("League name is required")
        if not (creator_id or "").strip():
            raise RuleViolation("League creator is required")

        league = self._leagues.add_league(
            League(
                season_id=season.season_id,
                name=name.strip(),
                ownership_mode=mode,
                creator_id=creator_id.strip(),
                status=LeagueStatus.DRAFT_PENDING.value,
            )
        )
        logger.info("Created {} league {} in season {}", mode, league.league_id, season.season_id)
        return league

    def create_team(self, league_id: str, user_id: str, name: str) -> Team:
        """Add a user's team to a league with the configured FAAB budget."""

        league = self._leagues.require_league(league_id)
        user = (user_id or "").strip()
        if not user:
            raise RuleViolation("A user id is required")
        if not (name or "").strip():
            raise RuleViolation("Team name is required")
        if self._leagues.team_for_user(league.league_id, user) is not None:
            raise RuleViolation("User already has a team in this league")

        team = self._leagues.add_team(
            Team(
                league_id=league.league_id,
                user_id=user,
                name=name.strip(),
                faab_budget=self._faab_budget,
            )
        )
        logger.info("Created team {} for user {} in league {}", team.team_id, user, league.league_id)
        return team


__all__ = ["LeagueService"]
