from __future__ import annotations

from datetime import date
from typing import Annotated

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from . import schemas
from .core.config import settings
from .core.errors import NotFoundError, RuleViolation
from .db import get_db, init_db
from .services import (
    DashboardService,
    DiagnosticsService,
    DraftService,
    InstrumentCandidate,
    LeagueService,
    ScoringService,
    SeasonService,
    SwapService,
    TradeService,
    TradingCalendarService,
    WaiverService,
)

app = FastAPI(title="TradeLeague Settlement API", version="0.1.0", debug=settings.debug)


@app.on_event("startup")
def on_startup() -> None:
    """Create tables when the API boots."""

    init_db()


@app.exception_handler(RuleViolation)
async def _rule_violation_handler(request: Request, exc: RuleViolation) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def _not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.get("/healthz", tags=["system"])
def healthcheck() -> dict[str, str]:
    """Basic readiness probe consumed by infrastructure monitors."""

    return {"status": "ok"}


# ----------------------------------------------------------------------
# Service wiring; every mutating endpoint commits only after its service returns.


def _scoring_service(db: Session = Depends(get_db)) -> ScoringService:
    return ScoringService(db)


def _diagnostics_service(db: Session = Depends(get_db)) -> DiagnosticsService:
    return DiagnosticsService(db)


def _draft_service(db: Session = Depends(get_db)) -> DraftService:
    return DraftService(db)


def _swap_service(db: Session = Depends(get_db)) -> SwapService:
    return SwapService(db)


def _waiver_service(db: Session = Depends(get_db)) -> WaiverService:
    return WaiverService(db)


def _trade_service(db: Session = Depends(get_db)) -> TradeService:
    return TradeService(db)


def _calendar_service(db: Session = Depends(get_db)) -> TradingCalendarService:
    return TradingCalendarService(db)


def _season_service(db: Session = Depends(get_db)) -> SeasonService:
    return SeasonService(db)


def _league_service(db: Session = Depends(get_db)) -> LeagueService:
    return LeagueService(db)


def _dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)


# ----------------------------------------------------------------------
# Seasons and leagues


@app.post(
    "/seasons/{season_id}/instruments",
    response_model=schemas.InstrumentPopulationOut,
    tags=["seasons"],
)
def populate_instruments(
    season_id: str,
    payload: schemas.PopulateInstrumentsRequest,
    service: SeasonService = Depends(_season_service),
    db: Session = Depends(get_db),
):
    """Replace the season's instruments, tiered by market-cap quintile."""

    candidates = [InstrumentCandidate(**item.model_dump()) for item in payload.candidates]
    result = service.populate_instruments(
        season_id, candidates, symbol_limit=payload.symbol_limit
    )
    db.commit()
    return schemas.InstrumentPopulationOut.model_validate(result)


@app.get(
    "/seasons/{season_id}/instruments",
    response_model=list[schemas.InstrumentOut],
    tags=["seasons"],
)
def season_instruments(season_id: str, service: SeasonService = Depends(_season_service)):
    return service.season_instruments(season_id)


@app.post("/seasons/{season_id}/activate", response_model=schemas.SeasonOut, tags=["seasons"])
def activate_season(
    season_id: str,
    service: SeasonService = Depends(_season_service),
    db: Session = Depends(get_db),
):
    season = service.activate_season(season_id)
    db.commit()
    return season


@app.post("/leagues", response_model=schemas.LeagueOut, tags=["leagues"])
def create_league(
    payload: schemas.LeagueCreateRequest,
    service: LeagueService = Depends(_league_service),
    db: Session = Depends(get_db),
):
    league = service.create_league(
        payload.season_id, payload.name, payload.ownership_mode, payload.creator_id
    )
    db.commit()
    return league


@app.post("/leagues/{league_id}/teams", response_model=schemas.TeamOut, tags=["leagues"])
def create_team(
    league_id: str,
    payload: schemas.TeamCreateRequest,
    service: LeagueService = Depends(_league_service),
    db: Session = Depends(get_db),
):
    team = service.create_team(league_id, payload.user_id, payload.name)
    db.commit()
    return team


# ----------------------------------------------------------------------
# Scores


@app.get(
    "/teams/{team_id}/scores/{score_date}",
    response_model=schemas.DayScoreOut,
    tags=["scores"],
)
def get_day_score(
    team_id: str,
    score_date: date,
    force: Annotated[bool, Query(description="Recompute even when cached")] = False,
    service: ScoringService = Depends(_scoring_service),
    db: Session = Depends(get_db),
):
    """Return one team's score for a date, computing and caching it when needed."""

    score = service.get_or_compute(team_id, score_date, force_recompute=force)
    db.commit()
    return schemas.DayScoreOut.model_validate(score)


@app.post(
    "/teams/{team_id}/scores/backfill",
    response_model=schemas.RangeScoreOut,
    tags=["scores"],
)
def backfill_scores(
    team_id: str,
    payload: schemas.BackfillRequest,
    service: ScoringService = Depends(_scoring_service),
    db: Session = Depends(get_db),
):
    result = service.range_score(
        team_id, payload.start, payload.end, force_recompute=payload.force_recompute
    )
    db.commit()
    return schemas.RangeScoreOut.model_validate(result)


@app.post("/scores/invalidate", response_model=schemas.InvalidateResult, tags=["scores"])
def invalidate_scores(
    payload: schemas.InvalidateRequest,
    service: ScoringService = Depends(_scoring_service),
    db: Session = Depends(get_db),
):
    removed = service.invalidate(
        team_id=payload.team_id, from_date=payload.from_date, to_date=payload.to_date
    )
    db.commit()
    return schemas.InvalidateResult(removed=removed)


@app.get(
    "/teams/{team_id}/scores",
    response_model=list[schemas.ScoreHistoryPointOut],
    tags=["scores"],
)
def score_history(
    team_id: str,
    up_to: date,
    days: Annotated[int, Query(ge=1, le=366)] = 30,
    service: ScoringService = Depends(_scoring_service),
):
    return [
        schemas.ScoreHistoryPointOut.model_validate(point)
        for point in service.score_history(team_id, up_to, days)
    ]


@app.get(
    "/leagues/{league_id}/standings",
    response_model=schemas.StandingsOut,
    tags=["scores"],
)
def league_standings(
    league_id: str,
    as_of: date,
    service: ScoringService = Depends(_scoring_service),
):
    rows = service.league_standings(league_id, as_of)
    return schemas.StandingsOut(
        league_id=league_id,
        as_of=as_of,
        items=[schemas.StandingOut.model_validate(row) for row in rows],
    )


@app.get(
    "/teams/{team_id}/snapshot/{snapshot_date}",
    response_model=schemas.TeamSnapshotOut,
    tags=["diagnostics"],
)
def team_snapshot(
    team_id: str,
    snapshot_date: date,
    force: bool = False,
    service: DiagnosticsService = Depends(_diagnostics_service),
    db: Session = Depends(get_db),
):
    """Holdings, roster validity and day score for one team on one date."""

    snapshot = service.snapshot(team_id, snapshot_date, force_recompute=force)
    db.commit()
    return schemas.TeamSnapshotOut.model_validate(snapshot)


# ----------------------------------------------------------------------
# Dashboard


@app.get(
    "/teams/{team_id}/holdings/{holding_date}",
    response_model=list[schemas.HoldingPriceOut],
    tags=["dashboard"],
)
def team_holdings_with_prices(
    team_id: str,
    holding_date: date,
    service: DashboardService = Depends(_dashboard_service),
):
    return [
        schemas.HoldingPriceOut.model_validate(row)
        for row in service.holdings_with_prices(team_id, holding_date)
    ]


@app.get("/movers/{price_date}", response_model=list[schemas.MoverOut], tags=["dashboard"])
def global_movers(
    price_date: date,
    limit: Annotated[int, Query(ge=1, le=25)] = 8,
    service: DashboardService = Depends(_dashboard_service),
):
    return [
        schemas.MoverOut.model_validate(mover)
        for mover in service.global_movers(price_date, limit)
    ]


# ----------------------------------------------------------------------
# Draft


@app.post("/draft", response_model=schemas.DraftResultOut, tags=["draft"])
def submit_draft(
    payload: schemas.DraftRequest,
    service: DraftService = Depends(_draft_service),
    db: Session = Depends(get_db),
):
    result = service.submit_portfolio(payload.team_id, payload.symbols)
    db.commit()
    return schemas.DraftResultOut.model_validate(result)


@app.get(
    "/leagues/{league_id}/instruments",
    response_model=list[schemas.InstrumentAvailabilityOut],
    tags=["draft"],
)
def available_instruments(
    league_id: str,
    service: DraftService = Depends(_draft_service),
):
    return [
        schemas.InstrumentAvailabilityOut.model_validate(row)
        for row in service.available_instruments(league_id)
    ]


# ----------------------------------------------------------------------
# Swaps and waivers


@app.post("/swaps", response_model=schemas.SwapResultOut, tags=["swaps"])
def submit_swap(
    payload: schemas.SwapRequest,
    service: SwapService = Depends(_swap_service),
    db: Session = Depends(get_db),
):
    result = service.submit_swap(
        payload.team_id,
        payload.drop_symbol,
        payload.add_symbol,
        bid=payload.bid,
    )
    db.commit()
    return schemas.SwapResultOut.model_validate(result)


@app.get(
    "/teams/{team_id}/swaps/capacity",
    response_model=schemas.SwapCapacityOut,
    tags=["swaps"],
)
def swap_capacity(team_id: str, service: SwapService = Depends(_swap_service)):
    return schemas.SwapCapacityOut.model_validate(service.remaining_swaps(team_id))


@app.get(
    "/teams/{team_id}/swaps/history",
    response_model=schemas.SwapHistoryOut,
    tags=["swaps"],
)
def swap_history(
    team_id: str,
    limit: Annotated[int, Query(ge=1, le=500)] = 50,
    service: SwapService = Depends(_swap_service),
):
    return schemas.SwapHistoryOut.model_validate(service.swap_history(team_id, limit))


@app.post(
    "/claims/{claim_id}/cancel",
    response_model=schemas.WaiverClaimOut,
    tags=["swaps"],
)
def cancel_claim(
    claim_id: int,
    payload: schemas.TeamActionRequest,
    service: SwapService = Depends(_swap_service),
    db: Session = Depends(get_db),
):
    claim = service.cancel_claim(claim_id, payload.team_id)
    db.commit()
    return claim


@app.post(
    "/leagues/{league_id}/claims/resolve",
    response_model=schemas.WaiverResolutionOut,
    tags=["swaps"],
)
def resolve_claims(
    league_id: str,
    payload: schemas.ResolveClaimsRequest,
    service: WaiverService = Depends(_waiver_service),
    db: Session = Depends(get_db),
):
    """Run the FAAB auction for every pending claim effective on the given date."""

    result = service.resolve_claims(league_id, payload.effective_date)
    db.commit()
    return schemas.WaiverResolutionOut.model_validate(result)


# ----------------------------------------------------------------------
# Trades


@app.post("/trades", response_model=schemas.TradeProposalOut, tags=["trades"])
def propose_trade(
    payload: schemas.TradeProposalRequest,
    service: TradeService = Depends(_trade_service),
    db: Session = Depends(get_db),
):
    proposal = service.propose(
        payload.from_team_id,
        payload.to_team_id,
        payload.offered_symbols,
        payload.requested_symbols,
    )
    db.commit()
    return proposal


@app.post(
    "/trades/{trade_id}/accept",
    response_model=schemas.TradeProposalOut,
    tags=["trades"],
)
def accept_trade(
    trade_id: int,
    payload: schemas.TradeResponseRequest,
    service: TradeService = Depends(_trade_service),
    db: Session = Depends(get_db),
):
    proposal = service.accept(trade_id, acting_team_id=payload.team_id)
    db.commit()
    return proposal


@app.post(
    "/trades/{trade_id}/reject",
    response_model=schemas.TradeProposalOut,
    tags=["trades"],
)
def reject_trade(
    trade_id: int,
    payload: schemas.TradeResponseRequest,
    service: TradeService = Depends(_trade_service),
    db: Session = Depends(get_db),
):
    proposal = service.reject(trade_id, payload.team_id)
    db.commit()
    return proposal


@app.post(
    "/trades/{trade_id}/cancel",
    response_model=schemas.TradeProposalOut,
    tags=["trades"],
)
def cancel_trade(
    trade_id: int,
    payload: schemas.TradeResponseRequest,
    service: TradeService = Depends(_trade_service),
    db: Session = Depends(get_db),
):
    proposal = service.cancel(trade_id, payload.team_id)
    db.commit()
    return proposal


@app.get(
    "/teams/{team_id}/trades",
    response_model=list[schemas.TradeProposalOut],
    tags=["trades"],
)
def team_trades(team_id: str, service: TradeService = Depends(_trade_service)):
    return service.proposals_for_team(team_id)


@app.post(
    "/leagues/{league_id}/trades/expire",
    response_model=schemas.ExpireTradesResult,
    tags=["trades"],
)
def expire_trades(
    league_id: str,
    payload: schemas.ExpireTradesRequest,
    service: TradeService = Depends(_trade_service),
    db: Session = Depends(get_db),
):
    expired = service.expire_pending(league_id, payload.as_of)
    db.commit()
    return schemas.ExpireTradesResult(expired=expired)


# ----------------------------------------------------------------------
# Calendar


@app.post(
    "/calendar/{year}/populate",
    response_model=schemas.CalendarPopulationOut,
    tags=["calendar"],
)
def populate_calendar(
    year: int,
    service: TradingCalendarService = Depends(_calendar_service),
    db: Session = Depends(get_db),
):
    result = service.populate_year(year)
    db.commit()
    return schemas.CalendarPopulationOut.model_validate(result)
