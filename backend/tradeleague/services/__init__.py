"""Settlement services; each takes a Session and leaves committing to the caller."""

from .calendar_service import CalendarPopulation, TradingCalendarService
from .dashboard_service import DashboardService, HoldingPrice, Mover
from .diagnostics_service import DiagnosticsService, TeamSnapshot
from .draft_service import DraftResult, DraftService, InstrumentAvailability, PortfolioCheck
from .holdings_service import HoldingsService, LeagueHoldings
from .league_service import LeagueService
from .scoring_service import RangeScore, ScoreHistoryPoint, ScoringService, StandingRow
from .season_service import InstrumentCandidate, InstrumentPopulation, SeasonService
from .swap_service import SwapCapacity, SwapHistory, SwapResult, SwapService
from .trade_service import TradeService
from .waiver_service import WaiverAward, WaiverResolution, WaiverService

__all__ = [
    "CalendarPopulation",
    "DashboardService",
    "DiagnosticsService",
    "DraftResult",
    "DraftService",
    "HoldingPrice",
    "HoldingsService",
    "InstrumentAvailability",
    "InstrumentCandidate",
    "InstrumentPopulation",
    "LeagueHoldings",
    "LeagueService",
    "Mover",
    "PortfolioCheck",
    "RangeScore",
    "ScoreHistoryPoint",
    "ScoringService",
    "SeasonService",
    "StandingRow",
    "SwapCapacity",
    "SwapHistory",
    "SwapResult",
    "SwapService",
    "TeamSnapshot",
    "TradeService",
    "TradingCalendarService",
    "WaiverAward",
    "WaiverResolution",
    "WaiverService",
]
