from tradearena.config import Settings, SimulationConfig
from tradearena.domain.models import Action, Candle, Decision, RawCandle
from tradearena.ledger import Portfolio, PortfolioLedger
from tradearena.series import CandleSeriesBuilder, InsufficientDataError, build_candle_series
from tradearena.simulation import AgentState, SimulationDriver

__version__ = "0.1.0"

__all__ = [
    "Action",
    "AgentState",
    "Candle",
    "CandleSeriesBuilder",
    "Decision",
    "InsufficientDataError",
    "Portfolio",
    "PortfolioLedger",
    "RawCandle",
    "Settings",
    "SimulationConfig",
    "SimulationDriver",
    "build_candle_series",
]
