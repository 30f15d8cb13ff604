from tradearena.data.base import CandleSource
from tradearena.data.synthetic import SyntheticCandleSource
from tradearena.data.yfinance_provider import YFinanceProvider

__all__ = ["CandleSource", "SyntheticCandleSource", "YFinanceProvider"]
