"""Technical indicators over a growing close-price history.

The functions never raise on short input. They fall back to neutral or seed
values so that a series can be built from its very first candle. Results are
unrounded; rounding happens when a candle is created.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class MACDResult:
    macd: float
    signal: float
    histogram: float


def rsi(prices: Sequence[float], period: int = 14) -> float:
    if len(prices) < period + 1:
        return 50.0

    changes = [current - previous for previous, current in zip(prices, prices[1:])]
    recent = changes[-period:]
    avg_gain = sum(change for change in recent if change > 0) / period
    avg_loss = sum(-change for change in recent if change < 0) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def sma(prices: Sequence[float], period: int) -> float:
    if not prices:
        raise ValueError("prices must be non-empty")
    window = prices[-period:] if len(prices) >= period else prices
    return sum(window) / len(window)


def ema(prices: Sequence[float], period: int) -> float:
    if not prices:
        raise ValueError("prices must be non-empty")
    if len(prices) < period:
        return float(prices[-1])
    return _smooth(prices, period)


def ema_of_series(values: Sequence[float], period: int) -> float:
    """EMA over an arbitrary series, e.g. past MACD values for the signal line."""
    if not values:
        return 0.0
    if len(values) < period:
        return float(values[-1])
    return _smooth(values, period)


def macd(
    prices: Sequence[float],
    macd_history: Sequence[float] = (),
    fast: int = 12,
    slow: int = 26,
    signal_period: int = 9,
) -> MACDResult:
    """MACD line, signal and histogram for the latest price.

    Returns zeros until ``slow`` prices exist. The caller stores the returned
    ``macd`` value in its own history for the next call.
    """
    if len(prices) < slow:
        return MACDResult(macd=0.0, signal=0.0, histogram=0.0)

    line = ema(prices, fast) - ema(prices, slow)
    values = [*macd_history, line]
    signal = ema_of_series(values, signal_period) if len(values) >= signal_period else line
    return MACDResult(macd=line, signal=signal, histogram=line - signal)


def _smooth(values: Sequence[float], period: int) -> float:
    multiplier = 2.0 / (period + 1)
    current = sum(values[:period]) / period
    for value in values[period:]:
        current = (value - current) * multiplier + current
    return current
