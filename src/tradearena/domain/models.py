from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Action(StrEnum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


@dataclass(slots=True, frozen=True)
class RawCandle:
    """One OHLCV tuple as delivered by a candle source."""

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: int


@dataclass(slots=True, frozen=True)
class Candle:
    """OHLCV plus indicators, rounded to cents at creation time.

    ``timestamp`` is epoch milliseconds.
    """

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: int
    rsi: float
    sma20: float
    sma50: float
    macd: float
    macd_signal: float
    macd_diff: float


@dataclass(slots=True, frozen=True)
class Decision:
    action: Action
    amount: int
    price: float
    message: str
    source: str = "model"


@dataclass(slots=True, frozen=True)
class PortfolioPoint:
    timestamp: int
    value: float


@dataclass(slots=True, frozen=True)
class PortfolioSnapshot:
    cash: float
    shares: int
    value: float


@dataclass(slots=True, frozen=True)
class ChatMessage:
    agent: str
    timestamp: int
    action: Action
    amount: int
    price: float
    message: str
