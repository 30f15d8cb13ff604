from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import pandas as pd

from tradearena import indicators
from tradearena.domain.models import Candle, RawCandle

logger = logging.getLogger(__name__)

CANDLE_FIELDS = tuple(f.name for f in fields(Candle))


class InsufficientDataError(ValueError):
    """Raised when a series is requested from zero raw candles."""


class CandleSeriesBuilder:
    """Attaches indicators to raw candles one at a time, without look-ahead."""

    def __init__(
        self,
        rsi_period: int = 14,
        sma_fast: int = 20,
        sma_slow: int = 50,
        macd_fast: int = 12,
        macd_slow: int = 26,
        macd_signal: int = 9,
    ) -> None:
        for name, value in (
            ("rsi_period", rsi_period),
            ("sma_fast", sma_fast),
            ("sma_slow", sma_slow),
            ("macd_fast", macd_fast),
            ("macd_slow", macd_slow),
            ("macd_signal", macd_signal),
        ):
            if value <= 0:
                raise ValueError(f"{name} must be greater than zero")

        self.rsi_period = rsi_period
        self.sma_fast = sma_fast
        self.sma_slow = sma_slow
        self.macd_fast = macd_fast
        self.macd_slow = macd_slow
        self.macd_signal = macd_signal
        self._prices: list[float] = []
        self._macd_history: list[float] = []

    @property
    def price_history(self) -> tuple[float, ...]:
        return tuple(self._prices)

    def append(self, raw: RawCandle) -> Candle:
        self._prices.append(float(raw.close))
        prices = self._prices

        macd = indicators.macd(
            prices,
            self._macd_history,
            fast=self.macd_fast,
            slow=self.macd_slow,
            signal_period=self.macd_signal,
        )
        self._macd_history.append(macd.macd)

        return Candle(
            timestamp=int(raw.timestamp),
            open=round(raw.open, 2),
            high=round(raw.high, 2),
            low=round(raw.low, 2),
            close=round(raw.close, 2),
            volume=int(raw.volume),
            rsi=round(indicators.rsi(prices, self.rsi_period), 2),
            sma20=round(indicators.sma(prices, self.sma_fast), 2),
            sma50=round(indicators.sma(prices, self.sma_slow), 2),
            macd=round(macd.macd, 2),
            macd_signal=round(macd.signal, 2),
            macd_diff=round(macd.histogram, 2),
        )

    def build(self, raw_candles: Iterable[RawCandle]) -> list[Candle]:
        candles = [self.append(raw) for raw in raw_candles]
        if not candles:
            raise InsufficientDataError("At least one raw candle is required")
        return candles


def build_candle_series(raw_candles: Sequence[RawCandle], **params: int) -> list[Candle]:
    candles = CandleSeriesBuilder(**params).build(raw_candles)
    logger.debug("Built %s candles", len(candles))
    return candles


def candles_to_records(candles: Sequence[Candle]) -> list[dict[str, Any]]:
    return [asdict(candle) for candle in candles]


def candles_from_records(records: Iterable[Mapping[str, Any]]) -> list[Candle]:
    candles: list[Candle] = []
    for record in records:
        missing = set(CANDLE_FIELDS).difference(record)
        if missing:
            raise ValueError(f"Candle record missing fields: {sorted(missing)}")
        candles.append(
            Candle(
                timestamp=int(record["timestamp"]),
                volume=int(record["volume"]),
                **{
                    name: float(record[name])
                    for name in CANDLE_FIELDS
                    if name not in ("timestamp", "volume")
                },
            )
        )
    return candles


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    frame = pd.DataFrame(candles_to_records(candles), columns=list(CANDLE_FIELDS))
    frame.index = pd.to_datetime(frame["timestamp"], unit="ms", utc=True)
    frame.index.name = "date"
    return frame


def save_candles(path: Path, candles: Sequence[Candle]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".csv":
        candles_to_frame(candles).to_csv(path, index=False)
    else:
        path.write_text(json.dumps(candles_to_records(candles), indent=2), encoding="utf-8")
    logger.info("Saved %s candles to %s", len(candles), path)
    return path


def load_candles(path: Path) -> list[Candle]:
    if path.suffix.lower() == ".csv":
        records: list[dict[str, Any]] = pd.read_csv(path).to_dict(orient="records")
    else:
        loaded = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(loaded, list):
            raise ValueError("Candle file must contain a JSON array")
        records = loaded
    candles = candles_from_records(records)
    if not candles:
        raise InsufficientDataError(f"No candles found in {path}")
    return candles
