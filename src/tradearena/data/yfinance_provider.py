from __future__ import annotations

from typing import cast

import pandas as pd
import yfinance as yf  # type: ignore[import-untyped]

from tradearena.data.base import CandleSource
from tradearena.domain.models import RawCandle


class YFinanceProvider(CandleSource):
    def __init__(self, symbol: str = "TSLA", period: str = "6mo", interval: str = "1d") -> None:
        if not symbol.strip():
            raise ValueError("symbol must be non-empty")
        self.symbol = symbol.strip().upper()
        self.period = period
        self.interval = interval

    def _download(self) -> pd.DataFrame:
        frame = cast(
            pd.DataFrame,
            yf.download(
                self.symbol,
                period=self.period,
                interval=self.interval,
                progress=False,
                auto_adjust=True,
                threads=False,
            ),
        )
        if not frame.empty:
            return frame

        ticker = yf.Ticker(self.symbol)
        return cast(
            pd.DataFrame,
            ticker.history(period=self.period, interval=self.interval, auto_adjust=True),
        )

    def fetch_ohlcv(self) -> pd.DataFrame:
        frame = self._download()
        if frame.empty:
            raise ValueError(
                "No data returned for "
                f"symbol={self.symbol} period={self.period} interval={self.interval}"
            )

        if isinstance(frame.columns, pd.MultiIndex):
            frame.columns = frame.columns.get_level_values(0)

        normalized = frame.rename(columns=str.lower)
        ordered_columns = ["open", "high", "low", "close", "volume"]
        missing = set(ordered_columns).difference(normalized.columns)
        if missing:
            raise ValueError(f"Missing expected columns: {sorted(missing)}")

        result = normalized[ordered_columns].dropna().sort_index()
        if (result[["open", "high", "low", "close"]] <= 0).any().any():
            raise ValueError(f"Non-positive prices returned for symbol={self.symbol}")
        return cast(pd.DataFrame, result)

    def fetch_candles(self) -> list[RawCandle]:
        frame = self.fetch_ohlcv()
        index = pd.DatetimeIndex(frame.index)
        if index.tz is None:
            index = index.tz_localize("UTC")
        millis = (index - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)

        return [
            RawCandle(
                timestamp=int(ts),
                open=float(row.open),
                high=max(float(row.high), float(row.open), float(row.close)),
                low=min(float(row.low), float(row.open), float(row.close)),
                close=float(row.close),
                volume=int(row.volume),
            )
            for ts, row in zip(millis, frame.itertuples(index=False), strict=True)
        ]
