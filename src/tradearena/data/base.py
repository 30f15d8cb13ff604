from __future__ import annotations

from abc import ABC, abstractmethod

from tradearena.domain.models import RawCandle


class CandleSource(ABC):
    @abstractmethod
    def fetch_candles(self) -> list[RawCandle]:
        """Return raw OHLCV candles in chronological order."""
