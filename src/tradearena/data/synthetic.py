from __future__ import annotations

from datetime import UTC, datetime, timedelta

import numpy as np

from tradearena.data.base import CandleSource
from tradearena.domain.models import RawCandle

DAY_MS = 24 * 60 * 60 * 1000


class SyntheticCandleSource(CandleSource):
    """Random-walk daily candles for demos.

    Pass ``seed`` for a reproducible series. Without it the generator draws
    fresh entropy on every call.
    """

    def __init__(
        self,
        count: int = 120,
        base_price: float = 250.0,
        seed: int | None = None,
        start: datetime | None = None,
        max_daily_move: float = 10.0,
        max_intraday_range: float = 8.0,
        price_floor: float = 50.0,
    ) -> None:
        if count <= 0:
            raise ValueError("count must be greater than zero")
        if base_price <= 0:
            raise ValueError("base_price must be greater than zero")
        if price_floor <= 0:
            raise ValueError("price_floor must be greater than zero")

        self.count = count
        self.base_price = base_price
        self.seed = seed
        self.start = start
        self.max_daily_move = max_daily_move
        self.max_intraday_range = max_intraday_range
        self.price_floor = price_floor

    def fetch_candles(self) -> list[RawCandle]:
        rng = np.random.default_rng(self.seed)
        end = self.start or datetime.now(UTC)
        first_ms = int((end - timedelta(days=self.count)).timestamp() * 1000)

        candles: list[RawCandle] = []
        price = self.base_price
        for i in range(self.count):
            open_ = price
            # slight upward drift, as in the reference generator
            change = (rng.random() - 0.48) * self.max_daily_move
            close = max(self.price_floor, price + change)
            high = max(open_, close) + rng.random() * self.max_intraday_range
            low = min(open_, close) - rng.random() * self.max_intraday_range
            low = max(low, min(open_, close) * 0.5)
            volume = int(5_000_000 + rng.random() * 10_000_000)

            candles.append(
                RawCandle(
                    timestamp=first_ms + i * DAY_MS,
                    open=float(open_),
                    high=float(high),
                    low=float(low),
                    close=float(close),
                    volume=volume,
                )
            )
            price = close
        return candles
