from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from tradearena.domain.models import Action, Decision, PortfolioPoint, PortfolioSnapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Portfolio:
    cash: float
    shares: int = 0
    history: list[PortfolioPoint] = field(default_factory=list)
    last_price: float = 0.0

    def value(self, price: float) -> float:
        return self.cash + self.shares * price

    def snapshot(self, price: float) -> PortfolioSnapshot:
        return PortfolioSnapshot(cash=self.cash, shares=self.shares, value=self.value(price))

    def copy(self) -> Portfolio:
        return Portfolio(
            cash=self.cash,
            shares=self.shares,
            history=list(self.history),
            last_price=self.last_price,
        )


@dataclass(slots=True, frozen=True)
class TradeResult:
    action: Action
    requested: int
    executed: int
    price: float
    value: float


class PortfolioLedger:
    """Applies decisions to portfolios, clamping trades to what is feasible."""

    def apply(self, portfolio: Portfolio, decision: Decision, timestamp: int) -> TradeResult:
        price = decision.price
        if not math.isfinite(price) or price <= 0:
            raise ValueError("decision price must be greater than zero")

        requested = 0 if decision.action == Action.HOLD else max(0, int(decision.amount))
        executed = 0

        if decision.action == Action.BUY:
            executed = min(requested, math.floor(portfolio.cash / price))
            while executed > 0 and executed * price > portfolio.cash:
                executed -= 1
            portfolio.cash -= executed * price
            portfolio.shares += executed
        elif decision.action == Action.SELL:
            executed = min(requested, portfolio.shares)
            portfolio.cash += executed * price
            portfolio.shares -= executed

        value = portfolio.value(price)
        portfolio.history.append(PortfolioPoint(timestamp=timestamp, value=value))
        portfolio.last_price = price

        if executed != requested:
            logger.info(
                "Clamped %s from %s to %s shares @ %.2f",
                decision.action,
                requested,
                executed,
                price,
            )
        return TradeResult(
            action=decision.action,
            requested=requested,
            executed=executed,
            price=price,
            value=value,
        )
