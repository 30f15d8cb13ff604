from __future__ import annotations

import itertools

import pytest

from tradearena.domain.models import Action, Decision, PortfolioPoint
from tradearena.ledger import Portfolio, PortfolioLedger


def _decision(action: Action, amount: int, price: float = 100.0) -> Decision:
    return Decision(action=action, amount=amount, price=price, message="test")


def test_buy_within_budget_executes_in_full() -> None:
    portfolio = Portfolio(cash=10_000.0)
    trade = PortfolioLedger().apply(portfolio, _decision(Action.BUY, 10, 250.0), timestamp=1)

    assert trade.executed == 10
    assert portfolio.cash == pytest.approx(7_500.0)
    assert portfolio.shares == 10
    assert portfolio.history == [PortfolioPoint(timestamp=1, value=pytest.approx(10_000.0))]
    assert portfolio.last_price == 250.0


def test_buy_is_clamped_to_affordable_shares() -> None:
    portfolio = Portfolio(cash=350.0)
    trade = PortfolioLedger().apply(portfolio, _decision(Action.BUY, 10, 100.0), timestamp=1)

    assert (trade.requested, trade.executed) == (10, 3)
    assert portfolio.cash == pytest.approx(50.0)
    assert portfolio.shares == 3


def test_sell_more_than_held_sells_everything() -> None:
    portfolio = Portfolio(cash=1_000.0, shares=5)
    trade = PortfolioLedger().apply(portfolio, _decision(Action.SELL, 20, 120.0), timestamp=7)

    assert trade.executed == 5
    assert portfolio.shares == 0
    assert portfolio.cash == pytest.approx(1_600.0)
    assert portfolio.history[-1].value == pytest.approx(1_600.0)


def test_hold_records_value_and_price() -> None:
    portfolio = Portfolio(cash=500.0, shares=2)
    trade = PortfolioLedger().apply(portfolio, _decision(Action.HOLD, 7, 80.0), timestamp=3)

    assert (trade.requested, trade.executed) == (0, 0)
    assert portfolio.cash == 500.0
    assert portfolio.shares == 2
    assert portfolio.history == [PortfolioPoint(timestamp=3, value=660.0)]
    assert portfolio.last_price == 80.0


@pytest.mark.parametrize("price", [0.0, -1.0, float("nan"), float("inf")])
def test_invalid_price_is_rejected(price: float) -> None:
    portfolio = Portfolio(cash=100.0)
    with pytest.raises(ValueError, match="price"):
        PortfolioLedger().apply(portfolio, _decision(Action.BUY, 1, price), timestamp=1)
    assert portfolio.history == []


def test_cash_and_shares_never_go_negative() -> None:
    ledger = PortfolioLedger()
    cashes = [0.0, 0.01, 99.99, 100.0, 1_234.56]
    share_counts = [0, 1, 10]
    prices = [0.01, 33.33, 100.0, 10_000.0]
    amounts = [0, 1, 10, 11]

    for cash, shares, price, amount, action in itertools.product(
        cashes, share_counts, prices, amounts, list(Action)
    ):
        portfolio = Portfolio(cash=cash, shares=shares)
        trade = ledger.apply(portfolio, _decision(action, amount, price), timestamp=0)
        assert portfolio.cash >= 0
        assert portfolio.shares >= 0
        assert trade.executed <= amount
        assert len(portfolio.history) == 1


def test_copy_is_independent() -> None:
    original = Portfolio(cash=100.0)
    clone = original.copy()
    PortfolioLedger().apply(clone, _decision(Action.BUY, 1, 50.0), timestamp=1)

    assert original.cash == 100.0
    assert original.shares == 0
    assert original.history == []
