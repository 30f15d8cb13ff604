from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pandas as pd

if TYPE_CHECKING:
    from tradearena.simulation import AgentState


@dataclass(slots=True, frozen=True)
class AgentResult:
    agent_id: str
    name: str
    final_value: float
    total_return: float
    max_drawdown: float
    trades: int


def total_return(values: Sequence[float], initial_value: float) -> float:
    if initial_value <= 0 or not values:
        return 0.0
    return float(values[-1] / initial_value - 1.0)


def max_drawdown(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    equity = pd.Series(values, dtype=float)
    running_max = equity.cummax()
    drawdown = (equity / running_max.where(running_max > 0)) - 1.0
    return float(drawdown.min(skipna=True)) if drawdown.notna().any() else 0.0


def final_results(
    agents: Sequence[AgentState],
    final_price: float,
    initial_cash: float,
) -> tuple[list[AgentResult], AgentResult]:
    if not agents:
        raise ValueError("at least one agent is required")

    results = []
    for agent in agents:
        values = [point.value for point in agent.portfolio.history]
        final_value = agent.portfolio.value(final_price)
        results.append(
            AgentResult(
                agent_id=agent.agent_id,
                name=agent.name,
                final_value=final_value,
                total_return=total_return([*values, final_value], initial_cash),
                max_drawdown=max_drawdown([initial_cash, *values]),
                trades=agent.trades,
            )
        )

    # ties go to the later agent
    winner = results[0]
    for result in results[1:]:
        if result.final_value >= winner.final_value:
            winner = result
    return results, winner
