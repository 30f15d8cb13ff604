"""Clock-driven simulation of agents trading over a fixed candle series.

One tick advances the candle index by one and runs decide-then-apply for
each agent in configuration order. Ticks never overlap. Pause and reset take
effect between ticks only.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from tradearena.agents.decision import DecisionProtocol
from tradearena.agents.model_client import OpenRouterClient
from tradearena.config import AgentConfig, Settings, SimulationConfig
from tradearena.data.synthetic import SyntheticCandleSource
from tradearena.domain.models import Action, Candle, ChatMessage, Decision
from tradearena.ledger import Portfolio, PortfolioLedger, TradeResult
from tradearena.rate_limit import RequestThrottle
from tradearena.results import AgentResult, final_results
from tradearena.series import InsufficientDataError, build_candle_series, load_candles

logger = logging.getLogger(__name__)

SYSTEM_AGENT = "system"


@dataclass(slots=True)
class AgentState:
    agent_id: str
    name: str
    model_code: str
    portfolio: Portfolio
    decisions: list[Decision] = field(default_factory=list)
    trades: int = 0

    @classmethod
    def initial(cls, config: AgentConfig, initial_cash: float) -> AgentState:
        return cls(
            agent_id=config.agent_id,
            name=config.name,
            model_code=config.model_code,
            portfolio=Portfolio(cash=initial_cash),
        )

    def recent_decisions(self, window: int) -> list[Decision]:
        return self.decisions[-window:]


@dataclass(slots=True, frozen=True)
class _StagedStep:
    agent: AgentState
    decision: Decision
    portfolio: Portfolio
    trade: TradeResult


class SimulationDriver:
    def __init__(
        self,
        candles: Sequence[Candle],
        protocol: DecisionProtocol,
        config: SimulationConfig,
        ledger: PortfolioLedger | None = None,
    ) -> None:
        if not candles:
            raise InsufficientDataError("A simulation needs at least one candle")

        self.candles = tuple(candles)
        self.protocol = protocol
        self.config = config
        self.ledger = ledger or PortfolioLedger()
        self.last_error: str | None = None
        self.results: list[AgentResult] = []

        self._interval = config.tick_interval_seconds
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()
        self._wake = asyncio.Event()
        self._index = 0
        self._agents: list[AgentState] = []
        self._messages: list[ChatMessage] = []
        self._reinitialize()

    @property
    def index(self) -> int:
        return self._index

    @property
    def running(self) -> bool:
        return self._running

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def finished(self) -> bool:
        return self._index >= len(self.candles) - 1

    @property
    def current_candle(self) -> Candle:
        return self.candles[self._index]

    @property
    def agents(self) -> tuple[AgentState, ...]:
        return tuple(self._agents)

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def agent(self, agent_id: str) -> AgentState:
        for state in self._agents:
            if state.agent_id == agent_id:
                return state
        raise KeyError(agent_id)

    def play(self) -> bool:
        """Start the clock on the running event loop. Returns False once finished."""
        if self.finished:
            self._running = False
            return False
        self._running = True
        self.last_error = None
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._run())
        return True

    def pause(self) -> None:
        self._running = False
        self._wake.set()

    def set_speed(self, interval_seconds: float) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero")
        self._interval = interval_seconds
        self._wake.set()

    async def reset(self) -> None:
        self.pause()
        async with self._lock:
            self._reinitialize()
            if self.protocol.throttle is not None:
                self.protocol.throttle.reset()
        logger.info("Simulation reset")

    async def tick(self) -> list[ChatMessage]:
        async with self._lock:
            if self.finished:
                self._running = False
                return []

            index = self._index + 1
            candle = self.candles[index]
            previous = self.candles[max(0, index - self.config.context_window) : index]

            try:
                staged = [await self._step(agent, candle, previous) for agent in self._agents]
            except Exception as exc:
                logger.exception("Tick %s failed; pausing simulation", index)
                self.last_error = f"{type(exc).__name__}: {exc}"
                self._running = False
                return []

            messages = self._commit(staged, candle)
            self._index = index
            if self.finished:
                self._running = False
                messages.append(self._announce_results())
            return messages

    async def run_to_end(self, interval_seconds: float = 0.0) -> list[AgentResult]:
        """Drive every remaining tick without the background clock."""
        async with self._lock:
            if self.finished and not self.results:
                self._announce_results()
        while not self.finished:
            await self.tick()
            if self.last_error is not None:
                raise RuntimeError(f"Simulation stopped at index {self._index}: {self.last_error}")
            if interval_seconds > 0:
                await asyncio.sleep(interval_seconds)
        return self.results

    async def _run(self) -> None:
        try:
            while self._running:
                self._wake.clear()
                try:
                    await asyncio.wait_for(self._wake.wait(), timeout=self._interval)
                    continue
                except TimeoutError:
                    pass
                if not self._running:
                    break
                await self.tick()
        finally:
            self._task = None

    async def _step(
        self,
        agent: AgentState,
        candle: Candle,
        previous: Sequence[Candle],
    ) -> _StagedStep:
        decision = await self.protocol.decide(
            model_id=agent.model_code,
            candle=candle,
            previous_candles=previous,
            portfolio=agent.portfolio.snapshot(candle.close),
            previous_decisions=agent.recent_decisions(self.config.context_window),
        )
        portfolio = agent.portfolio.copy()
        trade = self.ledger.apply(portfolio, decision, candle.timestamp)
        return _StagedStep(agent=agent, decision=decision, portfolio=portfolio, trade=trade)

    def _commit(self, staged: Sequence[_StagedStep], candle: Candle) -> list[ChatMessage]:
        messages = []
        for step in staged:
            step.agent.portfolio = step.portfolio
            step.agent.decisions.append(step.decision)
            if step.trade.executed > 0:
                step.agent.trades += 1
            logger.info(
                "%s %s %s/%s @ %.2f value=%.2f (%s)",
                step.agent.agent_id,
                step.trade.action,
                step.trade.executed,
                step.trade.requested,
                step.trade.price,
                step.trade.value,
                step.decision.source,
            )
            messages.append(
                ChatMessage(
                    agent=step.agent.agent_id,
                    timestamp=candle.timestamp,
                    action=step.decision.action,
                    amount=step.trade.executed,
                    price=step.trade.price,
                    message=step.decision.message,
                )
            )
        self._messages.extend(messages)
        return messages

    def _announce_results(self) -> ChatMessage:
        final = self.candles[-1]
        self.results, winner = final_results(self._agents, final.close, self.config.initial_cash)
        for result in self.results:
            logger.info("%s final value %.2f", result.name, result.final_value)
        message = ChatMessage(
            agent=SYSTEM_AGENT,
            timestamp=final.timestamp,
            action=Action.HOLD,
            amount=0,
            price=final.close,
            message=f"Simulation Complete! {winner.name} wins with ${winner.final_value:.2f}!",
        )
        self._messages.append(message)
        return message

    def _reinitialize(self) -> None:
        self._index = 0
        self._running = False
        self.last_error = None
        self.results = []
        self._messages = []
        self._agents = [
            AgentState.initial(agent, self.config.initial_cash) for agent in self.config.agents
        ]


def build_protocol(settings: Settings) -> DecisionProtocol:
    client = None
    if settings.openrouter_api_key:
        client = OpenRouterClient(
            api_key=settings.openrouter_api_key,
            endpoint=settings.openrouter_endpoint,
            timeout_seconds=settings.model_timeout_seconds,
            temperature=settings.model_temperature,
            max_tokens=settings.model_max_tokens,
        )
    else:
        logger.warning("No OpenRouter API key configured; agents will use the fallback policy")
    return DecisionProtocol(
        client=client,
        throttle=RequestThrottle(settings.model_requests_per_minute),
        timeout_seconds=settings.model_timeout_seconds,
        max_trade_size=settings.max_trade_size,
        context_window=settings.context_window,
    )


def sample_candles(settings: Settings, seed: int | None = None) -> list[Candle]:
    source = SyntheticCandleSource(
        count=settings.sample_candles,
        base_price=settings.sample_base_price,
        seed=settings.sample_seed if seed is None else seed,
    )
    return build_candle_series(source.fetch_candles())


def build_driver(settings: Settings, candles: Sequence[Candle] | None = None) -> SimulationDriver:
    if candles is None:
        if settings.data_path.exists():
            candles = load_candles(settings.data_path)
        else:
            logger.info("%s not found; generating sample candles", settings.data_path)
            candles = sample_candles(settings)
    return SimulationDriver(
        candles=candles,
        protocol=build_protocol(settings),
        config=settings.simulation_config(),
    )
