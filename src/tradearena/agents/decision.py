"""Per-step trading decisions for one agent.

A decision comes from the configured model when one is available and its
reply parses. Every other outcome is routed to a deterministic SMA20 policy,
so a step always produces a decision.
"""

from __future__ import annotations

import asyncio
import json
import logging
import math
from collections.abc import Sequence

from pydantic import BaseModel

from tradearena.agents.model_client import ModelClient
from tradearena.agents.prompt import build_trading_prompt
from tradearena.domain.models import Action, Candle, Decision, PortfolioSnapshot
from tradearena.rate_limit import RequestThrottle

logger = logging.getLogger(__name__)

PARTIAL_BUY_SHARES = 5


class ModelReply(BaseModel):
    action: str
    message: str
    amount: float | None = None
    price: float | None = None


def parse_model_reply(text: str) -> ModelReply:
    """Parse a model's JSON reply, tolerating markdown code fences."""
    cleaned = text.strip().replace("```json", "").replace("```", "").strip()
    if not cleaned:
        raise ValueError("Model reply is empty")
    data = json.loads(cleaned)
    if not isinstance(data, dict):
        raise ValueError("Model reply must be a JSON object")
    return ModelReply.model_validate(data)


def normalize_reply(
    reply: ModelReply,
    close: float,
    max_trade_size: int = 10,
    low: float | None = None,
    high: float | None = None,
) -> Decision:
    """Coerce a parsed reply into a bounded decision.

    A model price outside the candle range given by ``low``/``high`` is clamped
    into it.
    """
    action_text = reply.action.strip().lower()
    action = Action(action_text) if action_text in {a.value for a in Action} else Action.HOLD

    amount = reply.amount if reply.amount is not None and math.isfinite(reply.amount) else 0.0
    amount = min(max(amount, 0.0), float(max_trade_size))

    price = reply.price
    if price is None or not math.isfinite(price) or price <= 0:
        price = close
    if low is not None:
        price = max(price, low)
    if high is not None:
        price = min(price, high)

    return Decision(
        action=action,
        amount=int(amount),
        price=float(price),
        message=reply.message,
        source="model",
    )


def fallback_decision(
    close: float,
    sma20: float,
    cash: float,
    shares: int,
    max_trade_size: int = 10,
) -> Decision:
    """Rule-based SMA20 policy used whenever the model cannot decide."""
    if close <= 0:
        raise ValueError("close must be greater than zero")
    affordable = math.floor(cash / close)

    if close >= sma20 and cash >= close * max_trade_size:
        action, amount = Action.BUY, max_trade_size
        message = (
            f"AGGRESSIVE BUY: Price ${close:.2f} at/above SMA20. "
            f"Going all-in with {amount} shares!"
        )
    elif close >= sma20 and cash >= close * PARTIAL_BUY_SHARES:
        action, amount = Action.BUY, min(max_trade_size, affordable)
        message = f"Buying {amount} shares - price trending above SMA20. Deploying capital!"
    elif close < sma20 and shares >= max_trade_size:
        action, amount = Action.SELL, max_trade_size
        message = f"QUICK SELL: Price ${close:.2f} below SMA20. Exiting to preserve capital!"
    elif close < sma20 and shares > 0:
        action, amount = Action.SELL, min(max_trade_size, shares)
        message = f"Selling {amount} shares - cutting losses on downtrend."
    elif shares > 0 and cash < close:
        action, amount = Action.HOLD, 0
        message = "Holding position. Cannot afford more, waiting to exit on the next downturn."
    elif cash >= close:
        action, amount = Action.BUY, min(max_trade_size, affordable)
        message = f"Deploying available capital - {amount} shares. Can't let cash sit idle!"
    else:
        action, amount = Action.HOLD, 0
        message = "Monitoring for entry point."

    return Decision(action=action, amount=amount, price=close, message=message, source="fallback")


class DecisionProtocol:
    def __init__(
        self,
        client: ModelClient | None = None,
        throttle: RequestThrottle | None = None,
        timeout_seconds: float = 30.0,
        max_trade_size: int = 10,
        context_window: int = 10,
    ) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        if max_trade_size <= 0:
            raise ValueError("max_trade_size must be greater than zero")
        if context_window <= 0:
            raise ValueError("context_window must be greater than zero")

        self.client = client
        self.throttle = throttle
        self.timeout_seconds = timeout_seconds
        self.max_trade_size = max_trade_size
        self.context_window = context_window

    async def decide(
        self,
        model_id: str,
        candle: Candle,
        previous_candles: Sequence[Candle],
        portfolio: PortfolioSnapshot,
        previous_decisions: Sequence[Decision] = (),
    ) -> Decision:
        if self.client is None:
            return self._fallback(candle, portfolio, model_id, "no model credential configured")

        if self.throttle is not None:
            allowed, retry_after = self.throttle.allow(model_id)
            if not allowed:
                return self._fallback(
                    candle, portfolio, model_id, f"throttled, retry in {retry_after:.1f}s"
                )

        prompt = build_trading_prompt(
            candle,
            previous_candles,
            portfolio,
            previous_decisions,
            max_trade_size=self.max_trade_size,
            context_window=self.context_window,
        )
        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(self.client.decide, prompt, model_id),
                timeout=self.timeout_seconds,
            )
            reply = parse_model_reply(text)
        except Exception as exc:
            logger.warning("Model call for %s failed", model_id, exc_info=True)
            return self._fallback(candle, portfolio, model_id, f"{type(exc).__name__}: {exc}")

        return normalize_reply(
            reply, candle.close, self.max_trade_size, low=candle.low, high=candle.high
        )

    def _fallback(
        self,
        candle: Candle,
        portfolio: PortfolioSnapshot,
        model_id: str,
        reason: str,
    ) -> Decision:
        logger.warning("Using fallback policy for %s: %s", model_id, reason)
        return fallback_decision(
            close=candle.close,
            sma20=candle.sma20,
            cash=portfolio.cash,
            shares=portfolio.shares,
            max_trade_size=self.max_trade_size,
        )
