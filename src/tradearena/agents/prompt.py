from __future__ import annotations

from collections.abc import Sequence

from tradearena.domain.models import Candle, Decision, PortfolioSnapshot

SYSTEM_PROMPT = (
    "You are an AGGRESSIVE trading AI with a high-risk, high-reward strategy. "
    "You actively seek trading opportunities and make bold moves. "
    "You prefer action over caution. Always respond with valid JSON only."
)


def build_trading_prompt(
    candle: Candle,
    previous_candles: Sequence[Candle],
    portfolio: PortfolioSnapshot,
    previous_decisions: Sequence[Decision] = (),
    max_trade_size: int = 10,
    context_window: int = 10,
) -> str:
    recent_candles = list(previous_candles)[-context_window:]
    recent_decisions = list(previous_decisions)[-context_window:]

    lines = [
        "You are an AGGRESSIVE day trader competing against another AI to maximize profits.",
        "",
        "Current Candle:",
        f"- Open: ${candle.open:.2f}",
        f"- High: ${candle.high:.2f}",
        f"- Low: ${candle.low:.2f}",
        f"- Close: ${candle.close:.2f}",
        f"- Volume: {candle.volume:,}",
        f"- SMA20: ${candle.sma20:.2f}",
        f"- SMA50: ${candle.sma50:.2f}",
        f"- RSI: {candle.rsi:.2f}",
        f"- MACD: {candle.macd:.2f} (signal {candle.macd_signal:.2f})",
        "",
        f"Previous {len(recent_candles)} Candles:",
    ]
    lines.extend(
        f"{i}. Close: ${c.close:.2f}, Volume: {c.volume:,}, "
        f"SMA20: ${c.sma20:.2f}, SMA50: ${c.sma50:.2f}"
        for i, c in enumerate(recent_candles, start=1)
    )
    lines.extend(
        [
            "",
            "Your Portfolio:",
            f"- Cash: ${portfolio.cash:.2f}",
            f"- Shares: {portfolio.shares}",
            f"- Current Value: ${portfolio.value:.2f}",
        ]
    )
    if recent_decisions:
        lines.extend(["", f"Your Last {len(recent_decisions)} Decisions:"])
        lines.extend(
            f'{i}. {d.action.upper()} {d.amount} shares @ ${d.price:.2f} - "{d.message}"'
            for i, d in enumerate(recent_decisions, start=1)
        )

    lines.extend(
        [
            "",
            "Trading Strategy:",
            "- You are AGGRESSIVE: act on momentum, use your full buying power.",
            "- Price at or above SMA20 is bullish, below SMA20 is bearish.",
            "- Cut losers quickly and never let cash sit idle.",
            "",
            "Rules:",
            "- You can buy only if cash >= amount * close.",
            "- You can sell only shares you hold.",
            f"- Maximum trade size: {max_trade_size} shares.",
            "",
            "Respond ONLY with valid JSON in this exact format:",
            '{"action": "buy" | "sell" | "hold", '
            f'"amount": <integer 0-{max_trade_size}>, '
            '"message": "<one sentence rationale>"}',
        ]
    )
    return "\n".join(lines)
