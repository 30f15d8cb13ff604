from tradearena.domain.models import (
    Action,
    Candle,
    ChatMessage,
    Decision,
    PortfolioPoint,
    PortfolioSnapshot,
    RawCandle,
)

__all__ = [
    "Action",
    "Candle",
    "ChatMessage",
    "Decision",
    "PortfolioPoint",
    "PortfolioSnapshot",
    "RawCandle",
]
