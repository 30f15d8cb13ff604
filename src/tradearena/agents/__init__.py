from tradearena.agents.decision import (
    DecisionProtocol,
    fallback_decision,
    normalize_reply,
    parse_model_reply,
)
from tradearena.agents.model_client import ModelCallError, ModelClient, OpenRouterClient
from tradearena.agents.prompt import build_trading_prompt

__all__ = [
    "DecisionProtocol",
    "ModelCallError",
    "ModelClient",
    "OpenRouterClient",
    "build_trading_prompt",
    "fallback_decision",
    "normalize_reply",
    "parse_model_reply",
]
