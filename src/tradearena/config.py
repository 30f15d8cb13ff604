from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(slots=True, frozen=True)
class AgentConfig:
    agent_id: str
    name: str
    model_code: str


@dataclass(slots=True, frozen=True)
class SimulationConfig:
    agents: tuple[AgentConfig, ...]
    initial_cash: float = 10_000.0
    max_trade_size: int = 10
    context_window: int = 10
    tick_interval_seconds: float = 30.0

    def __post_init__(self) -> None:
        if not self.agents:
            raise ValueError("at least one agent is required")
        if len({agent.agent_id for agent in self.agents}) != len(self.agents):
            raise ValueError("agent ids must be unique")
        if self.initial_cash < 0:
            raise ValueError("initial_cash must be non-negative")
        if self.max_trade_size <= 0:
            raise ValueError("max_trade_size must be greater than zero")
        if self.context_window <= 0:
            raise ValueError("context_window must be greater than zero")
        if self.tick_interval_seconds < 0:
            raise ValueError("tick_interval_seconds must be non-negative")


class Settings(BaseSettings):
    """Environment-backed runtime settings."""

    app_name: str = "TradeArena"
    env: str = "dev"
    log_level: str = "INFO"

    openrouter_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("TRADEARENA_OPENROUTER_API_KEY", "OPENROUTER_API_KEY"),
    )
    openrouter_endpoint: str = "https://openrouter.ai/api/v1"
    model_a_name: str = "Claude"
    model_a_code: str = "anthropic/claude-3.5-sonnet"
    model_b_name: str = "GPT-4"
    model_b_code: str = "openai/gpt-4o"
    model_timeout_seconds: float = Field(default=30.0, gt=0)
    model_requests_per_minute: int = Field(default=60, gt=0)
    model_temperature: float = Field(default=0.7, ge=0)
    model_max_tokens: int = Field(default=500, gt=0)

    initial_cash: float = Field(default=10_000, gt=0)
    max_trade_size: int = Field(default=10, gt=0)
    context_window: int = Field(default=10, gt=0)
    tick_interval_seconds: float = Field(default=30.0, gt=0)

    data_path: Path = Path("data/candles.json")
    sample_candles: int = Field(default=120, gt=0)
    sample_base_price: float = Field(default=250.0, gt=0)
    sample_seed: int | None = None

    @field_validator("openrouter_api_key", "sample_seed", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    model_config = SettingsConfigDict(
        env_prefix="TRADEARENA_",
        env_file=".env",
        env_file_encoding="utf-8-sig",
        extra="ignore",
        populate_by_name=True,
    )

    def simulation_config(self) -> SimulationConfig:
        return SimulationConfig(
            agents=(
                AgentConfig(agent_id="modelA", name=self.model_a_name, model_code=self.model_a_code),
                AgentConfig(agent_id="modelB", name=self.model_b_name, model_code=self.model_b_code),
            ),
            initial_cash=self.initial_cash,
            max_trade_size=self.max_trade_size,
            context_window=self.context_window,
            tick_interval_seconds=self.tick_interval_seconds,
        )
