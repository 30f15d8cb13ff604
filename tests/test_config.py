from __future__ import annotations

import os

import pytest

from tradearena.config import AgentConfig, Settings, SimulationConfig


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in list(os.environ):
        if name.startswith("TRADEARENA_") or name == "OPENROUTER_API_KEY":
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def test_settings_defaults_are_valid() -> None:
    settings = Settings()
    assert settings.openrouter_api_key is None
    assert settings.initial_cash == 10_000
    assert settings.max_trade_size == 10
    assert settings.context_window == 10
    assert settings.tick_interval_seconds == 30.0
    assert settings.model_a_code == "anthropic/claude-3.5-sonnet"
    assert settings.model_b_code == "openai/gpt-4o"


def test_settings_reads_unprefixed_openrouter_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    assert Settings().openrouter_api_key == "sk-test"


def test_settings_blank_values_become_none(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRADEARENA_OPENROUTER_API_KEY", "  ")
    monkeypatch.setenv("TRADEARENA_SAMPLE_SEED", "")
    settings = Settings()
    assert settings.openrouter_api_key is None
    assert settings.sample_seed is None


def test_simulation_config_orders_agents() -> None:
    config = Settings(model_a_name="Alpha", model_b_name="Beta").simulation_config()
    assert [agent.agent_id for agent in config.agents] == ["modelA", "modelB"]
    assert [agent.name for agent in config.agents] == ["Alpha", "Beta"]


def test_simulation_config_validation() -> None:
    agent = AgentConfig("a", "A", "model")
    with pytest.raises(ValueError, match="at least one agent"):
        SimulationConfig(agents=())
    with pytest.raises(ValueError, match="unique"):
        SimulationConfig(agents=(agent, agent))
    with pytest.raises(ValueError, match="max_trade_size"):
        SimulationConfig(agents=(agent,), max_trade_size=0)
    with pytest.raises(ValueError, match="initial_cash"):
        SimulationConfig(agents=(agent,), initial_cash=-1.0)
