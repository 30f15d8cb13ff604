from __future__ import annotations

import logging
import runpy

import tradearena
import tradearena.agents as agents_mod
import tradearena.data as data_mod
import tradearena.domain as domain_mod
import tradearena.web as web_mod
from tradearena.domain.models import Action, ChatMessage
from tradearena.logging_config import configure_logging


def test_top_level_package_exports() -> None:
    assert "Settings" in tradearena.__all__
    assert "SimulationDriver" in tradearena.__all__
    assert isinstance(tradearena.__version__, str)


def test_reexport_modules() -> None:
    assert "DecisionProtocol" in agents_mod.__all__
    assert "CandleSource" in data_mod.__all__
    assert "Candle" in domain_mod.__all__
    assert "create_app" in web_mod.__all__


def test_chat_message_is_constructible() -> None:
    message = ChatMessage(
        agent="modelA", timestamp=0, action=Action.BUY, amount=3, price=10.0, message="go"
    )
    assert message.action == "buy"


def test_configure_logging_uses_uppercase_level(monkeypatch) -> None:
    captured: dict[str, object] = {}

    def _fake_basic_config(**kwargs) -> None:
        captured.update(kwargs)

    monkeypatch.setattr(logging, "basicConfig", _fake_basic_config)
    configure_logging("debug")
    assert captured["level"] == "DEBUG"


def test_main_module_invokes_cli_main(monkeypatch) -> None:
    called = {"count": 0}

    def _fake_main() -> None:
        called["count"] += 1

    monkeypatch.setattr("tradearena.cli.main", _fake_main)
    runpy.run_module("tradearena.__main__", run_name="__main__")
    assert called["count"] == 1
