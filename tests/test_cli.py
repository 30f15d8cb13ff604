from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace

import pytest

import tradearena.cli as cli
from tradearena.config import Settings
from tradearena.domain.models import RawCandle
from tradearena.series import load_candles

DAY_MS = 86_400_000


class _Provider:
    def __init__(self, symbol: str = "TSLA", period: str = "6mo", interval: str = "1d") -> None:
        self.symbol = symbol

    def fetch_candles(self) -> list[RawCandle]:
        return [
            RawCandle(i * DAY_MS, 100.0 + i, 101.0 + i, 99.0 + i, 100.0 + i, 1_000)
            for i in range(6)
        ]


def _settings(tmp_path: Path) -> Settings:
    return Settings(openrouter_api_key=None, data_path=tmp_path / "candles.json")


def test_handle_generate_writes_candles(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    output = tmp_path / "sample.json"
    args = SimpleNamespace(count=30, base_price=250.0, seed=7, output=str(output))

    assert cli._handle_generate(args, _settings(tmp_path)) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["candles"] == 30
    assert payload["output"] == str(output)
    assert len(load_candles(output)) == 30


def test_handle_generate_rejects_bad_count(tmp_path: Path) -> None:
    args = SimpleNamespace(count=0, base_price=None, seed=None, output=None)
    with pytest.raises(SystemExit, match="count must be greater than zero"):
        cli._handle_generate(args, _settings(tmp_path))


def test_handle_fetch_writes_csv(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr(cli, "YFinanceProvider", _Provider)
    output = tmp_path / "out.csv"
    args = SimpleNamespace(symbol="SPY", period="1y", interval="1d", output=str(output))

    assert cli._handle_fetch(args, _settings(tmp_path)) == 0

    assert output.exists()
    payload = json.loads(capsys.readouterr().out)
    assert payload == {"symbol": "SPY", "output": str(output), "candles": 6}
    assert [c.close for c in load_candles(output)][-1] == 105.0


def test_handle_simulate_prints_results(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    generated = tmp_path / "candles.json"
    cli._handle_generate(
        SimpleNamespace(count=12, base_price=100.0, seed=3, output=str(generated)),
        _settings(tmp_path),
    )
    capsys.readouterr()

    args = SimpleNamespace(input=str(generated), seed=None, interval=0.0)
    assert cli._handle_simulate(args, _settings(tmp_path)) == 0

    payload = json.loads(capsys.readouterr().out)
    assert payload["candles"] == 12
    assert [r["agent_id"] for r in payload["results"]] == ["modelA", "modelB"]
    assert payload["summary"].startswith("Simulation Complete!")


def test_handle_simulate_rejects_negative_interval(tmp_path: Path) -> None:
    args = SimpleNamespace(input=None, seed=None, interval=-1.0)
    with pytest.raises(SystemExit, match="interval must be non-negative"):
        cli._handle_simulate(args, _settings(tmp_path))


def test_main_converts_value_error_to_clean_exit(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    monkeypatch.setattr(
        cli,
        "_handle_fetch",
        lambda args, settings: (_ for _ in ()).throw(ValueError("boom")),
    )
    monkeypatch.setattr("sys.argv", ["tradearena", "fetch"])

    with pytest.raises(SystemExit, match="boom"):
        cli.main()
