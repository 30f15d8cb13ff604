from __future__ import annotations

import json
from pathlib import Path

import pytest

from tradearena.data.synthetic import SyntheticCandleSource
from tradearena.domain.models import RawCandle
from tradearena.series import (
    CandleSeriesBuilder,
    InsufficientDataError,
    build_candle_series,
    candles_to_frame,
    load_candles,
    save_candles,
)


def _raw(closes: list[float]) -> list[RawCandle]:
    return [
        RawCandle(
            timestamp=1_700_000_000_000 + i * 86_400_000,
            open=close,
            high=close + 1,
            low=close - 1,
            close=close,
            volume=1_000,
        )
        for i, close in enumerate(closes)
    ]


def test_empty_input_raises_insufficient_data() -> None:
    with pytest.raises(InsufficientDataError):
        build_candle_series([])
    assert issubclass(InsufficientDataError, ValueError)


def test_single_candle_uses_neutral_indicators() -> None:
    (candle,) = build_candle_series(_raw([100.0]))
    assert candle.rsi == 50.0
    assert candle.sma20 == 100.0
    assert candle.sma50 == 100.0
    assert (candle.macd, candle.macd_signal, candle.macd_diff) == (0.0, 0.0, 0.0)


def test_output_length_matches_input() -> None:
    raw = SyntheticCandleSource(count=60, seed=7).fetch_candles()
    assert len(build_candle_series(raw)) == 60


def test_indicators_never_look_ahead() -> None:
    raw = SyntheticCandleSource(count=80, seed=11).fetch_candles()
    full = build_candle_series(raw)
    for cut in (1, 2, 15, 26, 34, 51, 79):
        assert build_candle_series(raw[:cut]) == full[:cut]


def test_indicator_values_are_rounded_at_creation() -> None:
    candles = build_candle_series(_raw([1.0, 2.0, 2.0]))
    assert candles[-1].sma20 == 1.67


def test_macd_switches_on_at_slow_period() -> None:
    candles = build_candle_series(_raw([100.0 + i for i in range(30)]))
    assert all(c.macd == 0.0 for c in candles[:25])
    assert candles[25].macd > 0
    assert candles[-1].rsi == 100.0


def test_builder_tracks_price_history() -> None:
    builder = CandleSeriesBuilder()
    builder.build(_raw([10.0, 11.0, 12.0]))
    assert builder.price_history == (10.0, 11.0, 12.0)


def test_builder_rejects_non_positive_periods() -> None:
    with pytest.raises(ValueError, match="sma_fast"):
        CandleSeriesBuilder(sma_fast=0)


def test_save_and_load_json(tmp_path: Path) -> None:
    candles = build_candle_series(_raw([100.0, 101.0, 99.5]))
    path = save_candles(tmp_path / "out" / "candles.json", candles)

    records = json.loads(path.read_text(encoding="utf-8"))
    assert records[0]["sma20"] == 100.0
    assert set(records[0]) >= {"timestamp", "rsi", "macd_signal", "macd_diff"}
    assert load_candles(path) == candles


def test_save_and_load_csv(tmp_path: Path) -> None:
    candles = build_candle_series(_raw([100.0, 101.0, 99.5]))
    path = save_candles(tmp_path / "candles.csv", candles)
    assert load_candles(path) == candles


def test_load_rejects_records_with_missing_fields(tmp_path: Path) -> None:
    path = tmp_path / "bad.json"
    path.write_text(json.dumps([{"timestamp": 1, "close": 1.0}]), encoding="utf-8")
    with pytest.raises(ValueError, match="missing fields"):
        load_candles(path)


def test_load_rejects_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(InsufficientDataError):
        load_candles(path)


def test_candles_to_frame_is_indexed_by_utc_date() -> None:
    frame = candles_to_frame(build_candle_series(_raw([100.0, 101.0])))
    assert list(frame["close"]) == [100.0, 101.0]
    assert str(frame.index.tz) == "UTC"
