from __future__ import annotations

import argparse
import asyncio
import json
import logging
from dataclasses import asdict
from pathlib import Path

from tradearena.config import Settings
from tradearena.data.synthetic import SyntheticCandleSource
from tradearena.data.yfinance_provider import YFinanceProvider
from tradearena.logging_config import configure_logging
from tradearena.series import build_candle_series, load_candles, save_candles
from tradearena.simulation import build_driver, sample_candles
from tradearena.web.app import run

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="TradeArena CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate sample candles with indicators")
    generate.add_argument("--count", type=int, default=None)
    generate.add_argument("--base-price", type=float, default=None)
    generate.add_argument("--seed", type=int, default=None)
    generate.add_argument("--output", default=None)

    fetch = subparsers.add_parser("fetch", help="Download OHLCV data and attach indicators")
    fetch.add_argument("--symbol", default="TSLA")
    fetch.add_argument("--period", default="6mo")
    fetch.add_argument("--interval", default="1d")
    fetch.add_argument("--output", default=None)

    simulate = subparsers.add_parser("simulate", help="Run the trading competition headless")
    simulate.add_argument("--input", default=None, help="Candle file; sample data if omitted")
    simulate.add_argument("--seed", type=int, default=None)
    simulate.add_argument("--interval", type=float, default=0.0)

    serve = subparsers.add_parser("serve", help="Run the web simulation")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def _handle_generate(args: argparse.Namespace, settings: Settings) -> int:
    count = settings.sample_candles if args.count is None else args.count
    base_price = settings.sample_base_price if args.base_price is None else args.base_price
    if count <= 0:
        raise SystemExit("count must be greater than zero")
    if base_price <= 0:
        raise SystemExit("base-price must be greater than zero")

    seed = settings.sample_seed if args.seed is None else args.seed
    source = SyntheticCandleSource(count=count, base_price=base_price, seed=seed)
    candles = build_candle_series(source.fetch_candles())
    output = save_candles(Path(args.output or settings.data_path), candles)
    print(
        json.dumps(
            {
                "output": str(output),
                "candles": len(candles),
                "first_close": candles[0].close,
                "last_close": candles[-1].close,
            }
        )
    )
    return 0


def _handle_fetch(args: argparse.Namespace, settings: Settings) -> int:
    provider = YFinanceProvider(symbol=args.symbol, period=args.period, interval=args.interval)
    candles = build_candle_series(provider.fetch_candles())
    output = save_candles(Path(args.output or settings.data_path), candles)
    print(json.dumps({"symbol": provider.symbol, "output": str(output), "candles": len(candles)}))
    return 0


def _handle_simulate(args: argparse.Namespace, settings: Settings) -> int:
    if args.interval < 0:
        raise SystemExit("interval must be non-negative")

    if args.input:
        candles = load_candles(Path(args.input))
    else:
        candles = sample_candles(settings, seed=args.seed)

    driver = build_driver(settings, candles)
    try:
        results = asyncio.run(driver.run_to_end(interval_seconds=args.interval))
    except RuntimeError as exc:
        raise SystemExit(str(exc)) from exc

    winner = driver.messages[-1].message if driver.messages else ""
    payload = {
        "candles": len(candles),
        "final_close": candles[-1].close,
        "results": [asdict(result) for result in results],
        "summary": winner,
    }
    print(json.dumps(payload))
    return 0


def _handle_serve(args: argparse.Namespace) -> int:
    run(host=args.host, port=args.port)
    return 0


def main() -> None:
    settings = Settings()
    configure_logging(settings.log_level)

    parser = _build_parser()
    args = parser.parse_args()

    try:
        if args.command == "generate":
            raise SystemExit(_handle_generate(args, settings))
        if args.command == "fetch":
            raise SystemExit(_handle_fetch(args, settings))
        if args.command == "simulate":
            raise SystemExit(_handle_simulate(args, settings))
        if args.command == "serve":
            raise SystemExit(_handle_serve(args))
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    raise SystemExit("Unknown command")


if __name__ == "__main__":
    main()
