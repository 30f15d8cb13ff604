from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import asdict
from typing import Literal
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from tradearena.config import Settings
from tradearena.domain.models import Action, Candle, Decision, PortfolioSnapshot
from tradearena.series import candles_to_records
from tradearena.simulation import SimulationDriver, build_driver

logger = logging.getLogger(__name__)


class CandlePayload(BaseModel):
    timestamp: int = 0
    open: float = Field(gt=0)
    high: float = Field(gt=0)
    low: float = Field(gt=0)
    close: float = Field(gt=0)
    volume: int = Field(default=0, ge=0)
    rsi: float = 50.0
    sma20: float
    sma50: float
    macd: float = 0.0
    macd_signal: float = 0.0
    macd_diff: float = 0.0

    def to_candle(self) -> Candle:
        return Candle(**self.model_dump())


class PortfolioPayload(BaseModel):
    cash: float = Field(ge=0)
    shares: int = Field(ge=0)
    value: float | None = None


class PreviousDecisionPayload(BaseModel):
    action: Literal["buy", "sell", "hold"]
    amount: int = Field(default=0, ge=0)
    price: float = Field(default=0.0, ge=0)
    message: str = ""


class TradeRequest(BaseModel):
    model: str = Field(min_length=1)
    current_candle: CandlePayload
    previous_candles: list[CandlePayload] = Field(default_factory=list)
    portfolio: PortfolioPayload
    previous_messages: list[PreviousDecisionPayload] = Field(default_factory=list)


class SpeedRequest(BaseModel):
    interval_seconds: float = Field(gt=0)


PAGE = """
<!doctype html>
<html>
<head>
<meta charset='utf-8'/>
<meta name='viewport' content='width=device-width,initial-scale=1'/>
<title>TradeArena</title>
<style>
body{
  font-family:Segoe UI,Arial,sans-serif;
  max-width:980px;
  margin:20px auto;
  padding:0 12px;
  background:#0b0b0f;
  color:#e5e7eb
}
.card{background:#111827;border:1px solid #1f2937;border-radius:10px;padding:14px;margin:12px 0}
.row{display:flex;gap:8px;flex-wrap:wrap}
select,button{padding:8px;border:1px solid #374151;border-radius:6px}
button{background:#2563eb;color:#fff;border:none;cursor:pointer}
pre{background:#030712;color:#e2e8f0;padding:12px;border-radius:8px;overflow:auto}
</style>
</head>
<body>
<h1>TradeArena</h1>
<div class='card'>
<div class='row'>
<button onclick="post('/api/play')">Play</button>
<button onclick="post('/api/pause')">Pause</button>
<button onclick="post('/api/step')">Step</button>
<button onclick="post('/api/reset')">Reset</button>
<select id='speed' onchange="post('/api/speed',{interval_seconds:Number(speed.value)})">
<option value='5'>5s</option>
<option value='10'>10s</option>
<option value='30' selected>30s</option>
<option value='60'>60s</option>
</select>
</div>
</div>
<pre id='out'>Loading...</pre>
<script>
async function post(url, payload){
  await fetch(url,{
    method:'POST',
    headers:{'Content-Type':'application/json'},
    body:JSON.stringify(payload || {})
  });
  refresh();
}
async function refresh(){
  const r = await fetch('/api/state');
  document.getElementById('out').textContent = JSON.stringify(await r.json(),null,2);
}
refresh();
setInterval(refresh, 2000);
</script>
</body>
</html>
"""


def _decision_payload(decision: Decision) -> dict[str, object]:
    payload = asdict(decision)
    payload["action"] = str(decision.action)
    return payload


def _state_payload(driver: SimulationDriver) -> dict[str, object]:
    return {
        "index": driver.index,
        "total": len(driver.candles),
        "running": driver.running,
        "finished": driver.finished,
        "interval_seconds": driver.interval_seconds,
        "last_error": driver.last_error,
        "current_candle": asdict(driver.current_candle),
        "portfolios": {
            agent.agent_id: {
                "name": agent.name,
                "model": agent.model_code,
                "cash": agent.portfolio.cash,
                "shares": agent.portfolio.shares,
                "last_price": agent.portfolio.last_price,
                "value": agent.portfolio.value(driver.current_candle.close),
                "trades": agent.trades,
                "history": [asdict(point) for point in agent.portfolio.history],
            }
            for agent in driver.agents
        },
        "messages": [
            {**asdict(message), "action": str(message.action)} for message in driver.messages
        ],
        "results": [asdict(result) for result in driver.results],
    }


def create_app(
    settings: Settings | None = None,
    driver: SimulationDriver | None = None,
) -> FastAPI:
    app_settings = settings or Settings()
    app = FastAPI(title=f"{app_settings.app_name} Web", version="0.1.0")
    simulation = driver or build_driver(app_settings)
    protocol = simulation.protocol

    @app.middleware("http")
    async def request_context_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID", uuid4().hex)
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.2f}"
        logger.info(
            "%s %s status=%s request_id=%s duration_ms=%.2f",
            request.method,
            request.url.path,
            response.status_code,
            request_id,
            elapsed_ms,
        )
        return response

    @app.get("/", response_class=HTMLResponse)
    def home() -> str:
        return PAGE

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok", "env": app_settings.env, "app": app_settings.app_name}

    @app.get("/readyz")
    def readyz() -> dict[str, str]:
        return {"status": "ready"}

    @app.get("/api/candles")
    def candles() -> list[dict[str, object]]:
        return candles_to_records(simulation.candles)

    @app.get("/api/state")
    async def state() -> dict[str, object]:
        return _state_payload(simulation)

    @app.post("/api/play")
    async def play() -> dict[str, object]:
        started = simulation.play()
        return {"running": started, "index": simulation.index}

    @app.post("/api/pause")
    async def pause() -> dict[str, object]:
        simulation.pause()
        return {"running": False, "index": simulation.index}

    @app.post("/api/speed")
    async def speed(req: SpeedRequest) -> dict[str, float]:
        try:
            simulation.set_speed(req.interval_seconds)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"interval_seconds": simulation.interval_seconds}

    @app.post("/api/step")
    async def step() -> dict[str, object]:
        if simulation.finished:
            raise HTTPException(status_code=409, detail="Simulation already finished.")
        messages = await simulation.tick()
        if simulation.last_error is not None:
            raise HTTPException(status_code=500, detail=simulation.last_error)
        return {
            "index": simulation.index,
            "messages": [{**asdict(m), "action": str(m.action)} for m in messages],
        }

    @app.post("/api/reset")
    async def reset() -> dict[str, object]:
        await simulation.reset()
        return _state_payload(simulation)

    @app.post("/api/trade")
    async def trade(req: TradeRequest) -> dict[str, object]:
        try:
            candle = req.current_candle.to_candle()
            portfolio = PortfolioSnapshot(
                cash=req.portfolio.cash,
                shares=req.portfolio.shares,
                value=(
                    req.portfolio.value
                    if req.portfolio.value is not None
                    else req.portfolio.cash + req.portfolio.shares * candle.close
                ),
            )
            previous = [
                Decision(
                    action=Action(m.action),
                    amount=m.amount,
                    price=m.price,
                    message=m.message,
                )
                for m in req.previous_messages
            ]
            decision = await protocol.decide(
                model_id=req.model,
                candle=candle,
                previous_candles=[c.to_candle() for c in req.previous_candles],
                portfolio=portfolio,
                previous_decisions=previous,
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _decision_payload(decision)

    return app


def run(host: str = "127.0.0.1", port: int = 8000) -> None:
    uvicorn.run("tradearena.web.app:create_app", factory=True, host=host, port=port)
