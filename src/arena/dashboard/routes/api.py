"""JSON API for tournament state, registration and control.

Every /api response uses the envelope ``{"success": bool, "data" | "error"}``.
Decimals are serialized as strings.
"""

from __future__ import annotations

import time
from decimal import Decimal
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from arena.engine import TournamentEngine
from arena.exceptions import AgentNotFoundError, PriceUnavailableError, ValidationError
from arena.models import Indicators

log = structlog.get_logger(__name__)

router = APIRouter()


class RegisterAgentRequest(BaseModel):
    agent_id: str = Field(alias="agentId")
    owner_address: str = Field(alias="ownerAddress")
    strategy: str

    model_config = {"populate_by_name": True}


def _engine(request: Request) -> TournamentEngine:
    return request.app.state.engine


def _decimal_or_none(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def _indicators_to_dict(indicators: Indicators) -> dict[str, str | None]:
    return {
        "ema20": _decimal_or_none(indicators.ema20),
        "rsi14": _decimal_or_none(indicators.rsi14),
        "previous_price": _decimal_or_none(indicators.previous_price),
    }


def _ok(data: Any) -> JSONResponse:
    return JSONResponse(content={"success": True, "data": data})


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "error": message}
    )


def leaderboard_payload(engine: TournamentEngine) -> dict[str, Any]:
    """Leaderboard, statistics and last price as a JSON-ready dict."""
    board = engine.get_leaderboard()
    return {
        "leaderboard": [entry.to_dict() for entry in board.entries],
        "statistics": board.statistics.to_dict(),
        "lastPrice": _decimal_or_none(board.last_price),
    }


@router.get("/health")
async def health(request: Request) -> JSONResponse:
    engine = _engine(request)
    return JSONResponse(content={
        "status": "ok",
        "timestamp": int(time.time() * 1000),
        "agents": engine.scheduler.agent_count,
        "running": engine.is_running(),
    })


@router.get("/api/price")
async def get_price(request: Request) -> JSONResponse:
    """Current price with the indicators over the recorded history."""
    engine = _engine(request)
    try:
        sample = await engine.get_current_price()
    except PriceUnavailableError as e:
        log.error("api_price_unavailable", error=str(e))
        return _error(500, "Failed to fetch price")

    return _ok({
        "price": str(sample.value),
        "timestamp": sample.timestamp,
        "source": sample.source,
        "indicators": _indicators_to_dict(engine.get_indicators()),
    })


@router.get("/api/leaderboard")
async def get_leaderboard(request: Request) -> JSONResponse:
    return _ok(leaderboard_payload(_engine(request)))


@router.get("/api/agents/{agent_id}")
async def get_agent(request: Request, agent_id: str) -> JSONResponse:
    """Agent details with its current rank, portfolio value and ROI."""
    engine = _engine(request)
    try:
        record = engine.get_agent(agent_id)
    except AgentNotFoundError:
        return _error(404, "Agent not found")

    price = engine.scheduler.valuation_price
    if price is None:
        price = Decimal("0")
    data = record.to_dict()
    data.update({
        "rank": engine.leaderboard.get_agent_rank(agent_id),
        "portfolio_value": str(record.ledger.get_value(price)),
        "roi": str(record.ledger.get_roi(price)),
    })
    return _ok(data)


@router.get("/api/agents/{agent_id}/audit")
async def get_agent_audit(request: Request, agent_id: str) -> JSONResponse:
    engine = _engine(request)
    try:
        entries = engine.get_audit_entries(agent_id)
    except AgentNotFoundError:
        return _error(404, "Agent not found")
    return _ok([entry.to_dict() for entry in entries])


@router.post("/api/agents")
async def register_agent(request: Request, body: RegisterAgentRequest) -> JSONResponse:
    engine = _engine(request)
    try:
        record = engine.register_agent(body.agent_id, body.owner_address, body.strategy)
    except ValidationError as e:
        log.warning("api_registration_rejected", agent_id=body.agent_id, error=str(e))
        return _error(400, str(e))
    return _ok(record.to_dict())


@router.get("/api/tournament")
async def get_tournament(request: Request) -> JSONResponse:
    return _ok(_engine(request).status())


@router.post("/api/tournament/start")
async def start_tournament(request: Request) -> JSONResponse:
    engine = _engine(request)
    try:
        await engine.start()
    except Exception as e:
        log.error("tournament_start_failed", error=str(e))
        return _error(500, str(e))
    log.info("tournament_started_via_api")
    return JSONResponse(content={"success": True, "message": "Tournament started"})


@router.post("/api/tournament/stop")
async def stop_tournament(request: Request) -> JSONResponse:
    await _engine(request).stop()
    log.info("tournament_stopped_via_api")
    return JSONResponse(content={"success": True, "message": "Tournament stopped"})
