"""Periodic WebSocket broadcasts of price and leaderboard updates.

Both loops only broadcast while the tournament runs and at least one client
is connected.
"""

from __future__ import annotations

import asyncio

import structlog
from fastapi import FastAPI

from arena.dashboard.routes.api import leaderboard_payload
from arena.engine import TournamentEngine
from arena.exceptions import PriceUnavailableError

log = structlog.get_logger(__name__)


async def broadcast_price(app: FastAPI) -> bool:
    """Broadcast one ``price_update``. Returns False when nothing was sent."""
    engine: TournamentEngine = app.state.engine
    hub = app.state.hub
    if not engine.is_running() or not hub.connections:
        return False

    try:
        sample = await engine.get_current_price()
    except PriceUnavailableError as e:
        log.warning("price_broadcast_skipped", error=str(e))
        return False

    await hub.broadcast("price_update", {
        "price": str(sample.value),
        "timestamp": sample.timestamp,
        "source": sample.source,
    })
    return True


async def broadcast_leaderboard(app: FastAPI) -> bool:
    """Broadcast one ``leaderboard_update``. Returns False when nothing was sent."""
    engine: TournamentEngine = app.state.engine
    hub = app.state.hub
    if not engine.is_running() or not hub.connections:
        return False

    await hub.broadcast("leaderboard_update", leaderboard_payload(engine))
    return True


async def _periodic(app: FastAPI, interval: float, action, name: str) -> None:
    log.info("broadcast_loop_started", loop=name, interval=interval)
    while True:
        await asyncio.sleep(interval)
        try:
            await action(app)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            log.error("broadcast_loop_error", loop=name, error=str(e))


async def dashboard_update_loop(
    app: FastAPI,
    price_interval: float = 30.0,
    leaderboard_interval: float = 600.0,
) -> None:
    """Run the price and leaderboard broadcasters until cancelled."""
    await asyncio.gather(
        _periodic(app, price_interval, broadcast_price, "price"),
        _periodic(app, leaderboard_interval, broadcast_leaderboard, "leaderboard"),
    )
