"""FastAPI application factory with the JSON API and WebSocket hub."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from arena.dashboard.routes import api, ws
from arena.dashboard.routes.ws import DashboardHub


def create_dashboard_app(lifespan: Any = None, engine: Any = None) -> FastAPI:
    """Create and configure the tournament API application.

    Args:
        lifespan: Optional async context manager for application lifespan events.
                  Used by main.py to inject startup/shutdown logic.
        engine: TournamentEngine served by the routes. main.py sets it in the
                lifespan when not given here.

    Returns:
        Configured FastAPI application with WebSocket hub and routes.
    """
    app = FastAPI(
        title="Arena Trading Tournament",
        lifespan=lifespan,
    )

    app.state.engine = engine
    app.state.hub = DashboardHub()

    app.include_router(api.router)
    app.include_router(ws.router)

    return app
