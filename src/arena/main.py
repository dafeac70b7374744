"""Entry point for the trading tournament engine.

Builds the TournamentEngine from settings and, when the dashboard is enabled
(default), serves the JSON/WebSocket API in the same asyncio event loop via
uvicorn's programmatic API and FastAPI's lifespan context manager.

Handles SIGINT/SIGTERM for graceful shutdown.
"""

import asyncio
import signal
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from arena.config import AppSettings
from arena.engine import TournamentEngine
from arena.logging import get_logger, setup_logging


def _setup_signal_handlers(engine: TournamentEngine, shutdown: asyncio.Event) -> None:
    """Stop ticking and release the main loop on SIGINT/SIGTERM.

    Must be called after the asyncio event loop is running.
    """
    logger = get_logger("arena.main")
    loop = asyncio.get_running_loop()

    def _graceful_handler() -> None:
        logger.info("graceful_shutdown_signal")
        shutdown.set()
        asyncio.create_task(engine.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _graceful_handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the tournament (if configured) and the broadcast loop; tear both down."""
    from arena.dashboard.update_loop import dashboard_update_loop

    logger = get_logger("arena.main")
    settings: AppSettings = app.state.settings
    engine: TournamentEngine = app.state.engine

    if settings.tournament.auto_start:
        await engine.start()

    update_task = asyncio.create_task(
        dashboard_update_loop(
            app,
            price_interval=settings.dashboard.price_broadcast_interval_seconds,
            leaderboard_interval=settings.leaderboard.broadcast_interval_seconds,
        )
    )

    logger.info("lifespan_started", auto_start=settings.tournament.auto_start)

    yield

    update_task.cancel()
    try:
        await update_task
    except asyncio.CancelledError:
        pass

    await engine.close()
    logger.info("arena_stopped")


async def run() -> None:
    """Run the tournament engine, with or without the API server."""
    settings = AppSettings()

    setup_logging(settings.log_level)
    logger = get_logger("arena.main")

    engine = TournamentEngine.from_settings(settings)

    if settings.dashboard.enabled:
        from arena.dashboard.app import create_dashboard_app

        app = create_dashboard_app(lifespan=lifespan, engine=engine)
        app.state.settings = settings

        logger.info(
            "starting_with_dashboard",
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            tick_interval=settings.tournament.tick_interval_seconds,
        )

        config = uvicorn.Config(
            app,
            host=settings.dashboard.host,
            port=settings.dashboard.port,
            log_level="warning",  # Suppress uvicorn access logs
        )
        server = uvicorn.Server(config)
        await server.serve()
    else:
        shutdown = asyncio.Event()
        _setup_signal_handlers(engine, shutdown)

        logger.info(
            "starting_without_dashboard",
            tick_interval=settings.tournament.tick_interval_seconds,
            initial_balance=str(settings.tournament.initial_balance),
        )

        try:
            await engine.start()
            await shutdown.wait()
        finally:
            await engine.close()
            logger.info("arena_stopped")


def main() -> None:
    """Synchronous entry point."""
    asyncio.run(run())


if __name__ == "__main__":
    main()
