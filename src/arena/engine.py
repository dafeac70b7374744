"""Tournament engine aggregate -- wires all components behind one object.

Owns the price oracle, scheduler, audit log and leaderboard. Nothing is a
module-level singleton; independent engines can coexist in one process.

Component wiring order (in from_settings):
1. Price sources (primary + fallback) and the PriceOracle
2. StrategyFactory (built-in strategies + external provider)
3. TradeAuditLog
4. TournamentScheduler
5. LeaderboardService
"""

from __future__ import annotations

from decimal import Decimal

from arena.audit.trade_log import TradeAuditLog
from arena.config import AppSettings
from arena.leaderboard.service import LeaderboardService
from arena.logging import get_logger
from arena.market_data.price_oracle import PriceOracle
from arena.market_data.sources import build_price_source
from arena.models import AgentRecord, AuditEntry, Indicators, Leaderboard, PriceSample, Trade
from arena.scheduler import TickResult, TournamentScheduler
from arena.signals.indicators import IndicatorEngine
from arena.strategies.factory import StrategyFactory

logger = get_logger(__name__)


class TournamentEngine:
    """External contract of the tournament core.

    Args:
        oracle: Price oracle.
        scheduler: Agent registry and tick driver.
        audit_log: Trade audit log the scheduler writes to.
        leaderboard: Cached leaderboard over the scheduler's agents.
    """

    def __init__(
        self,
        oracle: PriceOracle,
        scheduler: TournamentScheduler,
        audit_log: TradeAuditLog,
        leaderboard: LeaderboardService,
    ) -> None:
        self._oracle = oracle
        self._scheduler = scheduler
        self._audit_log = audit_log
        self._leaderboard = leaderboard

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        strategy_factory: StrategyFactory | None = None,
        oracle: PriceOracle | None = None,
    ) -> TournamentEngine:
        """Build a fully wired engine from application settings."""
        tournament = settings.tournament

        if oracle is None:
            price = settings.price
            oracle = PriceOracle(
                primary=build_price_source(price.primary_source, price),
                fallback=build_price_source(price.fallback_source, price),
                cache_ttl=price.cache_ttl_seconds,
                timeout=price.request_timeout_seconds,
                history_size=price.history_size,
                indicator_engine=IndicatorEngine(
                    ema_period=tournament.ema_period,
                    rsi_period=tournament.rsi_period,
                ),
            )

        if strategy_factory is None:
            strategy_factory = StrategyFactory(
                settings.llm, initial_cash=tournament.initial_balance
            )

        audit_log = TradeAuditLog(tournament.logs_dir or None)

        scheduler = TournamentScheduler(
            oracle=oracle,
            strategy_factory=strategy_factory,
            audit_log=audit_log,
            initial_cash=tournament.initial_balance,
            slippage=tournament.slippage,
            tick_interval=tournament.tick_interval_seconds,
        )

        leaderboard = LeaderboardService(
            scheduler, cache_ttl=settings.leaderboard.cache_ttl_seconds
        )

        return cls(oracle, scheduler, audit_log, leaderboard)

    @property
    def scheduler(self) -> TournamentScheduler:
        return self._scheduler

    @property
    def leaderboard(self) -> LeaderboardService:
        return self._leaderboard

    @property
    def oracle(self) -> PriceOracle:
        return self._oracle

    # -- agents ---------------------------------------------------------

    def register_agent(
        self, agent_id: str, owner_address: str, strategy_kind: str
    ) -> AgentRecord:
        """Register an agent. See TournamentScheduler.register_agent."""
        return self._scheduler.register_agent(agent_id, owner_address, strategy_kind)

    def get_agent(self, agent_id: str) -> AgentRecord:
        """Return an agent or raise AgentNotFoundError."""
        return self._scheduler.get_agent(agent_id)

    def get_agent_trades(self, agent_id: str) -> list[Trade]:
        return self._scheduler.get_agent(agent_id).trades

    def get_audit_entries(self, agent_id: str) -> list[AuditEntry]:
        self._scheduler.get_agent(agent_id)
        return self._audit_log.get_entries(agent_id)

    def get_agent_scores(self) -> dict[str, int]:
        """ROI per agent in integer basis points, for fixed-point consumers."""
        return self._scheduler.get_agent_scores()

    # -- leaderboard ----------------------------------------------------

    def get_leaderboard(self) -> Leaderboard:
        return self._leaderboard.get_leaderboard()

    # -- lifecycle ------------------------------------------------------

    async def start(self) -> None:
        await self._scheduler.start()

    async def stop(self) -> None:
        await self._scheduler.stop()

    def is_running(self) -> bool:
        return self._scheduler.is_running

    async def tick(self) -> TickResult | None:
        """Run one tick outside the periodic loop."""
        return await self._scheduler.tick()

    # -- market data ----------------------------------------------------

    async def get_current_price(self) -> PriceSample:
        """Return the current price; raises PriceUnavailableError."""
        return await self._oracle.get_price()

    def get_indicators(self) -> Indicators:
        return self._oracle.get_indicators()

    @property
    def last_price(self) -> Decimal | None:
        return self._scheduler.last_price

    def status(self) -> dict:
        """Tournament status summary."""
        last_price = self._scheduler.last_price
        return {
            "running": self._scheduler.is_running,
            "agent_count": self._scheduler.agent_count,
            "tick_count": self._scheduler.tick_count,
            "last_price": str(last_price) if last_price is not None else None,
            "tick_interval_seconds": self._scheduler.tick_interval,
        }

    async def close(self) -> None:
        """Stop ticking and release price source resources."""
        await self._scheduler.stop()
        await self._oracle.close()
        logger.info("tournament_engine_closed")
