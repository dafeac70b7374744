"""Tournament scheduler -- agent registry and the periodic tick loop.

Each tick:
  1. PRICE: Fetch the price once and compute indicators once.
  2. DECIDE & EXECUTE: Every agent (registration order) decides on the same
     frozen snapshot; the ledger executes the decision.
  3. RECORD: Executed trades are appended to the agent and the audit log.

A failure while processing one agent is logged and counted as a hold for
that agent only. PriceUnavailableError aborts the whole tick but never stops
the scheduler. Ticks are serialized by a lock.

States: stopped -> running -> stopped. start() runs one tick immediately, then
arms the loop; stop() suppresses future ticks without cancelling one in flight.
"""

from __future__ import annotations

import asyncio
import re
import time
from dataclasses import dataclass, field
from decimal import Decimal

from arena.audit.trade_log import TradeAuditLog
from arena.exceptions import (
    AgentNotFoundError,
    DuplicateAgentError,
    PerAgentExecutionError,
    PriceUnavailableError,
    ValidationError,
)
from arena.logging import get_logger, tick_context
from arena.market_data.price_oracle import PriceOracle
from arena.models import AgentRecord, Indicators, PriceSample, Trade
from arena.portfolio.ledger import DEFAULT_SLIPPAGE, PortfolioLedger
from arena.strategies.factory import StrategyFactory

logger = get_logger(__name__)

# Agent ids double as audit file names
_AGENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{1,64}$")


@dataclass
class TickResult:
    """Outcome of one completed tick."""

    price: PriceSample
    indicators: Indicators
    evaluated: int = 0
    trades: list[tuple[str, Trade]] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)


class TournamentScheduler:
    """Owns the agent registry and drives periodic ticks.

    Args:
        oracle: Price oracle shared by every agent.
        strategy_factory: Builds one strategy per registered agent.
        audit_log: Append-only trade audit log.
        initial_cash: Starting cash for every new ledger.
        slippage: Ledger execution slippage.
        tick_interval: Seconds between periodic ticks.
    """

    def __init__(
        self,
        oracle: PriceOracle,
        strategy_factory: StrategyFactory,
        audit_log: TradeAuditLog,
        initial_cash: Decimal = Decimal("1000"),
        slippage: Decimal = DEFAULT_SLIPPAGE,
        tick_interval: float = 60.0,
    ) -> None:
        self._oracle = oracle
        self._strategy_factory = strategy_factory
        self._audit_log = audit_log
        self._initial_cash = initial_cash
        self._slippage = slippage
        self._tick_interval = tick_interval
        self._agents: dict[str, AgentRecord] = {}
        self._running = False
        self._tick_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._last_price: Decimal | None = None
        self._tick_count = 0

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_agent(
        self, agent_id: str, owner_address: str, strategy_kind: str
    ) -> AgentRecord:
        """Register a new agent with a fresh ledger and strategy.

        All checks run before anything is created, so a failed registration
        leaves the registry untouched.

        Raises:
            ValidationError: If agent_id or owner_address is malformed.
            DuplicateAgentError: If agent_id is already registered.
            UnknownStrategyError: If strategy_kind has no builder.
        """
        if not agent_id or not _AGENT_ID_PATTERN.match(agent_id):
            raise ValidationError(
                "agent_id must be 1-64 characters of letters, digits, '_', '-' or '.'"
            )
        if not owner_address or not owner_address.strip():
            raise ValidationError("owner_address is required")
        if agent_id in self._agents:
            raise DuplicateAgentError(f"Agent {agent_id} already registered")
        self._strategy_factory.validate(strategy_kind)

        strategy = self._strategy_factory.create(strategy_kind, agent_id)
        ledger = PortfolioLedger(self._initial_cash, slippage=self._slippage)
        now = time.time()
        record = AgentRecord(
            agent_id=agent_id,
            owner_address=owner_address,
            strategy_kind=strategy_kind,
            ledger=ledger,
            strategy=strategy,
            registered_at=now,
            last_updated=now,
        )
        self._agents[agent_id] = record

        logger.info(
            "agent_registered",
            agent_id=agent_id,
            owner_address=owner_address,
            strategy_kind=strategy_kind,
            initial_cash=str(self._initial_cash),
        )
        return record

    def get_agent(self, agent_id: str) -> AgentRecord:
        """Return a registered agent.

        Raises:
            AgentNotFoundError: If the id was never registered.
        """
        record = self._agents.get(agent_id)
        if record is None:
            raise AgentNotFoundError(f"Agent {agent_id} not found")
        return record

    def get_agents(self) -> list[AgentRecord]:
        """Return all agents in registration order."""
        return list(self._agents.values())

    @property
    def agent_count(self) -> int:
        return len(self._agents)

    @property
    def last_price(self) -> Decimal | None:
        """Price used by the most recent completed tick."""
        return self._last_price

    @property
    def tick_count(self) -> int:
        """Number of ticks that completed (aborted ticks excluded)."""
        return self._tick_count

    @property
    def tick_interval(self) -> float:
        return self._tick_interval

    @property
    def valuation_price(self) -> Decimal | None:
        """Latest known price: the last tick's, else the oracle's cached sample."""
        if self._last_price is not None:
            return self._last_price
        return self._oracle.get_latest_price()

    def get_agent_scores(self) -> dict[str, int]:
        """ROI of every agent in integer basis points at the latest known price."""
        price = self.valuation_price
        if price is None:
            price = Decimal("0")
        return {
            record.agent_id: record.ledger.get_roi_basis_points(price)
            for record in self.get_agents()
        }

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Run one tick now, then tick every ``tick_interval`` seconds."""
        if self._running:
            logger.warning("tournament_already_running")
            return

        logger.info(
            "tournament_starting",
            agents=self.agent_count,
            tick_interval=self._tick_interval,
        )
        self._running = True
        stop_event = asyncio.Event()
        self._stop_event = stop_event

        try:
            await self.tick()
        except asyncio.CancelledError:
            self._running = False
            raise
        except Exception:
            logger.error("tournament_first_tick_error", exc_info=True)

        # stop() may have been called while the first tick ran
        if not stop_event.is_set():
            self._task = asyncio.create_task(self._run_loop(stop_event))
            logger.info("tournament_started", agents=self.agent_count)

    async def stop(self) -> None:
        """Suppress future ticks. A tick already running completes normally."""
        if not self._running:
            return
        self._running = False
        self._stop_event.set()

        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            await task
        logger.info("tournament_stopped", ticks=self._tick_count)

    @property
    def is_running(self) -> bool:
        """Whether periodic ticks are armed."""
        return self._running

    async def _run_loop(self, stop_event: asyncio.Event) -> None:
        """Wait one interval (or the stop signal), then tick, until stopped.

        Each loop watches only the event it was started with.
        """
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self._tick_interval)
                break  # stop requested
            except asyncio.TimeoutError:
                pass

            if stop_event.is_set():
                break
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.error("tournament_loop_error", exc_info=True)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def tick(self) -> TickResult | None:
        """Execute one price update plus a decision pass over all agents.

        Returns:
            TickResult, or None if the tick was aborted because no price
            could be obtained.
        """
        async with self._tick_lock:
            with tick_context(self._tick_count + 1):
                return await self._tick_locked()

    async def _tick_locked(self) -> TickResult | None:
        try:
            sample = await self._oracle.get_price()
        except PriceUnavailableError as e:
            logger.error("tick_aborted_price_unavailable", error=str(e))
            return None

        indicators = self._oracle.get_indicators()
        self._last_price = sample.value

        logger.info(
            "tick_price",
            price=str(sample.value),
            source=sample.source,
            ema20=str(indicators.ema20) if indicators.ema20 is not None else None,
            rsi14=str(indicators.rsi14) if indicators.rsi14 is not None else None,
        )

        agents = self.get_agents()
        outcomes = await asyncio.gather(
            *(self._process_agent(record, sample.value, indicators) for record in agents)
        )

        result = TickResult(price=sample, indicators=indicators, evaluated=len(agents))
        for record, outcome in zip(agents, outcomes):
            if isinstance(outcome, PerAgentExecutionError):
                result.failures.append(record.agent_id)
            elif outcome is not None:
                result.trades.append((record.agent_id, outcome))

        self._tick_count += 1
        logger.info(
            "tick_completed",
            agents=result.evaluated,
            trades=len(result.trades),
            failures=len(result.failures),
        )
        return result

    async def _process_agent(
        self,
        record: AgentRecord,
        price: Decimal,
        indicators: Indicators,
    ) -> Trade | PerAgentExecutionError | None:
        """Decide and execute for one agent, isolating any failure."""
        try:
            portfolio = record.ledger.snapshot()
            decision = await record.strategy.decide(price, portfolio, indicators)
            trade = record.ledger.execute_trade(decision, price)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = PerAgentExecutionError(record.agent_id, str(e))
            logger.error(
                "agent_tick_failed",
                agent_id=record.agent_id,
                strategy_kind=record.strategy_kind,
                error=str(e),
                exc_info=True,
            )
            return error

        if trade is None:
            logger.debug("agent_hold", agent_id=record.agent_id, reason=decision.reason)
            return None

        record.last_updated = time.time()
        self._audit_log.append(record.agent_id, trade, indicators)

        logger.info(
            "trade_executed",
            agent_id=record.agent_id,
            action=trade.action.value,
            asset_amount=str(trade.asset_amount),
            execution_price=str(trade.execution_price),
            cash_value=str(trade.cash_value),
            reason=trade.reason,
        )
        return trade
