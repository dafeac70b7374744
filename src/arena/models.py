"""Shared data models for the tournament engine.

All monetary values use Decimal. Never use float for prices, balances or ROI.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from arena.exceptions import InvalidDecisionError

if TYPE_CHECKING:
    from arena.portfolio.ledger import PortfolioLedger
    from arena.strategies.base import Strategy

_ZERO = Decimal("0")
_ONE = Decimal("1")


class TradeAction(str, Enum):
    """Decision outcome."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class StrategyKind(str, Enum):
    """Built-in strategy kinds known to the default factory."""

    MOMENTUM = "momentum"
    DCA = "dca"
    MEAN_REVERSION = "mean_reversion"
    EXTERNAL = "external"


@dataclass(frozen=True)
class PriceSample:
    """A single price observation for the tracked asset."""

    value: Decimal
    timestamp: float  # Unix seconds
    source: str


@dataclass(frozen=True)
class Indicators:
    """Technical indicators derived from the price history.

    None means the history is too short for the indicator; it is never
    replaced with a numeric default.
    """

    ema20: Decimal | None = None
    rsi14: Decimal | None = None
    previous_price: Decimal | None = None


@dataclass(frozen=True)
class Portfolio:
    """Point-in-time copy of an agent's balances."""

    cash: Decimal
    asset: Decimal

    def value_at(self, price: Decimal) -> Decimal:
        """Portfolio value in cash units at the given asset price."""
        return self.cash + self.asset * price

    def to_dict(self) -> dict[str, str]:
        return {"cash": str(self.cash), "asset": str(self.asset)}


@dataclass(frozen=True)
class TradeDecision:
    """Strategy output. Only the ledger turns a decision into balance changes.

    percentage is a fraction in [0, 1] of cash (buy) or asset (sell).
    fixed_amount is a cash amount and only applies to buys.
    """

    action: TradeAction
    percentage: Decimal | None = None
    fixed_amount: Decimal | None = None
    reason: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.action, TradeAction):
            raise InvalidDecisionError(f"Unknown action: {self.action!r}")
        if self.percentage is not None and not (_ZERO <= self.percentage <= _ONE):
            raise InvalidDecisionError(
                f"percentage must be within [0, 1], got {self.percentage}"
            )
        if self.fixed_amount is not None and self.fixed_amount < _ZERO:
            raise InvalidDecisionError(
                f"fixed_amount must be non-negative, got {self.fixed_amount}"
            )

    @classmethod
    def hold(cls, reason: str) -> TradeDecision:
        return cls(action=TradeAction.HOLD, reason=reason)


@dataclass(frozen=True)
class Trade:
    """An executed simulated trade. Immutable once recorded."""

    id: str  # 64 hex chars (256 bits)
    timestamp: float
    action: TradeAction
    execution_price: Decimal
    asset_amount: Decimal
    cash_value: Decimal
    portfolio_before: Portfolio
    portfolio_after: Portfolio
    reason: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "action": self.action.value,
            "execution_price": str(self.execution_price),
            "asset_amount": str(self.asset_amount),
            "cash_value": str(self.cash_value),
            "portfolio_before": self.portfolio_before.to_dict(),
            "portfolio_after": self.portfolio_after.to_dict(),
            "reason": self.reason,
        }


@dataclass
class AgentRecord:
    """A registered tournament participant.

    Created once at registration and never deleted. The ledger owns the
    executed trades; only the scheduler updates last_updated, during ticks.
    """

    agent_id: str
    owner_address: str
    strategy_kind: str
    ledger: PortfolioLedger
    strategy: Strategy
    registered_at: float = field(default_factory=time.time)
    last_updated: float = field(default_factory=time.time)

    @property
    def trades(self) -> list[Trade]:
        """Executed trades, oldest first (a copy of the ledger's list)."""
        return self.ledger.get_trades()

    def to_dict(self) -> dict:
        return {
            "agent_id": self.agent_id,
            "owner_address": self.owner_address,
            "strategy_kind": self.strategy_kind,
            "portfolio": self.ledger.snapshot().to_dict(),
            "trades": [t.to_dict() for t in self.trades],
            "registered_at": self.registered_at,
            "last_updated": self.last_updated,
        }


@dataclass(frozen=True)
class LeaderboardEntry:
    """One ranked row of the leaderboard."""

    rank: int
    agent_id: str
    owner_address: str
    strategy_kind: str
    portfolio_value: Decimal
    roi: Decimal  # percent, e.g. 15.5 = 15.5%
    trade_count: int

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "agent_id": self.agent_id,
            "owner_address": self.owner_address,
            "strategy_kind": self.strategy_kind,
            "portfolio_value": str(self.portfolio_value),
            "roi": str(self.roi),
            "trade_count": self.trade_count,
        }


@dataclass(frozen=True)
class LeaderboardStatistics:
    """Aggregate statistics over all leaderboard entries."""

    total_agents: int = 0
    average_roi: Decimal = _ZERO
    max_roi: Decimal = _ZERO
    min_roi: Decimal = _ZERO
    total_trades: int = 0

    def to_dict(self) -> dict:
        return {
            "total_agents": self.total_agents,
            "average_roi": str(self.average_roi),
            "max_roi": str(self.max_roi),
            "min_roi": str(self.min_roi),
            "total_trades": self.total_trades,
        }


@dataclass(frozen=True)
class Leaderboard:
    """Ranked entries plus statistics, computed at one price."""

    entries: list[LeaderboardEntry]
    statistics: LeaderboardStatistics
    last_price: Decimal | None = None
    computed_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class AuditEntry:
    """One append-only audit record per executed trade."""

    timestamp: float
    agent_id: str
    action: TradeAction
    execution_price: Decimal
    asset_amount: Decimal
    cash_value: Decimal
    reason: str
    ema20: Decimal | None
    rsi14: Decimal | None
    portfolio_after: Portfolio
    trade_id: str

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "agent_id": self.agent_id,
            "action": self.action.value,
            "execution_price": str(self.execution_price),
            "asset_amount": str(self.asset_amount),
            "cash_value": str(self.cash_value),
            "reason": self.reason,
            "indicators": {
                "ema20": str(self.ema20) if self.ema20 is not None else None,
                "rsi14": str(self.rsi14) if self.rsi14 is not None else None,
            },
            "portfolio_after": self.portfolio_after.to_dict(),
            "trade_id": self.trade_id,
        }
