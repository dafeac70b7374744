"""Per-agent portfolio ledger with simulated fills.

Turns TradeDecisions into balance changes at a slipped execution price:
buys fill at price * (1 + slippage), sells at price * (1 - slippage).
All fills are instant (market order simulation).

Balances and the trade list are guarded by a threading.Lock so readers on
other threads (sync API handlers) always see a consistent cash/asset pair.
"""

import secrets
import threading
import time
from decimal import ROUND_HALF_UP, Decimal

from arena.exceptions import InvalidDecisionError
from arena.logging import get_logger
from arena.models import Portfolio, Trade, TradeAction, TradeDecision

logger = get_logger(__name__)

# Simulated slippage: 0.3%
DEFAULT_SLIPPAGE = Decimal("0.003")

# Share of the balance traded when a decision names neither percentage nor amount
_DEFAULT_FRACTION = Decimal("0.5")

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")
_BPS = Decimal("10000")


def generate_trade_id() -> str:
    """Return a cryptographically secure 256-bit id as 64 hex chars."""
    return secrets.token_hex(32)


class PortfolioLedger:
    """Authoritative owner of one agent's cash/asset balances and trades.

    Args:
        initial_cash: Starting cash balance; ROI is always measured against it.
        slippage: Proportional execution price penalty.
    """

    def __init__(
        self, initial_cash: Decimal, slippage: Decimal = DEFAULT_SLIPPAGE
    ) -> None:
        if initial_cash <= 0:
            raise ValueError(f"initial_cash must be positive, got {initial_cash}")
        self._initial_cash = initial_cash
        self._slippage = slippage
        self._cash = initial_cash
        self._asset = _ZERO
        self._trades: list[Trade] = []
        self._lock = threading.Lock()

    @property
    def initial_cash(self) -> Decimal:
        return self._initial_cash

    @property
    def slippage(self) -> Decimal:
        return self._slippage

    def snapshot(self) -> Portfolio:
        """Return a point-in-time copy of the balances."""
        with self._lock:
            return Portfolio(cash=self._cash, asset=self._asset)

    def get_trades(self) -> list[Trade]:
        """Return a copy of the executed trades, oldest first."""
        with self._lock:
            return list(self._trades)

    def execute_trade(self, decision: TradeDecision, price: Decimal) -> Trade | None:
        """Apply a decision at the given market price.

        Hold decisions, and decisions whose size works out to zero, produce
        no trade and leave the balances untouched.

        Args:
            decision: Strategy decision.
            price: Current market price (before slippage).

        Returns:
            The recorded Trade, or None if nothing was executed.

        Raises:
            InvalidDecisionError: If the price is not positive.
        """
        if decision.action == TradeAction.HOLD:
            return None
        if price <= 0:
            raise InvalidDecisionError(f"Execution requires a positive price, got {price}")

        with self._lock:
            before = Portfolio(cash=self._cash, asset=self._asset)

            if decision.action == TradeAction.BUY:
                if decision.fixed_amount is not None:
                    spend = min(decision.fixed_amount, self._cash)
                elif decision.percentage is not None:
                    spend = self._cash * decision.percentage
                else:
                    spend = self._cash * _DEFAULT_FRACTION
                if spend <= 0:
                    return None

                execution_price = price * (_ONE + self._slippage)
                asset_amount = spend / execution_price
                cash_value = spend
                self._cash -= spend
                self._asset += asset_amount
            else:
                fraction = (
                    decision.percentage
                    if decision.percentage is not None
                    else _DEFAULT_FRACTION
                )
                asset_amount = self._asset * fraction
                if asset_amount <= 0:
                    return None

                execution_price = price * (_ONE - self._slippage)
                cash_value = asset_amount * execution_price
                self._asset -= asset_amount
                self._cash += cash_value

            trade = Trade(
                id=generate_trade_id(),
                timestamp=time.time(),
                action=decision.action,
                execution_price=execution_price,
                asset_amount=asset_amount,
                cash_value=cash_value,
                portfolio_before=before,
                portfolio_after=Portfolio(cash=self._cash, asset=self._asset),
                reason=decision.reason,
            )
            self._trades.append(trade)

        logger.debug(
            "ledger_trade_executed",
            trade_id=trade.id,
            action=trade.action.value,
            execution_price=str(execution_price),
            asset_amount=str(asset_amount),
            cash_value=str(cash_value),
        )
        return trade

    def get_value(self, price: Decimal) -> Decimal:
        """Portfolio value in cash units: cash + asset * price."""
        return self.snapshot().value_at(price)

    def roi_for_value(self, value: Decimal) -> Decimal:
        """ROI percentage of a portfolio value against the initial cash."""
        return (value - self._initial_cash) / self._initial_cash * _HUNDRED

    def get_roi(self, price: Decimal) -> Decimal:
        """ROI in percent at the given price (15.5 means +15.5%)."""
        return self.roi_for_value(self.get_value(price))

    def get_roi_basis_points(self, price: Decimal) -> int:
        """ROI as integer basis points (1% = 100), rounded to nearest."""
        value = self.get_value(price)
        bps = (value - self._initial_cash) / self._initial_cash * _BPS
        return int(bps.to_integral_value(rounding=ROUND_HALF_UP))

    def reset(self) -> None:
        """Restore the initial balances and clear the trade history."""
        with self._lock:
            self._cash = self._initial_cash
            self._asset = _ZERO
            self._trades = []
