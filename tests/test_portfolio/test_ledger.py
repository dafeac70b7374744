"""Tests for PortfolioLedger simulated execution.

Verifies:
- Slippage applied in the correct direction (higher for buys, lower for sells)
- Sizing rules: fixed amount (capped), percentage, 50% default
- Holds and zero-size decisions leave balances untouched
- ROI and basis point scoring
- Trade id format (64 hex chars)
"""

import re
import threading
from decimal import Decimal

import pytest

from arena.exceptions import InvalidDecisionError
from arena.models import TradeAction, TradeDecision
from arena.portfolio.ledger import PortfolioLedger, generate_trade_id

PRICE = Decimal("100")


@pytest.fixture
def ledger() -> PortfolioLedger:
    return PortfolioLedger(Decimal("1000"))


def _buy(**kwargs) -> TradeDecision:
    return TradeDecision(action=TradeAction.BUY, reason="test buy", **kwargs)


def _sell(**kwargs) -> TradeDecision:
    return TradeDecision(action=TradeAction.SELL, reason="test sell", **kwargs)


class TestBuy:
    def test_buy_half_cash_with_slippage(self, ledger: PortfolioLedger) -> None:
        trade = ledger.execute_trade(_buy(percentage=Decimal("0.5")), PRICE)

        assert trade is not None
        assert trade.execution_price == Decimal("100.3")
        assert trade.cash_value == Decimal("500")
        assert trade.asset_amount == Decimal("500") / Decimal("100.3")
        snapshot = ledger.snapshot()
        assert snapshot.cash == Decimal("500")
        assert snapshot.asset == Decimal("500") / Decimal("100.3")

    def test_default_fraction_is_half(self, ledger: PortfolioLedger) -> None:
        trade = ledger.execute_trade(_buy(), PRICE)

        assert trade.cash_value == Decimal("500")

    def test_fixed_amount_takes_precedence(self, ledger: PortfolioLedger) -> None:
        trade = ledger.execute_trade(
            _buy(fixed_amount=Decimal("50"), percentage=Decimal("0.9")), PRICE
        )

        assert trade.cash_value == Decimal("50")
        assert ledger.snapshot().cash == Decimal("950")

    def test_fixed_amount_capped_at_cash(self) -> None:
        ledger = PortfolioLedger(Decimal("40"))

        trade = ledger.execute_trade(_buy(fixed_amount=Decimal("50")), PRICE)

        assert trade.cash_value == Decimal("40")
        assert ledger.snapshot().cash == Decimal("0")

    def test_buy_with_no_cash_is_noop(self, ledger: PortfolioLedger) -> None:
        ledger.execute_trade(_buy(percentage=Decimal("1")), PRICE)

        assert ledger.execute_trade(_buy(percentage=Decimal("0.5")), PRICE) is None
        assert len(ledger.get_trades()) == 1


class TestSell:
    def test_sell_half_asset_with_slippage(self, ledger: PortfolioLedger) -> None:
        ledger.execute_trade(_buy(percentage=Decimal("1")), PRICE)
        before = ledger.snapshot()

        trade = ledger.execute_trade(_sell(percentage=Decimal("0.5")), PRICE)

        assert trade.execution_price == Decimal("99.7")
        assert trade.asset_amount == before.asset * Decimal("0.5")
        assert ledger.snapshot().asset == before.asset - trade.asset_amount
        assert ledger.snapshot().cash == trade.asset_amount * Decimal("99.7")

    def test_sell_with_no_asset_is_noop(self, ledger: PortfolioLedger) -> None:
        trade = ledger.execute_trade(_sell(percentage=Decimal("0.5")), PRICE)

        assert trade is None
        assert ledger.snapshot().cash == Decimal("1000")
        assert ledger.get_trades() == []

    def test_sell_ignores_fixed_amount(self, ledger: PortfolioLedger) -> None:
        ledger.execute_trade(_buy(percentage=Decimal("1")), PRICE)
        asset = ledger.snapshot().asset

        trade = ledger.execute_trade(_sell(fixed_amount=Decimal("1")), PRICE)

        assert trade.asset_amount == asset * Decimal("0.5")


class TestInvariants:
    def test_hold_returns_none(self, ledger: PortfolioLedger) -> None:
        assert ledger.execute_trade(TradeDecision.hold("wait"), PRICE) is None
        assert ledger.get_trades() == []

    def test_non_positive_price_rejected(self, ledger: PortfolioLedger) -> None:
        with pytest.raises(InvalidDecisionError):
            ledger.execute_trade(_buy(), Decimal("0"))
        assert ledger.snapshot().cash == Decimal("1000")

    def test_invalid_percentage_rejected(self) -> None:
        with pytest.raises(InvalidDecisionError):
            _buy(percentage=Decimal("1.5"))
        with pytest.raises(InvalidDecisionError):
            _buy(fixed_amount=Decimal("-1"))

    def test_trade_records_before_and_after(self, ledger: PortfolioLedger) -> None:
        trade = ledger.execute_trade(_buy(percentage=Decimal("0.25")), PRICE)

        assert trade.portfolio_before.cash == Decimal("1000")
        assert trade.portfolio_after == ledger.snapshot()
        assert trade.reason == "test buy"

    def test_execution_conserves_value_at_execution_price(
        self, ledger: PortfolioLedger
    ) -> None:
        ledger.execute_trade(_buy(percentage=Decimal("0.5")), PRICE)
        trade = ledger.execute_trade(_sell(percentage=Decimal("0.4")), PRICE)

        before = trade.portfolio_before.value_at(trade.execution_price)
        after = trade.portfolio_after.value_at(trade.execution_price)
        assert abs(before - after) < Decimal("1e-20")

    def test_balances_never_negative(self, ledger: PortfolioLedger) -> None:
        for pct in ("1", "0.7", "1", "0.3"):
            ledger.execute_trade(_buy(percentage=Decimal(pct)), PRICE)
            ledger.execute_trade(_sell(percentage=Decimal(pct)), PRICE)
            snapshot = ledger.snapshot()
            assert snapshot.cash >= 0
            assert snapshot.asset >= 0

    def test_concurrent_trades_keep_balances_consistent(self) -> None:
        ledger = PortfolioLedger(Decimal("1000000"))

        def worker() -> None:
            for _ in range(50):
                ledger.execute_trade(_buy(fixed_amount=Decimal("10")), PRICE)

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(ledger.get_trades()) == 200
        assert ledger.snapshot().cash == Decimal("1000000") - Decimal("2000")

    def test_trade_id_is_64_hex(self, ledger: PortfolioLedger) -> None:
        trade = ledger.execute_trade(_buy(), PRICE)

        assert re.fullmatch(r"[0-9a-f]{64}", trade.id)
        assert generate_trade_id() != generate_trade_id()

    def test_initial_cash_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            PortfolioLedger(Decimal("0"))


class TestScoring:
    def test_fresh_ledger_has_zero_roi(self, ledger: PortfolioLedger) -> None:
        assert ledger.get_value(PRICE) == Decimal("1000")
        assert ledger.get_roi(PRICE) == Decimal("0")
        assert ledger.get_roi_basis_points(PRICE) == 0

    def test_roi_after_price_rise(self, ledger: PortfolioLedger) -> None:
        ledger.execute_trade(_buy(percentage=Decimal("0.5")), PRICE)

        # 500 cash + (500 / 100.3) * 120
        value = ledger.get_value(Decimal("120"))
        expected_roi = (value - Decimal("1000")) / Decimal("1000") * Decimal("100")
        assert ledger.get_roi(Decimal("120")) == expected_roi
        assert ledger.get_roi_basis_points(Decimal("120")) == 982

    def test_basis_points_round_half_up(self) -> None:
        ledger = PortfolioLedger(Decimal("20000"), slippage=Decimal("0"))
        ledger.execute_trade(_buy(fixed_amount=Decimal("10000")), Decimal("1"))

        # value = 10000 + 10000 * 1.0001 = 20001 -> 0.5 bps
        assert ledger.get_roi_basis_points(Decimal("1.0001")) == 1

    def test_reset_restores_initial_state(self, ledger: PortfolioLedger) -> None:
        ledger.execute_trade(_buy(), PRICE)

        ledger.reset()

        assert ledger.snapshot().cash == Decimal("1000")
        assert ledger.snapshot().asset == Decimal("0")
        assert ledger.get_trades() == []
