"""Leaderboard ranking engine.

Ranks agents by ROI at the latest known price. Each ledger is read through a
single snapshot so value and ROI come from the same cash/asset pair.

Core formula:
  value = cash + asset * last_price
  roi = (value - initial_cash) / initial_cash * 100
Sorted by roi descending; Python's stable sort keeps registration order on ties.
"""

from collections.abc import Sequence
from decimal import Decimal

from arena.models import (
    AgentRecord,
    Leaderboard,
    LeaderboardEntry,
    LeaderboardStatistics,
)

_ZERO = Decimal("0")


class LeaderboardRanker:
    """Stateless: every call recomputes from current ledger state."""

    def rank(
        self,
        records: Sequence[AgentRecord],
        last_price: Decimal | None,
    ) -> Leaderboard:
        """Build the ranked leaderboard and aggregate statistics.

        Args:
            records: Agents in registration order.
            last_price: Latest known price; None (no price seen yet) values asset at zero.

        Returns:
            Leaderboard with 1-based ranks.
        """
        price = last_price if last_price is not None else _ZERO

        rows: list[tuple[AgentRecord, Decimal, Decimal, int]] = []
        for record in records:
            portfolio = record.ledger.snapshot()
            value = portfolio.value_at(price)
            roi = record.ledger.roi_for_value(value)
            rows.append((record, value, roi, len(record.trades)))

        rows.sort(key=lambda row: row[2], reverse=True)

        entries = [
            LeaderboardEntry(
                rank=index + 1,
                agent_id=record.agent_id,
                owner_address=record.owner_address,
                strategy_kind=record.strategy_kind,
                portfolio_value=value,
                roi=roi,
                trade_count=trade_count,
            )
            for index, (record, value, roi, trade_count) in enumerate(rows)
        ]

        return Leaderboard(
            entries=entries,
            statistics=self.compute_statistics(entries),
            last_price=last_price,
        )

    @staticmethod
    def compute_statistics(entries: Sequence[LeaderboardEntry]) -> LeaderboardStatistics:
        """Count, average/max/min ROI and total trades. All zero when empty."""
        if not entries:
            return LeaderboardStatistics()

        rois = [e.roi for e in entries]
        return LeaderboardStatistics(
            total_agents=len(entries),
            average_roi=sum(rois, _ZERO) / Decimal(len(rois)),
            max_roi=max(rois),
            min_roi=min(rois),
            total_trades=sum(e.trade_count for e in entries),
        )
