"""Cached leaderboard access for API consumers.

The ranker always recomputes; this service keeps the last result for a short
TTL so frequent dashboard polls do not re-rank on every request. A completed tick,
a new registration or a new latest price invalidates the cache immediately.
"""

import time
from collections.abc import Callable

from arena.leaderboard.ranker import LeaderboardRanker
from arena.models import Leaderboard, LeaderboardEntry, LeaderboardStatistics
from arena.scheduler import TournamentScheduler


class LeaderboardService:
    """Short-lived leaderboard cache with convenience queries.

    Args:
        scheduler: Source of agent records and the last price.
        ranker: Ranking engine.
        cache_ttl: Seconds a computed leaderboard is reused.
        clock: Time function, injectable for tests.
    """

    def __init__(
        self,
        scheduler: TournamentScheduler,
        ranker: LeaderboardRanker | None = None,
        cache_ttl: float = 10.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._scheduler = scheduler
        self._ranker = ranker or LeaderboardRanker()
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._cached: Leaderboard | None = None
        self._cached_at: float = 0.0
        self._cached_key: tuple | None = None

    def get_leaderboard(self) -> Leaderboard:
        """Return the cached leaderboard, recomputing once the TTL expired."""
        now = self._clock()
        price = self._scheduler.valuation_price
        key = (self._scheduler.tick_count, self._scheduler.agent_count, price)
        if (
            self._cached is not None
            and key == self._cached_key
            and now - self._cached_at < self._cache_ttl
        ):
            return self._cached

        self._cached = self._ranker.rank(self._scheduler.get_agents(), price)
        self._cached_at = now
        self._cached_key = key
        return self._cached

    def invalidate(self) -> None:
        self._cached = None

    def get_top_agents(self, n: int = 3) -> list[LeaderboardEntry]:
        return self.get_leaderboard().entries[:n]

    def get_agent_rank(self, agent_id: str) -> int | None:
        """Rank of an agent, or None if it is not on the leaderboard."""
        for entry in self.get_leaderboard().entries:
            if entry.agent_id == agent_id:
                return entry.rank
        return None

    def get_statistics(self) -> LeaderboardStatistics:
        return self.get_leaderboard().statistics

    def format_leaderboard(self) -> str:
        """Render the leaderboard as a fixed-width text table."""
        entries = self.get_leaderboard().entries
        if not entries:
            return "No agents registered yet."

        border = "+" + "-" * 6 + "+" + "-" * 22 + "+" + "-" * 16 + "+" + "-" * 10 + "+" + "-" * 8 + "+"
        lines = [
            border,
            "| Rank | Agent                | Strategy       | ROI      | Trades |",
            border,
        ]
        for entry in entries:
            roi = f"{'+' if entry.roi >= 0 else ''}{entry.roi:.2f}%"
            lines.append(
                f"| {entry.rank:>4} | {entry.agent_id[:20]:<20} "
                f"| {entry.strategy_kind[:14]:<14} | {roi:>8} | {entry.trade_count:>6} |"
            )
        lines.append(border)
        return "\n".join(lines)
