"""Leaderboard layer -- stateless ranking plus a short-lived cache."""

from arena.leaderboard.ranker import LeaderboardRanker
from arena.leaderboard.service import LeaderboardService

__all__ = ["LeaderboardRanker", "LeaderboardService"]
