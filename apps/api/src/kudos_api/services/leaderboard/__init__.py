"""Leaderboard ranking services."""

from .ranker import (
    LeaderboardDimension,
    LeaderboardEntry,
    LeaderboardPage,
    LeaderboardRanker,
    LeaderboardTimeframe,
)

__all__ = [
    "LeaderboardDimension",
    "LeaderboardEntry",
    "LeaderboardPage",
    "LeaderboardRanker",
    "LeaderboardTimeframe",
]
