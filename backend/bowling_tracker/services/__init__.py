"""Internal application services (pure helpers, no I/O)."""

from .stats import calculate_stats, get_trend_data, game_score

__all__ = [
    "calculate_stats",
    "get_trend_data",
    "game_score",
]
