from typing import List

from fastapi import APIRouter, Query

from ..schemas import BowlingStats, GameSession, TimePeriod, TrendData
from ..services import calculate_stats, get_trend_data

router = APIRouter(prefix="/stats", tags=["stats"])


# Games are supplied by the caller; nothing is read from storage here.
@router.post("", response_model=BowlingStats)
async def summarize_games(games: List[GameSession]):
    return calculate_stats(games)


@router.post("/trend", response_model=TrendData)
async def trend(
    games: List[GameSession],
    period: TimePeriod = Query("all", description="week, month, year or all"),
):
    return get_trend_data(games, period)
