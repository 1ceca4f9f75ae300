from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from ..schemas import (
    KNOCKED,
    PINS_PER_RACK,
    BowlingStats,
    Frame,
    GameSession,
    PinAccuracy,
    Roll,
    TimePeriod,
    TrendData,
    TrendPoint,
)
from ..scoring.bowling import calculate_total_score, get_effective_previous_roll
from ..time_utils import coerce_utc, day_bucket, utc_now

PERIOD_WINDOWS: Dict[str, Optional[timedelta]] = {
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
    "all": None,
}


def _percentage(value: int, total: int) -> float:
    if total == 0:
        return 0.0
    return round(value / total * 100, 2)


def game_score(game: GameSession) -> int:
    """Stamped final score when present, otherwise the live total."""
    if game.final_score is not None:
        return game.final_score
    return calculate_total_score(game)


def _racks(frame: Frame) -> Iterator[List[Roll]]:
    """Group a frame's rolls by the rack they were thrown at."""
    rack: List[Roll] = []
    for index, roll in enumerate(frame.rolls):
        if rack and get_effective_previous_roll(frame, index) is None:
            yield rack
            rack = []
        rack.append(roll)
    if rack:
        yield rack


def calculate_stats(games: Sequence[GameSession]) -> BowlingStats:
    """Aggregate scoring and pin statistics over ``games``.

    Every fresh rack is a strike opportunity; a rack whose first ball left
    pins standing and got a second ball is a spare opportunity. Pin accuracy
    counts how often each pin fell on the first ball at a fresh rack.
    """
    scores = [game_score(g) for g in games]

    racks = strikes = spare_chances = spares = 0
    pin_hits = [0] * PINS_PER_RACK
    for game in games:
        for frame in game.frames:
            for rack in _racks(frame):
                racks += 1
                first = rack[0]
                for i, pin in enumerate(first.pins):
                    if pin == KNOCKED:
                        pin_hits[i] += 1
                if first.pins_knocked == PINS_PER_RACK:
                    strikes += 1
                elif len(rack) > 1:
                    spare_chances += 1
                    if first.pins_knocked + rack[1].pins_knocked == PINS_PER_RACK:
                        spares += 1

    accuracy = []
    for i, hits in enumerate(pin_hits, start=1):
        hit_pct = _percentage(hits, racks)
        accuracy.append(
            PinAccuracy(
                pin_number=i,
                hit_percentage=hit_pct,
                miss_percentage=round(100 - hit_pct, 2) if racks else 0.0,
            )
        )

    return BowlingStats(
        games_played=len(scores),
        average=round(sum(scores) / len(scores), 2) if scores else 0.0,
        high_game=max(scores, default=0),
        low_game=min(scores, default=0),
        strike_percentage=_percentage(strikes, racks),
        spare_percentage=_percentage(spares, spare_chances),
        pin_accuracy=accuracy,
    )


def get_trend_data(
    games: Iterable[GameSession],
    period: TimePeriod,
    *,
    now: Optional[datetime] = None,
) -> TrendData:
    """Daily average and game count for games started within ``period``."""
    if period not in PERIOD_WINDOWS:
        raise ValueError(f"unknown period {period!r}")
    window = PERIOD_WINDOWS[period]
    cutoff = (coerce_utc(now) or utc_now()) - window if window else None

    buckets: Dict[datetime, List[int]] = defaultdict(list)
    for game in games:
        started = coerce_utc(game.start_time)
        if cutoff is not None and started < cutoff:
            continue
        buckets[day_bucket(started)].append(game_score(game))

    points = [
        TrendPoint(
            date=day,
            average=round(sum(values) / len(values), 2),
            games_played=len(values),
        )
        for day, values in sorted(buckets.items())
    ]
    return TrendData(period=period, data_points=points)
