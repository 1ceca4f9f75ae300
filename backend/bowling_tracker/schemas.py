from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)

from .time_utils import coerce_utc

PINS_PER_RACK = 10
FRAMES_PER_GAME = 10

STANDING = "standing"
KNOCKED = "knocked"

PinState = Literal["standing", "knocked"]
GameMode = Literal["league", "open"]
TimePeriod = Literal["week", "month", "year", "all"]


def _require_rack(value: List[str]) -> List[str]:
    if len(value) != PINS_PER_RACK:
        raise ValueError(f"pins must contain exactly {PINS_PER_RACK} entries")
    return value


class Roll(BaseModel):
    """One delivery: the state of each pin, indexed by pin number - 1."""

    pins: List[PinState]

    # Derived fields present in dumped payloads are recomputed, not trusted.
    model_config = ConfigDict(extra="ignore")

    @field_validator("pins")
    @classmethod
    def _validate_pins(cls, value: List[str]) -> List[str]:
        return _require_rack(value)

    @computed_field
    @property
    def pins_knocked(self) -> int:
        return sum(1 for pin in self.pins if pin == KNOCKED)


class Frame(BaseModel):
    frame_number: int = Field(..., ge=1, le=FRAMES_PER_GAME)
    rolls: List[Roll] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @computed_field
    @property
    def is_strike(self) -> bool:
        return bool(self.rolls) and self.rolls[0].pins_knocked == PINS_PER_RACK

    @computed_field
    @property
    def is_spare(self) -> bool:
        if len(self.rolls) < 2 or self.is_strike:
            return False
        return self.rolls[0].pins_knocked + self.rolls[1].pins_knocked == PINS_PER_RACK


class League(BaseModel):
    id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=200)
    season: str = Field(..., min_length=1, max_length=100)
    team_name: Optional[str] = None
    bowling_night: Optional[str] = None

    @field_validator("id", "name", "season", mode="before")
    @classmethod
    def _strip(cls, value: str) -> str:
        if not isinstance(value, str):
            raise ValueError("value must be a string")
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("value must not be empty")
        return trimmed


class GameSession(BaseModel):
    id: str
    mode: GameMode = "open"
    league: Optional[League] = None
    frames: List[Frame]
    start_time: datetime
    end_time: Optional[datetime] = None
    final_score: Optional[int] = Field(default=None, ge=0, le=300)

    model_config = ConfigDict(extra="ignore")

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize_time(cls, value: Optional[datetime]) -> Optional[datetime]:
        return coerce_utc(value)

    @model_validator(mode="after")
    def _check_frames(self) -> "GameSession":
        if len(self.frames) != FRAMES_PER_GAME:
            raise ValueError(f"a game must have exactly {FRAMES_PER_GAME} frames")
        for expected, frame in enumerate(self.frames, start=1):
            if frame.frame_number != expected:
                raise ValueError(
                    f"frame at position {expected} is numbered {frame.frame_number}"
                )
        return self


class ValidationResult(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    invalid_pins: List[int] = Field(default_factory=list)


class GameStateReport(BaseModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


class FrameScore(BaseModel):
    frame_number: int
    score: int
    running_total: int
    # True while the frame's own rolls or its bonus rolls are still missing.
    provisional: bool


class ScoreCard(BaseModel):
    game_id: str
    frames: List[FrameScore]
    total: int
    is_complete: bool


class PinAccuracy(BaseModel):
    pin_number: int
    hit_percentage: float
    miss_percentage: float


class BowlingStats(BaseModel):
    games_played: int
    average: float
    high_game: int
    low_game: int
    strike_percentage: float
    spare_percentage: float
    pin_accuracy: List[PinAccuracy]


class TrendPoint(BaseModel):
    date: datetime
    average: float
    games_played: int


class TrendData(BaseModel):
    period: TimePeriod
    data_points: List[TrendPoint]


# ---------------------------------------------------------------------------
# Request / response bodies for the HTTP layer
# ---------------------------------------------------------------------------


class GameCreate(BaseModel):
    mode: GameMode = "open"
    league: Optional[League] = None

    model_config = ConfigDict(extra="forbid")


class RollIn(BaseModel):
    """A roll submission; omit both indices to record at the next open slot."""

    frame_index: Optional[int] = None
    roll_index: Optional[int] = None
    # Length is checked by the engine so callers get an out_of_bounds problem.
    pins: List[PinState]

    model_config = ConfigDict(extra="forbid")


class PinCheckIn(BaseModel):
    pins: List[PinState]
    previous_pins: Optional[List[PinState]] = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("previous_pins")
    @classmethod
    def _validate_previous(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return _require_rack(value)


class PinLayoutOut(BaseModel):
    description: str
    dependencies: Dict[int, List[List[int]]]
