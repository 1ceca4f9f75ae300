"""Ten-pin bowling scoring engine.

The engine works on an explicit :class:`GameSession` value: every function
takes the session it operates on (``None`` meaning no game is active) and
either returns a derived value or mutates and returns the same session.
Scores are always recomputed from the recorded rolls, so correcting an earlier
roll is reflected immediately by every query.

:class:`GameEngine` wraps the functions for callers that want a single
current game which ``start_new_game`` replaces.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ..exceptions import (
    FrameBoundsError,
    GameNotComplete,
    GameStateError,
    PinPhysicsViolation,
    RollSequenceError,
)
from ..schemas import (
    FRAMES_PER_GAME,
    PINS_PER_RACK,
    Frame,
    FrameScore,
    GameMode,
    GameSession,
    GameStateReport,
    League,
    Roll,
    ScoreCard,
)
from ..time_utils import coerce_utc, utc_now
from .pins import knocked_pin_numbers, validate_pin_combination

logger = logging.getLogger(__name__)

LAST_FRAME = FRAMES_PER_GAME - 1
MAX_ROLLS = 2
MAX_ROLLS_LAST_FRAME = 3


def _require_session(session: Optional[GameSession]) -> GameSession:
    if session is None:
        raise GameStateError()
    return session


def _require_frame_index(frame_index: int) -> None:
    if not 0 <= frame_index < FRAMES_PER_GAME:
        raise FrameBoundsError(
            f"Invalid frame index {frame_index}: must be between 0 and {LAST_FRAME}"
        )


def start_new_game(
    mode: GameMode = "open",
    league: Optional[League] = None,
    *,
    now: Optional[datetime] = None,
) -> GameSession:
    session = GameSession(
        id=uuid.uuid4().hex,
        mode=mode,
        league=league,
        frames=[Frame(frame_number=n) for n in range(1, FRAMES_PER_GAME + 1)],
        start_time=coerce_utc(now) or utc_now(),
    )
    logger.info("Started %s game %s", mode, session.id)
    return session


def get_effective_previous_roll(frame: Frame, roll_index: int) -> Optional[Roll]:
    """Return the roll that left the rack ``roll_index`` is thrown at.

    ``None`` means a fresh rack. In the last frame the pins are re-racked after
    any roll that clears them and before the bonus ball that follows a spare.
    """
    if roll_index <= 0 or roll_index > len(frame.rolls):
        return None
    previous = frame.rolls[roll_index - 1]
    if frame.frame_number == FRAMES_PER_GAME:
        if previous.pins_knocked == PINS_PER_RACK:
            return None
        if roll_index == 2 and frame.is_spare:
            return None
    return previous


def _check_roll_slot(frame_index: int, frame: Frame, roll_index: int) -> None:
    count = len(frame.rolls)
    if roll_index > count:
        noun = "roll" if count == 1 else "rolls"
        raise RollSequenceError(
            f"Invalid roll index {roll_index} for frame with {count} {noun}. "
            "Rolls must be recorded sequentially."
        )

    number = frame_index + 1
    if frame_index < LAST_FRAME:
        if roll_index >= MAX_ROLLS:
            raise RollSequenceError(f"Frame {number} allows at most {MAX_ROLLS} rolls")
        if roll_index == 1 and frame.is_strike:
            raise RollSequenceError(f"Frame {number} was closed by a strike")
        return

    if roll_index >= MAX_ROLLS_LAST_FRAME:
        raise RollSequenceError(
            f"Frame {number} allows at most {MAX_ROLLS_LAST_FRAME} rolls"
        )
    if roll_index == 2 and not (frame.is_strike or frame.is_spare):
        raise RollSequenceError(
            f"Frame {number} earns a third roll only after a strike or spare"
        )


def _check_later_rolls(
    frame_index: int, frame: Frame, roll_index: int, roll: Roll
) -> None:
    """Replay the rolls after a correction against the racks it leaves behind."""
    rolls = list(frame.rolls)
    rolls[roll_index] = roll
    trial = Frame(frame_number=frame.frame_number, rolls=rolls)
    for later in range(roll_index + 1, len(rolls)):
        before = Frame(frame_number=frame.frame_number, rolls=rolls[:later])
        try:
            _check_roll_slot(frame_index, before, later)
        except RollSequenceError as exc:
            raise RollSequenceError(
                f"Correcting roll {roll_index + 1} of frame {frame_index + 1} "
                f"would orphan roll {later + 1}: {exc.detail}"
            ) from exc

        previous = get_effective_previous_roll(trial, later)
        result = validate_pin_combination(rolls[later].pins, previous)
        if not result.is_valid:
            raise PinPhysicsViolation(
                result.invalid_pins,
                [f"Roll {later + 1}: {message}" for message in result.errors],
            )


def record_roll(
    session: Optional[GameSession],
    frame_index: int,
    roll_index: int,
    pins: Sequence[str],
) -> GameSession:
    """Record (or correct) roll ``roll_index`` of frame ``frame_index``.

    Appends when ``roll_index`` is the frame's next slot and overwrites when it
    points at a roll already recorded. The pins are checked against the rack
    left by the effective previous roll before anything is written.

    Raises:
        GameStateError: no session.
        FrameBoundsError: bad frame index, negative roll index, or a pin array
            that is not exactly ten long.
        RollSequenceError: the slot skips ahead, the frame cannot hold it, or a
            correction would leave a later roll in a slot the frame no longer has.
        PinPhysicsViolation: the pins could not have fallen on that rack, or a
            later roll of the same rack would no longer be possible.
    """
    session = _require_session(session)
    _require_frame_index(frame_index)
    if roll_index < 0:
        raise FrameBoundsError(
            f"Invalid roll index {roll_index}: must be non-negative"
        )
    if len(pins) != PINS_PER_RACK:
        raise FrameBoundsError(
            f"Invalid pins array: must contain exactly {PINS_PER_RACK} elements "
            f"(got {len(pins)})"
        )

    frame = session.frames[frame_index]
    _check_roll_slot(frame_index, frame, roll_index)

    previous = get_effective_previous_roll(frame, roll_index)
    result = validate_pin_combination(pins, previous)
    if not result.is_valid:
        logger.warning(
            "Rejected roll %d of frame %d in game %s: invalid pins %s",
            roll_index + 1,
            frame_index + 1,
            session.id,
            result.invalid_pins,
        )
        raise PinPhysicsViolation(result.invalid_pins, result.errors)

    roll = Roll(pins=list(pins))
    if roll_index < len(frame.rolls):
        try:
            _check_later_rolls(frame_index, frame, roll_index, roll)
        except (RollSequenceError, PinPhysicsViolation) as exc:
            logger.warning(
                "Rejected correction of roll %d of frame %d in game %s: %s",
                roll_index + 1,
                frame_index + 1,
                session.id,
                exc.detail,
            )
            raise

    if roll_index == len(frame.rolls):
        frame.rolls.append(roll)
    else:
        frame.rolls[roll_index] = roll
    logger.debug(
        "Game %s frame %d roll %d: knocked %s",
        session.id,
        frame_index + 1,
        roll_index + 1,
        knocked_pin_numbers(roll.pins),
    )

    if session.end_time is not None:
        # A finished game was corrected; keep the stamped result truthful.
        if _last_frame_complete(session.frames[LAST_FRAME]):
            session.final_score = calculate_total_score(session)
        else:
            session.end_time = None
            session.final_score = None
    return session


def next_roll_position(session: Optional[GameSession]) -> Optional[Tuple[int, int]]:
    """Return ``(frame_index, roll_index)`` of the next open slot, if any."""
    session = _require_session(session)
    for index, frame in enumerate(session.frames):
        count = len(frame.rolls)
        if index < LAST_FRAME:
            if frame.is_strike or count >= MAX_ROLLS:
                continue
            return index, count
        if _last_frame_complete(frame) or count >= MAX_ROLLS_LAST_FRAME:
            return None
        return index, count
    return None


def apply(event: Dict, session: Optional[GameSession]) -> GameSession:
    """Record a ``ROLL`` event at the next open slot of ``session``."""
    if event.get("type") != "ROLL":
        raise ValueError("invalid bowling event")
    position = next_roll_position(session)
    if position is None:
        raise RollSequenceError("No rolls left in final frame")
    frame_index, roll_index = position
    return record_roll(session, frame_index, roll_index, event.get("pins") or [])


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------
# Each helper returns (points, resolved); resolved is False while a roll the
# score depends on has not been recorded yet.


def _next_two_rolls_bonus(frames: List[Frame], frame_index: int) -> Tuple[int, bool]:
    following = frames[frame_index + 1]
    if not following.rolls:
        return 0, False

    first = following.rolls[0].pins_knocked
    if first == PINS_PER_RACK:
        if frame_index + 1 == LAST_FRAME:
            # The last frame supplies both bonus balls itself.
            source = following.rolls[1:2]
        else:
            source = frames[frame_index + 2].rolls[:1]
        if not source:
            return PINS_PER_RACK, False
        return PINS_PER_RACK + source[0].pins_knocked, True

    if len(following.rolls) < 2:
        return first, False
    return first + following.rolls[1].pins_knocked, True


def _next_one_roll_bonus(frames: List[Frame], frame_index: int) -> Tuple[int, bool]:
    following = frames[frame_index + 1]
    if not following.rolls:
        return 0, False
    return following.rolls[0].pins_knocked, True


def _standard_frame_score(frames: List[Frame], frame_index: int) -> Tuple[int, bool]:
    frame = frames[frame_index]
    if not frame.rolls:
        return 0, False

    first = frame.rolls[0].pins_knocked
    if first == PINS_PER_RACK:
        bonus, resolved = _next_two_rolls_bonus(frames, frame_index)
        return PINS_PER_RACK + bonus, resolved

    if len(frame.rolls) < 2:
        return first, False

    total = first + frame.rolls[1].pins_knocked
    if total == PINS_PER_RACK:
        bonus, resolved = _next_one_roll_bonus(frames, frame_index)
        return PINS_PER_RACK + bonus, resolved
    return total, True


def _last_frame_complete(frame: Frame) -> bool:
    rolls = frame.rolls
    if not rolls:
        return False
    if rolls[0].pins_knocked == PINS_PER_RACK:
        return len(rolls) == MAX_ROLLS_LAST_FRAME
    if len(rolls) < 2:
        return False
    if rolls[0].pins_knocked + rolls[1].pins_knocked == PINS_PER_RACK:
        return len(rolls) == MAX_ROLLS_LAST_FRAME
    return True


def _score_frame(frames: List[Frame], frame_index: int) -> Tuple[int, bool]:
    if frame_index == LAST_FRAME:
        frame = frames[frame_index]
        return sum(r.pins_knocked for r in frame.rolls), _last_frame_complete(frame)
    return _standard_frame_score(frames, frame_index)


def calculate_frame_score(session: Optional[GameSession], frame_index: int) -> int:
    """Score of one frame given the rolls recorded so far.

    Bonus rolls that have not been thrown count as zero, so a strike or spare
    reads 10 until the following rolls arrive.
    """
    session = _require_session(session)
    _require_frame_index(frame_index)
    return _score_frame(session.frames, frame_index)[0]


def calculate_total_score(session: Optional[GameSession]) -> int:
    session = _require_session(session)
    return sum(_score_frame(session.frames, i)[0] for i in range(FRAMES_PER_GAME))


def is_game_complete(session: Optional[GameSession]) -> bool:
    session = _require_session(session)
    return _last_frame_complete(session.frames[LAST_FRAME])


def score_card(session: Optional[GameSession]) -> ScoreCard:
    session = _require_session(session)
    running = 0
    entries: List[FrameScore] = []
    for index in range(FRAMES_PER_GAME):
        score, resolved = _score_frame(session.frames, index)
        running += score
        entries.append(
            FrameScore(
                frame_number=index + 1,
                score=score,
                running_total=running,
                provisional=not resolved,
            )
        )
    return ScoreCard(
        game_id=session.id,
        frames=entries,
        total=running,
        is_complete=_last_frame_complete(session.frames[LAST_FRAME]),
    )


def finish_game(
    session: Optional[GameSession], *, now: Optional[datetime] = None
) -> GameSession:
    """Stamp the end time and final score on a completed game.

    Finishing an already finished game keeps the first stamp; corrections
    made since then have already refreshed ``final_score``.
    """
    session = _require_session(session)
    if not is_game_complete(session):
        raise GameNotComplete(session.id)
    if session.end_time is not None:
        return session
    session.end_time = coerce_utc(now) or utc_now()
    session.final_score = calculate_total_score(session)
    logger.info("Finished game %s with %d", session.id, session.final_score)
    return session


# ---------------------------------------------------------------------------
# Consistency report
# ---------------------------------------------------------------------------


def _pin_count_problems(number: int, frame: Frame) -> List[str]:
    return [
        f"Frame {number}, roll {i}: Invalid pin count {roll.pins_knocked}"
        for i, roll in enumerate(frame.rolls, start=1)
        if not 0 <= roll.pins_knocked <= PINS_PER_RACK
    ]


def _standard_frame_problems(number: int, frame: Frame) -> List[str]:
    errors: List[str] = []
    rolls = frame.rolls
    if len(rolls) > MAX_ROLLS:
        errors.append(f"Frame {number} has too many rolls: {len(rolls)}")
    errors.extend(_pin_count_problems(number, frame))

    first = rolls[0].pins_knocked
    if first == PINS_PER_RACK and len(rolls) > 1:
        errors.append(f"Frame {number}: Strike should only have one roll")
    if first < PINS_PER_RACK and len(rolls) > 1:
        total = first + rolls[1].pins_knocked
        if total > PINS_PER_RACK:
            errors.append(f"Frame {number}: Total pins {total} exceeds {PINS_PER_RACK}")
    return errors


def _last_frame_problems(number: int, frame: Frame) -> List[str]:
    rolls = frame.rolls
    if len(rolls) > MAX_ROLLS_LAST_FRAME:
        return [f"Frame {number} has too many rolls: {len(rolls)}"]

    errors = _pin_count_problems(number, frame)
    if len(rolls) < 2:
        return errors

    first, second = rolls[0].pins_knocked, rolls[1].pins_knocked
    if first < PINS_PER_RACK and first + second > PINS_PER_RACK:
        errors.append(
            f"Frame {number}: First two rolls total {first + second} exceeds {PINS_PER_RACK}"
        )
    if len(rolls) == MAX_ROLLS_LAST_FRAME:
        if not (frame.is_strike or frame.is_spare):
            errors.append(
                f"Frame {number}: Third roll recorded without a strike or spare"
            )
        elif frame.is_strike and second < PINS_PER_RACK:
            third = rolls[2].pins_knocked
            if second + third > PINS_PER_RACK:
                errors.append(
                    f"Frame {number}: Second and third rolls total "
                    f"{second + third} exceeds {PINS_PER_RACK}"
                )
    return errors


def _stance_problems(frame_index: int, frame: Frame) -> List[str]:
    """Replay each roll against its rack, catching drift left by corrections."""
    limit = MAX_ROLLS_LAST_FRAME if frame_index == LAST_FRAME else MAX_ROLLS
    errors: List[str] = []
    for roll_index, roll in enumerate(frame.rolls[:limit]):
        previous = get_effective_previous_roll(frame, roll_index)
        result = validate_pin_combination(roll.pins, previous)
        errors.extend(
            f"Frame {frame_index + 1}, roll {roll_index + 1}: {message}"
            for message in result.errors
        )
    return errors


def validate_game_state(session: Optional[GameSession]) -> GameStateReport:
    """Report rule violations in the recorded rolls without raising."""
    if session is None:
        return GameStateReport(is_valid=False, errors=["No active game session"])

    errors: List[str] = []
    for index, frame in enumerate(session.frames):
        if not frame.rolls:
            continue
        number = index + 1
        if index == LAST_FRAME:
            errors.extend(_last_frame_problems(number, frame))
        else:
            errors.extend(_standard_frame_problems(number, frame))
        errors.extend(_stance_problems(index, frame))
    return GameStateReport(is_valid=not errors, errors=errors)


class GameEngine:
    """Holds one current game; ``start_new_game`` replaces it."""

    def __init__(self, session: Optional[GameSession] = None) -> None:
        self._session = session

    @property
    def current_session(self) -> Optional[GameSession]:
        return self._session

    def start_new_game(
        self, mode: GameMode = "open", league: Optional[League] = None
    ) -> GameSession:
        self._session = start_new_game(mode, league)
        return self._session

    def record_roll(self, frame_index: int, roll_index: int, pins: Sequence[str]) -> None:
        record_roll(self._session, frame_index, roll_index, pins)

    def calculate_frame_score(self, frame_index: int) -> int:
        return calculate_frame_score(self._session, frame_index)

    def calculate_total_score(self) -> int:
        return calculate_total_score(self._session)

    def is_game_complete(self) -> bool:
        return is_game_complete(self._session)

    def validate_game_state(self) -> GameStateReport:
        return validate_game_state(self._session)

    def score_card(self) -> ScoreCard:
        return score_card(self._session)

    def finish_game(self, *, now: Optional[datetime] = None) -> GameSession:
        return finish_game(self._session, now=now)
