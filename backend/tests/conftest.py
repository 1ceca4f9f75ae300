import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from bowling_tracker.scoring import bowling  # noqa: E402
from bowling_tracker.scoring.pins import pins_from_numbers  # noqa: E402


def _bowl(session, *counts):
    """Record pin counts at the next open slots of ``session``.

    Each roll knocks the lowest-numbered standing pins of its rack, which is
    always a physically reachable selection.
    """
    for count in counts:
        position = bowling.next_roll_position(session)
        assert position is not None, "game has no open roll slot"
        frame_index, roll_index = position
        previous = bowling.get_effective_previous_roll(
            session.frames[frame_index], roll_index
        )
        offset = previous.pins_knocked if previous else 0
        pins = pins_from_numbers(range(offset + 1, offset + count + 1))
        bowling.record_roll(session, frame_index, roll_index, pins)
    return session


@pytest.fixture
def game():
    """A freshly started open game."""
    return bowling.start_new_game("open")


@pytest.fixture
def bowl():
    return _bowl
