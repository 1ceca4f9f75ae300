"""Pin physics for the standard ten-pin rack.

Pins are numbered the usual way, seen from the bowler::

    7  8  9  10
     4  5  6
      2  3
       1

A pin can only fall once a pin in front of it that could have struck it is
down. Each pin maps to a tuple of dependency groups; the pin is reachable when
at least one group is entirely knocked down (OR over AND-groups). Pins with no
groups are always reachable.

Everything here is pure: callers pass the pin states (and optionally the roll
already thrown at the same rack) and get a ``ValidationResult`` back.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..schemas import KNOCKED, PINS_PER_RACK, STANDING, Roll, ValidationResult

DependencyGroups = Tuple[frozenset, ...]

PIN_DEPENDENCIES: Dict[int, DependencyGroups] = {
    1: (),
    2: (frozenset({1}),),
    3: (frozenset({1}),),
    4: (frozenset({1}), frozenset({2})),
    5: (frozenset({1}),),
    6: (frozenset({1}), frozenset({3})),
    7: (frozenset({4}),),
    8: (frozenset({5}),),
    9: (frozenset({6}),),
    10: (frozenset({6}),),
}

RACK_SIZE_ERROR = f"Pin array must contain exactly {PINS_PER_RACK} elements"


def standing_rack() -> List[str]:
    return [STANDING] * PINS_PER_RACK


def pins_from_numbers(numbers: Iterable[int]) -> List[str]:
    """Build a pin array with the given pin numbers (1-10) knocked down."""
    pins = standing_rack()
    for number in numbers:
        if not 1 <= number <= PINS_PER_RACK:
            raise ValueError(f"pin number {number} out of range")
        pins[number - 1] = KNOCKED
    return pins


def knocked_pin_numbers(pins: Sequence[str]) -> List[int]:
    return [i for i, pin in enumerate(pins, start=1) if pin == KNOCKED]


def count_knocked(pins: Sequence[str]) -> int:
    return sum(1 for pin in pins if pin == KNOCKED)


def _describe_groups(groups: DependencyGroups) -> str:
    parts = []
    for group in groups:
        ordered = sorted(group)
        if len(ordered) == 1:
            parts.append(str(ordered[0]))
        else:
            parts.append("(" + " and ".join(str(p) for p in ordered) + ")")
    return " or ".join(parts)


def _check_reachable(
    knocked: set, dependencies: Dict[int, DependencyGroups]
) -> Tuple[List[str], List[int]]:
    errors: List[str] = []
    invalid: List[int] = []
    for pin in sorted(knocked):
        groups = dependencies.get(pin, ())
        if not groups:
            continue
        if any(group <= knocked for group in groups):
            continue
        errors.append(
            f"Pin {pin} cannot be knocked down without first knocking down "
            f"pin {_describe_groups(groups)}"
        )
        invalid.append(pin)
    return errors, invalid


def validate_pin_combination(
    pins: Sequence[str],
    previous_roll: Optional[Roll] = None,
    *,
    dependencies: Dict[int, DependencyGroups] = PIN_DEPENDENCIES,
) -> ValidationResult:
    """Check whether ``pins`` can fall on the rack left by ``previous_roll``.

    ``previous_roll`` is the roll thrown earlier at the same rack; ``None``
    means a fresh rack with every pin standing.
    """
    if len(pins) != PINS_PER_RACK:
        return ValidationResult(is_valid=False, errors=[RACK_SIZE_ERROR])

    errors: List[str] = []
    invalid: List[int] = []

    for number, pin in enumerate(pins, start=1):
        if pin not in (STANDING, KNOCKED):
            errors.append(f"Pin {number} has unknown state {pin!r}")
            invalid.append(number)

    already_down = set(knocked_pin_numbers(previous_roll.pins)) if previous_roll else set()
    knocked_now = set(knocked_pin_numbers(pins))

    for pin in sorted(knocked_now & already_down):
        errors.append(f"Pin {pin} was already knocked down in previous roll")
        invalid.append(pin)

    physics_errors, physics_invalid = _check_reachable(
        already_down | knocked_now, dependencies
    )
    errors.extend(physics_errors)
    invalid.extend(physics_invalid)

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        invalid_pins=list(dict.fromkeys(invalid)),
    )


def is_physically_possible(pins: Sequence[str]) -> bool:
    """Dependency check only; there is no history to re-knock against."""
    if len(pins) != PINS_PER_RACK:
        return False
    errors, _ = _check_reachable(set(knocked_pin_numbers(pins)), PIN_DEPENDENCIES)
    return not errors


def get_invalid_pins(
    pins: Sequence[str], previous_roll: Optional[Roll] = None
) -> List[int]:
    return validate_pin_combination(pins, previous_roll).invalid_pins


def dependency_table() -> Dict[int, List[List[int]]]:
    return {
        pin: [sorted(group) for group in groups]
        for pin, groups in PIN_DEPENDENCIES.items()
    }


def pin_layout_description() -> str:
    lines = [
        "Pin layout (standard 10-pin bowling):",
        "    7  8  9  10",
        "     4  5  6",
        "      2  3",
        "       1",
        "",
        "Pin dependencies:",
    ]
    for pin, groups in PIN_DEPENDENCIES.items():
        if groups:
            lines.append(f"- Pin {pin}: requires pin {_describe_groups(groups)}")
        else:
            lines.append(f"- Pin {pin}: always reachable (head pin)")
    return "\n".join(lines)
