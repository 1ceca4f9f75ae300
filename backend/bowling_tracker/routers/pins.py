from fastapi import APIRouter

from ..schemas import PinCheckIn, PinLayoutOut, Roll, ValidationResult
from ..scoring import pins as pin_physics

router = APIRouter(prefix="/pins", tags=["pins"])


# Lets a client check a selection before submitting it as a roll.
@router.post("/validate", response_model=ValidationResult)
async def validate_pins(body: PinCheckIn):
    previous = Roll(pins=body.previous_pins) if body.previous_pins else None
    return pin_physics.validate_pin_combination(body.pins, previous)


@router.get("/layout", response_model=PinLayoutOut)
async def pin_layout():
    return PinLayoutOut(
        description=pin_physics.pin_layout_description(),
        dependencies=pin_physics.dependency_table(),
    )
