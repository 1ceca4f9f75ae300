from typing import Iterable, List, Optional

from fastapi import HTTPException
from pydantic import BaseModel


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str
    errors: Optional[List[str]] = None
    invalid_pins: Optional[List[int]] = None


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class GameStateError(DomainException):
    def __init__(self, detail: str = "No active game session") -> None:
        super().__init__(
            status_code=409,
            title="No active game",
            detail=detail,
            code="no_active_game",
        )


class FrameBoundsError(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=422,
            title="Out of bounds",
            detail=detail,
            code="out_of_bounds",
        )


class RollSequenceError(DomainException):
    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=409,
            title="Roll out of sequence",
            detail=detail,
            code="roll_out_of_sequence",
        )


class PinPhysicsViolation(DomainException):
    """A pin combination that cannot physically fall given the current rack."""

    def __init__(self, invalid_pins: Iterable[int], errors: Iterable[str]) -> None:
        self.invalid_pins = list(invalid_pins)
        self.errors = list(errors)
        super().__init__(
            status_code=422,
            title="Impossible pin combination",
            detail="; ".join(self.errors) or "pin combination is not possible",
            code="pin_physics_violation",
        )


class GameNotComplete(DomainException):
    def __init__(self, game_id: str) -> None:
        super().__init__(
            status_code=409,
            title="Game not complete",
            detail=f"game '{game_id}' still has rolls to record",
            code="game_not_complete",
        )


class GameNotFound(DomainException):
    def __init__(self, game_id: str) -> None:
        super().__init__(
            status_code=404,
            title="Game not found",
            detail=f"game '{game_id}' not found",
            code="game_not_found",
        )


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc
