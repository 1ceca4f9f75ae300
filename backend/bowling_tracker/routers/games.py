# backend/bowling_tracker/routers/games.py
import logging

from fastapi import APIRouter, Depends, Response

from ..cache import GameStore, game_store
from ..exceptions import GameNotFound, http_problem
from ..schemas import GameCreate, GameSession, GameStateReport, RollIn, ScoreCard
from ..scoring import bowling

logger = logging.getLogger(__name__)

# Resource-only prefix; versioning is added in main.py
router = APIRouter(prefix="/games", tags=["games"])


def get_store() -> GameStore:
    return game_store


async def _load(game_id: str, store: GameStore) -> GameSession:
    session = await store.get(game_id)
    if session is None:
        raise GameNotFound(game_id)
    return session


# POST /api/v0/games
@router.post("", response_model=GameSession, status_code=201)
async def create_game(body: GameCreate, store: GameStore = Depends(get_store)):
    purged = await store.purge_expired()
    if purged:
        logger.info("Dropped %d expired games", purged)
    session = bowling.start_new_game(body.mode, body.league)
    await store.put(session)
    return session


@router.get("/{game_id}", response_model=GameSession)
async def get_game(game_id: str, store: GameStore = Depends(get_store)):
    return await _load(game_id, store)


# POST /api/v0/games/{id}/rolls
# Both indices given: record or correct that slot. Neither: next open slot.
@router.post("/{game_id}/rolls", response_model=GameSession)
async def record_roll(
    game_id: str, body: RollIn, store: GameStore = Depends(get_store)
):
    session = await _load(game_id, store)
    if body.frame_index is None and body.roll_index is None:
        bowling.apply({"type": "ROLL", "pins": body.pins}, session)
    elif body.frame_index is None or body.roll_index is None:
        raise http_problem(
            422,
            "frame_index and roll_index must be provided together",
            "incomplete_roll_position",
        )
    else:
        bowling.record_roll(session, body.frame_index, body.roll_index, body.pins)
    await store.put(session)
    return session


@router.get("/{game_id}/score", response_model=ScoreCard)
async def get_score(game_id: str, store: GameStore = Depends(get_store)):
    return bowling.score_card(await _load(game_id, store))


@router.get("/{game_id}/validation", response_model=GameStateReport)
async def validate_game(game_id: str, store: GameStore = Depends(get_store)):
    return bowling.validate_game_state(await _load(game_id, store))


@router.post("/{game_id}/finish", response_model=GameSession)
async def finish_game(game_id: str, store: GameStore = Depends(get_store)):
    session = bowling.finish_game(await _load(game_id, store))
    await store.put(session)
    return session


@router.delete("/{game_id}", status_code=204)
async def delete_game(game_id: str, store: GameStore = Depends(get_store)):
    if not await store.discard(game_id):
        raise GameNotFound(game_id)
    return Response(status_code=204)
