from __future__ import annotations

from asyncio import Lock
import time

from .config import GAME_TTL_SECONDS
from .schemas import GameSession


class GameStore:
    """In-memory games keyed by id, dropped after ``ttl_seconds`` idle."""

    def __init__(self, ttl_seconds: float = 300.0) -> None:
        self._ttl = ttl_seconds
        self._lock = Lock()
        self._store: dict[str, tuple[GameSession, float]] = {}

    async def get(self, game_id: str) -> GameSession | None:
        now = time.monotonic()
        async with self._lock:
            entry = self._store.get(game_id)
            if not entry:
                return None
            session, expires_at = entry
            if expires_at <= now:
                self._store.pop(game_id, None)
                return None
            # Reading a game counts as activity.
            self._store[game_id] = (session, now + self._ttl)
            return session

    async def put(self, session: GameSession) -> None:
        expires_at = time.monotonic() + max(self._ttl, 0.0)
        async with self._lock:
            self._store[session.id] = (session, expires_at)

    async def discard(self, game_id: str) -> bool:
        async with self._lock:
            return self._store.pop(game_id, None) is not None

    async def purge_expired(self) -> int:
        now = time.monotonic()
        async with self._lock:
            stale = [key for key, (_, expires_at) in self._store.items() if expires_at <= now]
            for key in stale:
                self._store.pop(key, None)
            return len(stale)

    async def clear(self) -> None:
        async with self._lock:
            self._store.clear()


game_store = GameStore(ttl_seconds=GAME_TTL_SECONDS)
