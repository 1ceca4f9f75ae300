import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from bowling_tracker.cache import GameStore
from bowling_tracker.scoring import bowling


@pytest.fixture(scope="module")
def anyio_backend():
    return "asyncio"


@pytest.mark.anyio
async def test_put_and_get():
    store = GameStore(ttl_seconds=60)
    session = bowling.start_new_game()
    await store.put(session)
    assert await store.get(session.id) is session
    assert await store.get("missing") is None


@pytest.mark.anyio
async def test_expired_games_are_dropped():
    store = GameStore(ttl_seconds=0)
    session = bowling.start_new_game()
    await store.put(session)
    assert await store.get(session.id) is None
    assert await store.purge_expired() == 0


@pytest.mark.anyio
async def test_purge_expired_counts_removed():
    store = GameStore(ttl_seconds=0)
    for _ in range(3):
        await store.put(bowling.start_new_game())
    assert await store.purge_expired() == 3


@pytest.mark.anyio
async def test_discard_and_clear():
    store = GameStore(ttl_seconds=60)
    first, second = bowling.start_new_game(), bowling.start_new_game()
    await store.put(first)
    await store.put(second)
    assert await store.discard(first.id) is True
    assert await store.discard(first.id) is False
    await store.clear()
    assert await store.get(second.id) is None
