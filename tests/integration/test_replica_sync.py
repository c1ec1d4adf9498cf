"""
Integration tests for two replicas sharing one game document.

Each replica runs its own session and queue; the in-memory store stands in
for the realtime database between them.
"""

import asyncio

import pytest

from klondike.adapters import InMemoryDocumentStore
from klondike.engine import GameSession
from klondike.state.models import StockAction

SEED = "e2e-draw-three-seed"


async def settle(*sessions):
    """Let every replica drain its queue and the store's deliveries."""
    for _ in range(2):
        await asyncio.gather(*(s.wait_for_sync(timeout=2) for s in sessions))


async def pair(store, draw_mode="three"):
    a = GameSession({"draw_mode": draw_mode}, store, replica_id="a")
    b = GameSession({"draw_mode": draw_mode}, store, replica_id="b")
    await a.configure_game(SEED, game_id="shared")
    await settle(a, b)
    return a, b


def assert_converged(store, *sessions):
    layouts = [s.state.layout() for s in sessions]
    assert all(layout == layouts[0] for layout in layouts)
    for s in sessions:
        assert s.validate_integrity().valid
        assert s.pending_action_count == 0
    assert store.writes[-1]["tableau"] == layouts[0]["tableau"]
    assert store.writes[-1]["stock"] == layouts[0]["stock"]


@pytest.mark.asyncio
async def test_second_replica_adopts_configured_game(store):
    a, b = await pair(store)

    assert b.is_configured
    assert b.state.game_id == "shared"
    assert b.state.stock.size == 21
    assert_converged(store, a, b)


@pytest.mark.asyncio
async def test_sequential_draws_propagate(store):
    a, b = await pair(store)

    await a.tap_stock()
    await settle(a, b)
    assert b.state.stock.size == 18

    await b.tap_stock()
    await settle(a, b)
    assert a.state.stock.size == 15
    assert_converged(store, a, b)


@pytest.mark.asyncio
@pytest.mark.parametrize("latency", [0.0, 0.005])
async def test_concurrent_draws_converge(latency):
    store = InMemoryDocumentStore(latency=latency)
    a, b = await pair(store)
    observed = []
    for session in (a, b):
        session.events.on_any(
            lambda _, s=session: observed.append(s.validate_integrity().valid)
        )

    tasks = [a.tap_stock(), b.tap_stock(), b.tap_stock(), a.tap_stock(), b.tap_stock()]
    results = await asyncio.gather(*tasks)
    await settle(a, b)

    assert all(result is StockAction.DRAW for result in results)
    assert_converged(store, a, b)
    # Every event on either replica saw a complete deck
    assert observed and all(observed)


@pytest.mark.asyncio
async def test_concurrent_stock_cycles_converge(store):
    a, b = await pair(store, draw_mode="one")

    async def tap(session, times):
        for _ in range(times):
            await session.tap_stock()
            await asyncio.sleep(0)

    await asyncio.gather(tap(a, 30), tap(b, 17))
    await settle(a, b)

    assert_converged(store, a, b)
    assert a.state.card_count == 52


@pytest.mark.asyncio
async def test_new_game_replaces_shared_game(store):
    a, b = await pair(store)

    await b.configure_game("crimson51kite", game_id="rematch")
    await settle(a, b)

    assert a.state.game_id == "rematch"
    assert a.state.seed == "crimson51kite"
    assert_converged(store, a, b)


@pytest.mark.asyncio
async def test_moves_propagate(store):
    a, b = await pair(store)

    await a.clear_tableau_column(3)
    await a.add_card_to_tableau(3, "diamonds", "king")
    await settle(a, b)

    assert [c.identity for c in b.state.tableau[3].cards] == [("diamonds", "king")]
    assert_converged(store, a, b)
