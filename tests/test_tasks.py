import asyncio

import pytest

from app.backend.game.catalog import get_game, list_games
from app.backend.game.config import GameConfig
from app.backend.game.errors import UnknownGame
from app.backend.game.tasks import RoundTasks, every


def test_every_stops_when_tick_returns_false():
    calls = []

    def tick():
        calls.append(1)
        return len(calls) < 3

    asyncio.run(every(0.001, tick))
    assert len(calls) == 3


def test_cancel_all_stops_everything_at_once():
    async def scenario():
        ticks = {"a": 0, "b": 0}

        def bump(name):
            ticks[name] += 1
            return True

        tasks = RoundTasks()
        ta = tasks.register("a", every(0.001, lambda: bump("a")))
        tb = tasks.register("b", every(0.001, lambda: bump("b")))
        await asyncio.sleep(0.02)
        assert tasks.names == ["a", "b"]

        assert tasks.cancel_all() == 2
        assert len(tasks) == 0
        frozen = dict(ticks)
        await asyncio.sleep(0.02)
        assert ticks == frozen
        assert ta.cancelled() and tb.cancelled()
        assert tasks.cancel_all() == 0

    asyncio.run(scenario())


def test_duplicate_task_name_rejected():
    async def scenario():
        tasks = RoundTasks()
        tasks.register("timer", asyncio.sleep(1))
        coro = asyncio.sleep(1)
        with pytest.raises(RuntimeError):
            tasks.register("timer", coro)
        coro.close()
        tasks.cancel_all()

    asyncio.run(scenario())


def test_catalog_configures_direction_and_landmark():
    leaves = get_game("falling-leaves")
    cfg = leaves.configure(GameConfig())
    assert cfg.direction == "down"
    assert cfg.landmark == 9
    assert {g.slug for g in list_games()} >= {"bubble-burst", "falling-leaves"}
    with pytest.raises(UnknownGame):
        get_game("ball-catcher")
