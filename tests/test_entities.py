import random

import pytest

from app.backend.game.config import GameConfig
from app.backend.game.entities import EntitySimulation


def make_sim(**kw):
    cfg = GameConfig(display_width=1000, display_height=800, **kw)
    return EntitySimulation(cfg, random.Random(7))


def test_spawn_places_entity_below_screen_within_ranges():
    sim = make_sim()
    for _ in range(200):
        e = sim.spawn()
        assert 0 <= e.x < 1000
        assert 60 <= e.size <= 140
        assert 0.5 <= e.speed <= 2.0
        assert e.y == pytest.approx(800 + e.size)
    assert len(sim) == 200


def test_spawn_downward_starts_above_screen():
    sim = make_sim(direction="down")
    e = sim.spawn()
    assert e.y == pytest.approx(-e.size)


def test_ids_unique_and_never_reused():
    sim = make_sim()
    seen = set()
    for _ in range(20):
        e = sim.spawn()
        assert e.id not in seen
        seen.add(e.id)
        sim.remove([e.id])
    assert len(sim) == 0
    assert sim.spawn().id not in seen


def test_advance_moves_each_entity_by_its_speed():
    sim = make_sim()
    a, b = sim.spawn(), sim.spawn()
    sim.advance()
    moved = {e.id: e for e in sim.entities}
    assert moved[a.id].y == pytest.approx(a.y - a.speed)
    assert moved[b.id].y == pytest.approx(b.y - b.speed)
    assert moved[a.id].x == a.x


def test_advance_expires_entities_past_the_top():
    sim = make_sim(speed_range=(2.0, 2.0), size_range=(60.0, 60.0))
    e = sim.spawn()
    # от 860 до -60 при скорости 2 -> 460 тиков
    for _ in range(459):
        assert sim.advance() == []
    expired = sim.advance()
    assert [x.id for x in expired] == [e.id]
    assert e.id not in sim


def test_downward_entities_expire_past_the_bottom():
    sim = make_sim(direction="down", speed_range=(2.0, 2.0), size_range=(60.0, 60.0))
    e = sim.spawn()
    for _ in range(459):
        sim.advance()
    assert e.id in sim
    assert [x.id for x in sim.advance()] == [e.id]


def test_remove_ignores_unknown_ids():
    sim = make_sim()
    e = sim.spawn()
    removed = sim.remove([e.id, 999])
    assert [x.id for x in removed] == [e.id]
    assert sim.remove([e.id]) == []
