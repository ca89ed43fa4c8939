import pytest

from app.backend.game.pointer import Cursor, PointerMapper
from conftest import hand_at


def test_origin_maps_to_top_right():
    m = PointerMapper(1920, 1080)
    assert m.map_point(0, 0, 640, 480) == Cursor(1920, 0)


def test_far_corner_maps_to_bottom_left():
    m = PointerMapper(1920, 1080)
    assert m.map_point(640, 480, 640, 480) == Cursor(0, 1080)


def test_centre_stays_centre():
    m = PointerMapper(1000, 800)
    c = m.map_point(320, 240, 640, 480)
    assert c.x == pytest.approx(500)
    assert c.y == pytest.approx(400)


def test_update_uses_configured_landmark():
    m = PointerMapper(1000, 800, landmark=9)
    assert m.update(hand_at(160, 120, landmark=9))
    assert m.cursor == Cursor(750, 200)


def test_missing_hand_keeps_last_cursor():
    m = PointerMapper(1000, 800)
    assert m.cursor is None
    assert m.update(None) is False
    assert m.cursor is None

    m.update(hand_at(0, 0))
    assert m.update(None) is False
    assert m.cursor == Cursor(1000, 0)


def test_reset_forgets_cursor():
    m = PointerMapper(1000, 800)
    m.update(hand_at(0, 0))
    m.reset()
    assert m.cursor is None
