"""
===========================================================
Test suite for strap_fit.interaction
===========================================================
Session fixture: 500x500 dial, first Leather variant 200x300 parts, so the
top part sits at canvas x in [321.48, 578.52], y in [-195.66, 189.9].
The surface is shown at half size (screen -> canvas ratio 2).
"""

import pytest

from strap_fit import EngineConfig, PartTransform, PreviewSession, StrapCatalog, StrapVariant, Surface
from strap_fit.interaction import IDLE, MOVE, RESIZE, Dragging, InteractionController


@pytest.fixture
def ctl(session):
    return InteractionController(session, Surface(900, display_width=450, display_height=450))


def test_move_drag_shifts_both_parts_rigidly(ctl, session):
    a0, b0 = session.parts
    st = ctl.pointer_down(1, 225, 50)                 # canvas (450, 100), inside top part
    assert isinstance(st, Dragging) and st.mode == MOVE
    assert ctl.cursor == "grabbing"
    assert ctl.captured_pointer == 1
    assert ctl.pointer_move(1, 235, 45)
    a, b = session.parts
    assert (a.x - a0.x, a.y - a0.y) == pytest.approx((20, -10))
    assert (b.x - b0.x, b.y - b0.y) == pytest.approx((20, -10))
    assert (a.scale, b.scale) == (a0.scale, b0.scale)


def test_move_is_relative_to_drag_start(ctl, session):
    a0, _ = session.parts
    ctl.pointer_down(1, 225, 50)
    ctl.pointer_move(1, 235, 50)
    ctl.pointer_move(1, 240, 50)
    assert session.part_a.x - a0.x == pytest.approx(30)


def test_drag_outside_parts_still_moves_pair(ctl, session):
    a0, _ = session.parts
    st = ctl.pointer_down(1, 25, 225)                  # canvas (50, 450): over nothing
    assert st.mode == MOVE
    assert ctl.cursor == "grab"
    ctl.pointer_move(1, 30, 225)
    assert session.part_a.x - a0.x == pytest.approx(10)


def test_resize_near_side_edge(ctl, session):
    rect, _ = ctl.part_rects()
    sx, sy = (rect.x + 5) / 2, 170 / 2
    assert ctl.hit_test(rect.x + 5, 170) == RESIZE
    a0, b0 = session.parts
    st = ctl.pointer_down(7, sx, sy)
    assert st.mode == RESIZE and ctl.cursor == "ew-resize"
    ctl.pointer_move(7, sx + 50, sy + 40)              # canvas dx = 100 -> +9 %
    a, b = session.parts
    assert a.scale == pytest.approx(a0.scale + 9)
    assert b.scale == pytest.approx(b0.scale + 9)
    assert (a.x, a.y) == (a0.x, a0.y)


def test_resize_is_clamped(ctl, session):
    rect, _ = ctl.part_rects()
    sx, sy = (rect.right - 3) / 2, 0
    ctl.pointer_down(2, sx, sy)
    ctl.pointer_move(2, sx + 5000, sy)
    assert session.part_a.scale == session.part_b.scale == 250.0
    ctl.pointer_move(2, sx - 5000, sy)
    assert session.part_a.scale == session.part_b.scale == 30.0


def test_pointer_up_and_cancel_return_to_idle(ctl):
    ctl.pointer_down(1, 225, 50)
    assert not ctl.pointer_up(2)                       # other pointer
    assert ctl.dragging
    assert ctl.pointer_up(1)
    assert ctl.state is IDLE and ctl.captured_pointer is None
    assert ctl.cursor == "grab"

    ctl.pointer_down(3, 225, 50)
    assert ctl.pointer_cancel(3)
    assert ctl.state is IDLE


def test_moves_from_other_pointers_are_ignored(ctl, session):
    before = session.parts
    assert not ctl.pointer_move(1, 300, 300)           # not dragging
    ctl.pointer_down(1, 225, 50)
    assert ctl.pointer_down(2, 10, 10).pointer_id == 1  # second press ignored
    assert not ctl.pointer_move(2, 300, 300)
    assert session.parts == before


def test_lock_view_blocks_dragging(ctl, session):
    session.lock_view = True
    assert ctl.pointer_down(1, 225, 50) is IDLE
    assert not ctl.dragging


def test_no_parts_means_no_hit(catalog):
    s = PreviewSession(EngineConfig(), catalog)
    c = InteractionController(s, Surface(900))
    assert c.hit_test(450, 450) is None
    assert c.pointer_down(1, 450, 450) is IDLE


def test_wheel_is_debounced(ctl, session):
    assert ctl.wheel(1, now_ms=0) == 1
    assert ctl.wheel(1, now_ms=100) is None
    assert ctl.wheel(1, now_ms=170) == 2
    assert ctl.wheel(0, now_ms=1000) is None
    assert session.variant_index == 2


def test_cycling_wraps_both_ways(ctl, session):
    assert ctl.arrow(-1) == 2
    assert ctl.arrow(1) == 0
    assert ctl.wheel(-1, now_ms=0) == 2
    assert ctl.wheel(1, now_ms=500) == 0


def test_cycle_replans_unless_preserving(ctl, session):
    ctl.arrow(1)                                        # 160 px wide parts
    assert session.part_a.scale == pytest.approx(612 * 0.42 / 160 * 100)

    session.preserve_adjustments = True
    custom = PartTransform(scale=90, x=12, y=-300)
    session.set_transforms(custom, custom.moved_by(0, 600))
    ctl.arrow(1)
    assert session.variant.id == "l3"
    assert session.part_a == custom


def test_unreadable_part_images_fall_back_to_move(tmp_path):
    catalog = StrapCatalog([
        StrapVariant("gone", "Missing", "Leather", tmp_path / "a.png", tmp_path / "b.png"),
    ])
    s = PreviewSession(EngineConfig(), catalog)
    s.replan()                                          # no dial: default transforms, nothing loaded
    c = InteractionController(s, Surface(900))
    assert c.part_rects() is None
    st = c.pointer_down(1, 450, 450)
    assert isinstance(st, Dragging) and st.mode == MOVE
    assert c.pointer_move(1, 460, 450)
    assert s.part_a.x == pytest.approx(10)
