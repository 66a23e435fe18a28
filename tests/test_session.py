"""
===========================================================
Test suite for strap_fit.session
===========================================================
"""

import asyncio

import numpy as np
import pytest

from strap_fit import (
    EngineConfig, LoadError, PixelBuffer, PreviewSession, RenderError, StrapCatalog,
    StrapVariant, Surface,
)
from conftest import solid


def test_defaults_without_dial(catalog):
    s = PreviewSession(EngineConfig(), catalog)
    a, b = s.replan()
    assert (a.scale, a.y) == (85.0, -240.0)
    assert (b.scale, b.y) == (85.0, 240.0)
    assert s.gap == 240.0
    assert s.category == "Leather" and s.variant.id == "l1"
    with pytest.raises(RenderError):
        s.render(Surface(900))


def test_edits_before_placement_raise(catalog):
    s = PreviewSession(EngineConfig(), catalog)
    with pytest.raises(RuntimeError):
        s.set_gap(300)


def test_planned_placement_matches_dial(session):
    a, b = session.parts
    assert a.scale == b.scale == pytest.approx(128.52)
    assert a.y == pytest.approx(-b.y)
    assert session.part_sizes == ((200, 300), (200, 300))


def test_gap_is_symmetric_and_clamped(session):
    session.set_gap(300)
    a, b = session.parts
    assert (a.y, b.y) == pytest.approx((-300, 300))
    session.set_gap(10)
    assert session.gap == pytest.approx(250.0)
    session.set_gap(5000)
    assert session.gap == pytest.approx(900.0)


def test_strap_size_shifts_both_scales(session):
    session.set_strap_size(100)
    assert session.part_a.scale == session.part_b.scale == pytest.approx(100)
    session.set_strap_size(1000)
    assert session.strap_size == 250.0


def test_dial_scale_and_zoom_clamps(session):
    session.set_dial_scale(2.0)
    assert session.dial_scale == 1.35
    session.set_view_zoom(2.0)
    assert session.view_zoom == 1.05
    session.set_view_zoom(0.1)
    assert session.view_zoom == 0.62


def test_lock_view_ignores_edits_except_zoom(session):
    before = session.parts
    session.lock_view = True
    session.set_gap(400)
    session.set_strap_size(60)
    session.set_rotation(45)
    session.set_opacity(0.5)
    session.set_dial_scale(1.2)
    assert session.parts == before
    assert session.dial_scale == 1.0
    session.set_view_zoom(0.8)
    assert session.view_zoom == 0.8


def test_lock_view_keeps_placement_when_cycling(session):
    before = session.parts
    session.lock_view = True
    session.cycle_variant(1)
    assert session.variant.id == "l2"
    assert session.parts == before


def test_rotation_and_opacity_per_part(session):
    session.set_rotation(270, part="top")
    assert session.part_a.rotation == 180.0
    assert session.part_b.rotation == 0.0
    session.set_opacity(0)
    assert session.part_a.opacity == session.part_b.opacity == 0.05
    with pytest.raises(ValueError):
        session.set_rotation(10, part="left")


def test_reset_restores_scale_zoom_and_placement(session):
    planned = session.parts
    session.set_dial_scale(1.3)
    session.set_view_zoom(0.7)
    session.set_gap(600)
    session.reset()
    assert (session.dial_scale, session.view_zoom) == (1.0, 1.0)
    assert session.parts == planned


def test_sessions_are_independent(catalog):
    one = PreviewSession(EngineConfig(), catalog)
    two = PreviewSession(EngineConfig(), catalog)
    one.replan()
    two.replan()
    one.set_gap(500)
    one.cycle_variant(1)
    assert two.gap == 240.0
    assert two.variant_index == 0


def test_select_category(session):
    session.select_category("Metal")
    assert session.variant.id == "m1"
    assert session.part_sizes == ((220, 260), (220, 260))
    session.select_category("All categories")
    assert len(session.variants) == 4
    with pytest.raises(KeyError):
        session.select_category("Nope")
    assert session.category == "All categories"


def test_render_uses_variant_tint(session):
    surf = Surface(900)
    session.cycle_variant(1)                  # brown tint
    session.render(surf)
    assert surf.frames_committed == 1
    assert session.tint.name == "Brown Leather"


def test_concurrent_renders_latest_wins(session):
    surf = Surface(900)

    async def both():
        return await asyncio.gather(session.render_async(surf), session.render_async(surf))

    assert asyncio.run(both()) == [False, True]
    assert surf.frames_committed == 1


def test_set_dial_source_with_cleanup(session):
    Y, X = np.mgrid[0:400, 0:400]
    img = np.full((400, 400, 3), 235, np.uint8)
    img[(X - 200) ** 2 + (Y - 200) ** 2 <= 70 ** 2] = 30
    before = session.part_a.scale
    session.set_dial_source(PixelBuffer.from_array(img), clean=True)
    assert isinstance(session.dial_source, PixelBuffer)
    assert session.dial_source.width < 400
    assert session.part_a.scale == pytest.approx(before, rel=0.02)   # square dial -> same fit


def test_undecodable_dial_keeps_previous_dial(session):
    good, parts = session.dial_source, session.parts
    with pytest.raises(LoadError):
        session.set_dial_source(b"not an image")
    assert session.dial_source is good
    assert session.parts == parts
    surf = Surface(900)
    session.render(surf)
    assert surf.frames_committed == 1


def test_failed_variant_switch_keeps_previous_variant(tmp_path):
    catalog = StrapCatalog([
        StrapVariant("ok", "Fine", "Leather", solid(200, 300), solid(200, 300)),
        StrapVariant("gone", "Missing", "Leather", tmp_path / "a.png", tmp_path / "b.png"),
        StrapVariant("gone2", "Missing", "Metal", tmp_path / "c.png", tmp_path / "d.png"),
    ])
    s = PreviewSession(EngineConfig(), catalog, dial=solid(500, 500))
    s.replan()
    parts = s.parts
    with pytest.raises(LoadError):
        s.cycle_variant(1)
    with pytest.raises(LoadError):
        s.select_category("Metal")
    assert (s.category, s.variant.id) == ("Leather", "ok")
    assert s.parts == parts
    assert s.part_sizes == ((200, 300), (200, 300))


def test_sync_render_supersedes_in_flight_async_render(session):
    surf = Surface(900)

    async def overlap():
        task = asyncio.create_task(session.render_async(surf))
        await asyncio.sleep(0)                 # async render is now decoding
        session.render(surf)
        return await task

    assert asyncio.run(overlap()) is False
    assert surf.frames_committed == 1
