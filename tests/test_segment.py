"""
===========================================================
Test suite for strap_fit.segment
===========================================================
"""

import numpy as np
import pytest

from strap_fit import PixelBuffer, Segmenter, FlatThreshold, RadialFade, segment
from strap_fit.segment import foreground_bbox, pad_box, reference_colour


def _rect_photo(bg=(200, 200, 200), fg=(220, 20, 20)):
    img = np.empty((300, 400, 3), np.uint8)
    img[:] = bg
    img[120:180, 150:250] = fg            # 100 x 60 foreground
    return PixelBuffer.from_array(img)


def test_reference_colour_averages_corners():
    img = np.zeros((100, 100, 3))
    img[:8, :8] = 40
    img[:8, -8:] = 80
    img[-8:, :8] = 120
    img[-8:, -8:] = 160
    assert np.allclose(reference_colour(img), 100.0)


def test_pad_box_clamps_to_image():
    assert pad_box((10, 10, 109, 59), (300, 400)) == (2, 2, 117, 67)
    assert pad_box((0, 0, 99, 99), (100, 100)) == (0, 0, 99, 99)


def test_flat_segmentation_crops_to_padded_foreground():
    out = segment(_rect_photo())
    # bbox 100 x 60, pad = round(99 * 0.08) = 8 on each side
    assert out.size == (116, 76)
    a = out.alpha()
    assert a[0, 0] == 0 and a[-1, -1] == 0
    assert a[38, 58] == 255
    assert tuple(out.data[38, 58, :3]) == (220, 20, 20)


def test_near_white_is_always_background():
    img = np.full((200, 200, 3), 40, np.uint8)
    img[50:150, 50:150] = (250, 250, 250)     # far from the dark corners, but near-white
    img[90:110, 90:110] = (200, 30, 30)
    out = segment(PixelBuffer.from_array(img))
    assert foreground_bbox(out.alpha()) is not None
    x0, y0, x1, y1 = foreground_bbox(out.alpha())
    assert (x1 - x0 + 1, y1 - y0 + 1) == (20, 20)


def test_no_foreground_returns_original():
    photo = PixelBuffer.from_array(np.full((50, 80, 3), 128, np.uint8))
    assert segment(photo) is photo


def test_segmentation_is_idempotent_on_its_output():
    first = segment(_rect_photo())
    second = segment(first)
    b1 = foreground_bbox(first.alpha())
    b2 = foreground_bbox(second.alpha())
    assert (b2[2] - b2[0], b2[3] - b2[1]) == (b1[2] - b1[0], b1[3] - b1[1])
    assert second.size == first.size


def test_existing_alpha_is_kept_as_ceiling():
    photo = _rect_photo()
    alpha = np.full((300, 400), 255.0)
    alpha[120:150, 150:250] = 100.0
    out = Segmenter().segment(photo.with_alpha(alpha))
    assert out.alpha().max() == 255
    assert 100 in out.alpha()


def test_radial_fade_band():
    strat = RadialFade(center=(50, 50), radius=20)
    fade, d = strat.radial((100, 100))
    assert fade[50, 50] == 1.0
    ring = (d > 1.05) & (d < 1.15)
    assert np.all((fade[ring] > 0.0) & (fade[ring] < 1.0))
    assert np.all(fade[d >= 1.2] == 0.0)


def test_radial_fade_keeps_background_coloured_dial_face():
    # dial face has the same colour as the background: only outside r is masked
    rgb = np.full((100, 100, 3), 180.0)
    factor = RadialFade(center=(50, 50), radius=20)(rgb)
    assert factor[50, 50] == 1.0
    assert factor[50, 75] == 0.0            # 1.25 r
    assert factor[50, 65] == 1.0            # 0.75 r


def test_radial_fade_rejects_bad_band():
    with pytest.raises(ValueError):
        RadialFade(center=(0, 0), radius=10, inner=1.2, outer=1.0)
    with pytest.raises(ValueError):
        RadialFade(center=(0, 0), radius=0)


def test_flat_threshold_strategy_is_binary():
    f = FlatThreshold()(_rect_photo().rgb())
    assert set(np.unique(f)) == {0.0, 1.0}
