"""
Shared fixtures: an in-memory catalogue and session (no files needed,
load_image passes PixelBuffers through).
"""

import numpy as np
import pytest

from strap_fit import EngineConfig, PixelBuffer, PreviewSession, StrapCatalog, StrapStyle, StrapVariant


def solid(w, h, rgb=(90, 60, 40)):
    img = np.empty((h, w, 3), np.uint8)
    img[:] = rgb
    return PixelBuffer.from_array(img)


@pytest.fixture
def catalog():
    brown = StrapStyle.from_hex("Brown Leather", "#6f4a2f", 0.28)
    return StrapCatalog([
        StrapVariant("l1", "Leather One", "Leather", solid(200, 300), solid(200, 300)),
        StrapVariant("l2", "Leather Two", "Leather", solid(160, 300), solid(160, 300), brown),
        StrapVariant("l3", "Leather Three", "Leather", solid(240, 200), solid(240, 200)),
        StrapVariant("m1", "Steel", "Metal", solid(220, 260, (150, 150, 160)), solid(220, 260, (150, 150, 160))),
    ])


@pytest.fixture
def session(catalog):
    s = PreviewSession(EngineConfig(), catalog, dial=solid(500, 500, (20, 20, 20)))
    s.replan()
    return s
