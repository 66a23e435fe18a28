"""
===========================================================
strap_fit.segment: background removal & auto-crop
===========================================================

One Segmenter, two masking strategies sharing the same primitives:

  - FlatThreshold : pixels close to the corner-sampled background colour
                    (or near-white) become transparent
  - RadialFade    : alpha fades out between inner*r and outer*r around a
                    known dial circle; colour masking only applies outside
                    the dial itself

Both finish with the same step: tight bbox of visible pixels, padded by
8 % of its larger side, cropped. An image with no visible pixel left is
returned untouched (a visible result beats an empty one).
"""

# --- Imports --------------------------------------------------------------

import logging

import numpy as np

from .buffer import PixelBuffer

logger = logging.getLogger(__name__)

BG_THRESHOLD = 42.0
WHITE_LEVEL = 245
ALPHA_FLOOR = 20
PAD_FRAC = 0.08


# --- Primitives -----------------------------------------------------------

def reference_colour(rgb: np.ndarray, patch: int | None = None) -> np.ndarray:
    """
    Average RGB of four square patches taken at the image corners.

    Parameters
    ----------
    rgb : np.ndarray
        (H, W, 3) colour array.
    patch : int, optional
        Patch side; default max(8, 3 % of the shorter side), capped to the image.
    """
    H, W = rgb.shape[:2]
    if patch is None:
        patch = max(8, int(min(H, W) * 0.03))
    p = max(1, min(int(patch), H, W))
    corners = [
        rgb[:p, :p], rgb[:p, W - p:],
        rgb[H - p:, :p], rgb[H - p:, W - p:],
    ]
    return np.concatenate([c.reshape(-1, 3) for c in corners]).astype(float).mean(axis=0)


def colour_distance(rgb: np.ndarray, ref) -> np.ndarray:
    """Euclidean RGB distance of every pixel to `ref`."""
    d = np.asarray(rgb, float) - np.asarray(ref, float).reshape(1, 1, 3)
    return np.sqrt(np.sum(d * d, axis=-1))


def near_white(rgb: np.ndarray, level: float = WHITE_LEVEL) -> np.ndarray:
    return np.all(np.asarray(rgb) > level, axis=-1)


def foreground_bbox(alpha: np.ndarray, floor: float = ALPHA_FLOOR):
    """Inclusive (x0, y0, x1, y1) of pixels with alpha > floor, or None."""
    ys, xs = np.nonzero(np.asarray(alpha) > floor)
    if xs.size == 0:
        return None
    return int(xs.min()), int(ys.min()), int(xs.max()), int(ys.max())


def pad_box(box, shape, frac: float = PAD_FRAC):
    """Grow a box by `frac` of its larger side, clamped to an (H, W) shape."""
    x0, y0, x1, y1 = box
    H, W = shape[:2]
    pad = int(np.floor(max(x1 - x0, y1 - y0) * frac + 0.5))
    return (max(0, x0 - pad), max(0, y0 - pad),
            min(W - 1, x1 + pad), min(H - 1, y1 + pad))


# --- Strategies -----------------------------------------------------------

class FlatThreshold:
    """Corner-colour distance + near-white masking over the whole image."""

    def __init__(self, threshold: float = BG_THRESHOLD, white_level: float = WHITE_LEVEL):
        self.threshold = float(threshold)
        self.white_level = white_level

    def __call__(self, rgb: np.ndarray) -> np.ndarray:
        ref = reference_colour(rgb)
        bg = colour_distance(rgb, ref) < self.threshold
        bg |= near_white(rgb, self.white_level)
        logger.debug("flat mask: ref=%s bg=%.1f%%", np.round(ref, 1), 100.0 * bg.mean())
        return np.where(bg, 0.0, 1.0)


class RadialFade:
    """
    Radial alpha fade around a dial circle, plus colour masking outside it.

    Parameters
    ----------
    center : (float, float)
        Dial center (x, y) in the image being segmented.
    radius : float
        Estimated dial radius.
    inner, outer : float
        Fade band, as multiples of `radius` (opaque inside inner, clear beyond outer).
    threshold : float
        Colour-distance threshold to the corner reference.
    """

    def __init__(self, center, radius: float, inner: float = 1.0, outer: float = 1.2,
                 threshold: float = BG_THRESHOLD, white_level: float = WHITE_LEVEL):
        if radius <= 0:
            raise ValueError("radius must be positive")
        if not 0 < inner < outer:
            raise ValueError("need 0 < inner < outer")
        self.center = (float(center[0]), float(center[1]))
        self.radius = float(radius)
        self.inner = float(inner)
        self.outer = float(outer)
        self.threshold = float(threshold)
        self.white_level = white_level

    def radial(self, shape) -> np.ndarray:
        H, W = shape[:2]
        Y, X = np.mgrid[0:H, 0:W]
        d = np.hypot(X + 0.5 - self.center[0], Y + 0.5 - self.center[1]) / self.radius
        return np.clip((self.outer - d) / (self.outer - self.inner), 0.0, 1.0), d

    def __call__(self, rgb: np.ndarray) -> np.ndarray:
        fade, d = self.radial(rgb.shape)
        ref = reference_colour(rgb)
        bg = (colour_distance(rgb, ref) < self.threshold) | near_white(rgb, self.white_level)
        bg &= d > self.inner
        return np.where(bg, 0.0, fade)


# --- Segmenter ------------------------------------------------------------

class Segmenter:
    """Apply a masking strategy, then crop to the padded foreground box."""

    def __init__(self, strategy=None, alpha_floor: float = ALPHA_FLOOR, pad_frac: float = PAD_FRAC):
        self.strategy = strategy if strategy is not None else FlatThreshold()
        self.alpha_floor = alpha_floor
        self.pad_frac = pad_frac

    def mask(self, buffer: PixelBuffer) -> np.ndarray:
        """New alpha channel (float, 0..255) for `buffer`; existing alpha is kept as a ceiling."""
        factor = self.strategy(buffer.rgb())
        return buffer.alpha().astype(float) * factor

    def segment(self, buffer: PixelBuffer) -> PixelBuffer:
        alpha = self.mask(buffer)
        box = foreground_bbox(alpha, self.alpha_floor)
        if box is None:
            logger.warning("segmentation found no foreground; keeping the original image")
            return buffer
        box = pad_box(box, alpha.shape, self.pad_frac)
        logger.debug("segment crop box %s of %sx%s", box, buffer.width, buffer.height)
        return buffer.with_alpha(alpha).crop(box)


def segment(buffer: PixelBuffer, threshold: float = BG_THRESHOLD) -> PixelBuffer:
    """Simple cleanup: flat corner-colour threshold + auto-crop."""
    return Segmenter(FlatThreshold(threshold)).segment(buffer)
