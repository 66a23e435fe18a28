"""
===========================================================
strap_fit.detect: dial (circle) detection, NumPy-only
===========================================================

Grid search for the most circle-like, highest-contrast region of a photo:

  1) downscale so the longer side is <= 560 px
  2) grayscale (luma weights) and Sobel gradient magnitude
  3) integral image for O(1) box means
  4) for each (cy, cx, r) on the grid:
        ring     = mean gradient at 36 points on the circle
        contrast = |mean(outer square 1.18 r) - mean(inner square 0.55 r)|
        score    = 0.75 * ring + 0.9 * contrast
  5) keep the first best candidate in scan order (rows, columns, radii)

No non-maximum suppression: two equally strong circles resolve to the one
scanned first. Detection never fails; an unusable search falls back to a
centered default circle and is flagged low-confidence.
"""

# --- Imports --------------------------------------------------------------

import logging
import warnings
from dataclasses import dataclass

import numpy as np
from PIL import Image

from .buffer import PixelBuffer
from .errors import DetectionLowConfidence
from .placement import DialRect, fit_dial_rect
from .segment import RadialFade, Segmenter, segment

logger = logging.getLogger(__name__)

MAX_SIDE = 560
CENTER_STRIDE = 8
RADIUS_STRIDE = 3
RADIUS_RANGE = (0.08, 0.24)
SEARCH_FRAC = 0.68
RING_SAMPLES = 36
INNER_HALF = 0.55
OUTER_HALF = 1.18
RING_WEIGHT = 0.75
CONTRAST_WEIGHT = 0.9
FALLBACK_RADIUS = 0.2
CROP_FACTOR = 4.8
CROP_MIN = 380


# --- Results --------------------------------------------------------------

@dataclass(frozen=True)
class DetectionResult:
    """Best circle, in detection-space (downscaled) pixels."""

    center_x: float
    center_y: float
    radius: float
    score: float


@dataclass(frozen=True)
class DialDetection:
    """
    A DetectionResult plus what is needed to map it back to the source.

    Attributes
    ----------
    result : DetectionResult
    scale : float
        Detection downscale factor (detection = source * scale).
    source_size : (int, int)
        Source (width, height).
    low_confidence : bool
        True when `result` is the centered fallback rather than a hit.
    """

    result: DetectionResult
    scale: float
    source_size: tuple
    low_confidence: bool = False

    def center(self) -> tuple[float, float]:
        return self.result.center_x / self.scale, self.result.center_y / self.scale

    def radius(self) -> float:
        return self.result.radius / self.scale

    def crop_box(self, factor: float = CROP_FACTOR, min_side: float = CROP_MIN):
        """
        Square crop around the dial, inclusive (x0, y0, x1, y1) in source pixels.

        Side = radius * factor, clamped to [min_side, shorter side] and
        shifted so the box stays inside the image.
        """
        W, H = self.source_size
        short = min(W, H)
        side = int(round(min(short, max(min(min_side, short), self.radius() * factor))))
        cx, cy = self.center()
        x0 = int(round(cx - side / 2.0))
        y0 = int(round(cy - side / 2.0))
        x0 = min(max(0, x0), W - side)
        y0 = min(max(0, y0), H - side)
        return x0, y0, x0 + side - 1, y0 + side - 1

    def dial_rect(self, canvas_size: float = 900, dial_fit: float = 0.68) -> DialRect:
        """Bounding box of the detected circle on the canvas (source fitted like the dial image)."""
        W, H = self.source_size
        fit = fit_dial_rect(W, H, canvas_size, dial_fit)
        ratio = fit.width / W
        cx, cy = self.center()
        r = self.radius()
        return DialRect(fit.x + (cx - r) * ratio, fit.y + (cy - r) * ratio, 2 * r * ratio, 2 * r * ratio)


# --- Image primitives -----------------------------------------------------

def to_gray(rgb: np.ndarray) -> np.ndarray:
    rgb = np.asarray(rgb, float)
    return 0.299 * rgb[..., 0] + 0.587 * rgb[..., 1] + 0.114 * rgb[..., 2]


def sobel_magnitude(G: np.ndarray) -> np.ndarray:
    """3x3 Sobel as separable [1,2,1] smoothing x [-1,0,1] derivative; returns sqrt(gx²+gy²)."""
    P = np.pad(np.asarray(G, float), 1, mode="edge")
    sv = P[:-2, :] + 2.0 * P[1:-1, :] + P[2:, :]
    gx = sv[:, 2:] - sv[:, :-2]
    sh = P[:, :-2] + 2.0 * P[:, 1:-1] + P[:, 2:]
    gy = sh[2:, :] - sh[:-2, :]
    return np.sqrt(gx * gx + gy * gy)


def integral_image(G: np.ndarray) -> np.ndarray:
    """Zero-padded 2-D prefix sum: II[y, x] = sum(G[:y, :x])."""
    G = np.asarray(G, float)
    II = np.zeros((G.shape[0] + 1, G.shape[1] + 1))
    II[1:, 1:] = G.cumsum(0).cumsum(1)
    return II


def box_mean(II: np.ndarray, x0, y0, x1, y1):
    """
    Mean over inclusive boxes [x0..x1] x [y0..y1] (scalars or arrays),
    clamped to the image.
    """
    H, W = II.shape[0] - 1, II.shape[1] - 1
    x0 = np.clip(np.asarray(x0, int), 0, W - 1)
    x1 = np.clip(np.asarray(x1, int), 0, W - 1)
    y0 = np.clip(np.asarray(y0, int), 0, H - 1)
    y1 = np.clip(np.asarray(y1, int), 0, H - 1)
    x1 = np.maximum(x0, x1)
    y1 = np.maximum(y0, y1)
    S = II[y1 + 1, x1 + 1] - II[y0, x1 + 1] - II[y1 + 1, x0] + II[y0, x0]
    return S / ((x1 - x0 + 1) * (y1 - y0 + 1))


def _flatten_on_white(buffer: PixelBuffer) -> np.ndarray:
    a = buffer.alpha().astype(float)[..., None] / 255.0
    return buffer.rgb() * a + 255.0 * (1.0 - a)


def _downscale(buffer: PixelBuffer, max_side: int):
    W, H = buffer.size
    scale = min(1.0, max_side / float(max(W, H)))
    rgb = _flatten_on_white(buffer)
    if scale < 1.0:
        size = (max(1, int(round(W * scale))), max(1, int(round(H * scale))))
        img = Image.fromarray(np.clip(np.rint(rgb), 0, 255).astype(np.uint8))
        rgb = np.asarray(img.resize(size, Image.Resampling.BILINEAR), float)
        scale = size[0] / float(W)
    return rgb, scale


# --- Search ---------------------------------------------------------------

def search_circle(G: np.ndarray) -> DetectionResult | None:
    """
    Grid search over a grayscale image; None if the grid is empty.
    """
    H, W = G.shape
    short = min(H, W)
    grad = sobel_magnitude(G)
    II = integral_image(G)

    margin = (1.0 - SEARCH_FRAC) / 2.0
    xs = np.arange(int(round(W * margin)), int(round(W * (1.0 - margin))) + 1, CENTER_STRIDE)
    ys = np.arange(int(round(H * margin)), int(round(H * (1.0 - margin))) + 1, CENTER_STRIDE)
    r_lo = max(2, int(round(short * RADIUS_RANGE[0])))
    r_hi = max(r_lo, int(round(short * RADIUS_RANGE[1])))
    radii = np.arange(r_lo, r_hi + 1, RADIUS_STRIDE).astype(float)
    if xs.size == 0 or ys.size == 0:
        return None

    t = np.linspace(0.0, 2.0 * np.pi, RING_SAMPLES, endpoint=False)
    ring_dx = radii[:, None] * np.cos(t)[None, :]          # (R, S)
    ring_dy = radii[:, None] * np.sin(t)[None, :]
    h_in = np.rint(radii * INNER_HALF).astype(int)         # (R,)
    h_out = np.rint(radii * OUTER_HALF).astype(int)

    best = None
    cx = xs[:, None]                                       # (X, 1)
    for cy in ys:
        # ring energy, shape (X, R)
        px = np.clip(np.rint(cx[:, :, None] + ring_dx[None]), 0, W - 1).astype(int)
        py = np.clip(np.rint(cy + ring_dy[None]), 0, H - 1).astype(int)
        py = np.broadcast_to(py, px.shape)
        ring = grad[py, px].mean(axis=-1)

        inner = box_mean(II, cx - h_in, cy - h_in, cx + h_in, cy + h_in)
        outer = box_mean(II, cx - h_out, cy - h_out, cx + h_out, cy + h_out)
        score = RING_WEIGHT * ring + CONTRAST_WEIGHT * np.abs(outer - inner)

        k = int(np.argmax(score))                          # first max, columns then radii
        s = float(score.flat[k])
        if best is None or s > best.score:
            i, j = np.unravel_index(k, score.shape)
            best = DetectionResult(float(xs[i]), float(cy), float(radii[j]), s)
    return best


def detect_circle(buffer: PixelBuffer, max_side: int = MAX_SIDE) -> DialDetection:
    """
    Locate the dial in a photo.

    Parameters
    ----------
    buffer : PixelBuffer
        Source photo.
    max_side : int
        Longest side of the detection image.

    Returns
    -------
    DialDetection
        Never raises for a valid buffer; `low_confidence` marks the fallback.
    """
    rgb, scale = _downscale(buffer, max_side)
    G = to_gray(rgb)
    res = search_circle(G)
    low = res is None or not np.isfinite(res.score) or res.score <= 0.0
    if low:
        H, W = G.shape
        res = DetectionResult(W / 2.0, H / 2.0, FALLBACK_RADIUS * min(W, H), 0.0)
        warnings.warn(DetectionLowConfidence("no usable dial candidate; using a centered default"),
                      stacklevel=2)
    det = DialDetection(res, scale, buffer.size, low)
    logger.debug("detect: %s scale=%.3f low=%s", res, scale, low)
    return det


def detect_dial(buffer: PixelBuffer, canvas_size: float = 900, dial_fit: float = 0.68) -> DialRect:
    """Detected dial bounding box in canvas coordinates."""
    return detect_circle(buffer).dial_rect(canvas_size, dial_fit)


# --- Enhanced cleanup -----------------------------------------------------

def clean_dial(buffer: PixelBuffer, inner: float = 1.0, outer: float = 1.2) -> PixelBuffer:
    """
    Detect, crop around the dial, then radial-fade + colour mask the crop.

    Falls back to the flat corner-colour segmentation of the whole photo
    when detection is low-confidence.
    """
    det = detect_circle(buffer)
    if det.low_confidence:
        logger.warning("dial not found; using flat background cleanup")
        return segment(buffer)
    x0, y0, x1, y1 = det.crop_box()
    crop = buffer.crop((x0, y0, x1, y1))
    cx, cy = det.center()
    strategy = RadialFade((cx - x0, cy - y0), det.radius(), inner=inner, outer=outer)
    return Segmenter(strategy).segment(crop)
