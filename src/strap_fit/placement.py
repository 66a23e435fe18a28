"""
===========================================================
strap_fit.placement: dial fitting & strap auto-placement
===========================================================

Canvas conventions (shared with compose and interaction):
  - the canvas is a square of side `canvas_size`, y pointing down
  - a PartTransform's (x, y) is the offset of the part's center from the
    canvas center; `scale` is a percentage of the part's native size
  - the dial image is fitted into `dial_fit * canvas_size` (aspect kept)
    and centered

Planning is deterministic: same sizes in, same transforms out.
"""

# --- Imports --------------------------------------------------------------

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

TARGET_WIDTH_FRAC = 0.42
OVERLAP_FRAC = 0.075
MIN_OVERLAP = 12.0


# --- Types ----------------------------------------------------------------

@dataclass(frozen=True)
class PartTransform:
    """Placement of one strap part relative to the canvas center."""

    scale: float = 100.0
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0
    opacity: float = 1.0

    def __post_init__(self):
        if not self.scale > 0:
            raise ValueError(f"scale must be > 0, got {self.scale}")

    def moved_by(self, dx: float, dy: float) -> "PartTransform":
        return PartTransform(self.scale, self.x + dx, self.y + dy, self.rotation, self.opacity)


@dataclass(frozen=True)
class DialRect:
    """Axis-aligned box in canvas coordinates."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2.0, self.y + self.height / 2.0

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.right and self.y <= py <= self.bottom


# --- Geometry helpers -----------------------------------------------------

def fit_dial_rect(width: float, height: float, canvas_size: float = 900,
                  dial_fit: float = 0.68, dial_scale: float = 1.0) -> DialRect:
    """
    Aspect-preserving fit of a (width, height) image into the dial box,
    multiplied by `dial_scale` and centered on the canvas.
    """
    if width <= 0 or height <= 0:
        raise ValueError("image size must be positive")
    box = canvas_size * dial_fit
    ratio = min(box / width, box / height)
    w = width * ratio * dial_scale
    h = height * ratio * dial_scale
    return DialRect(canvas_size / 2.0 - w / 2.0, canvas_size / 2.0 - h / 2.0, w, h)


def part_rect(t: PartTransform, size, canvas_size: float = 900) -> DialRect:
    """
    On-canvas bounding rectangle of a part (rotation ignored).

    Parameters
    ----------
    t : PartTransform
    size : (int, int)
        Native (width, height) of the part image.
    """
    w = size[0] * t.scale / 100.0
    h = size[1] * t.scale / 100.0
    cx = canvas_size / 2.0 + t.x
    cy = canvas_size / 2.0 + t.y
    return DialRect(cx - w / 2.0, cy - h / 2.0, w, h)


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


# --- Planner --------------------------------------------------------------

def plan_for_rect(rect: DialRect, part_a_size, part_b_size,
                  canvas_size: float = 900, scale_range=(30.0, 230.0)):
    """
    Place two strap parts so they emerge from the top and bottom of a dial.

    Parameters
    ----------
    rect : DialRect
        Fitted dial box in canvas coordinates.
    part_a_size, part_b_size : (int, int)
        Native (width, height) of the top and bottom part images.
    canvas_size : float
        Canvas side.
    scale_range : (float, float)
        Clamp for the computed scale percentages.

    Returns
    -------
    (PartTransform, PartTransform)
        Top part, bottom part. x and rotation are always 0.
    """
    lo, hi = scale_range
    target_w = rect.width * TARGET_WIDTH_FRAC
    overlap = max(MIN_OVERLAP, rect.height * OVERLAP_FRAC)

    scale_a = _clamp(target_w / part_a_size[0] * 100.0, lo, hi)
    scale_b = _clamp(target_w / part_b_size[0] * 100.0, lo, hi)
    h_a = part_a_size[1] * scale_a / 100.0
    h_b = part_b_size[1] * scale_b / 100.0

    half = canvas_size / 2.0
    top_edge = rect.y - half
    bottom_edge = rect.bottom - half

    part_a = PartTransform(scale=scale_a, x=0.0, y=top_edge - h_a / 2.0 + overlap)
    part_b = PartTransform(scale=scale_b, x=0.0, y=bottom_edge + h_b / 2.0 - overlap)
    logger.debug("plan: dial=%s overlap=%.1f -> a=%s b=%s", rect, overlap, part_a, part_b)
    return part_a, part_b


def plan(dial, part_a, part_b, canvas_size: float = 900, dial_fit: float = 0.68,
         scale_range=(30.0, 230.0)):
    """
    Auto-placement from images: fit `dial` into the canonical dial box and
    size/position `part_a` (top) and `part_b` (bottom) against it.

    `dial`, `part_a`, `part_b` are anything with `.width` and `.height`
    (PixelBuffer, PIL image).
    """
    rect = fit_dial_rect(dial.width, dial.height, canvas_size, dial_fit)
    return plan_for_rect(rect, (part_a.width, part_a.height), (part_b.width, part_b.height),
                         canvas_size=canvas_size, scale_range=scale_range)
