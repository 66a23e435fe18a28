"""
===========================================================
strap_fit.interaction: pointer / wheel state machine
===========================================================

States
------
    Idle
    Dragging(mode="move" | "resize", pointer_id, origin)

pointer_down enters Dragging, pointer_up / pointer_cancel return to Idle.
The origin keeps only the drag start point and the start positions and
scales; every update reads the session's live transforms and replaces
both at once.

  - move   : both parts shift by the same canvas delta (rigid pair)
  - resize : both scales get start + 0.09 * dx, clamped to [30, 250]

Hit-testing uses each part's axis-aligned box (rotation ignored); within
`edge_band` of a left/right edge starts a resize, inside a box a move,
anywhere else a move of the pair with no visual target.
"""

# --- Imports --------------------------------------------------------------

import logging
import time
from dataclasses import dataclass, replace

from .errors import LoadError
from .placement import DialRect, part_rect

logger = logging.getLogger(__name__)

MOVE = "move"
RESIZE = "resize"


# --- States ---------------------------------------------------------------

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class DragOrigin:
    canvas_x: float
    canvas_y: float
    a_xy: tuple
    b_xy: tuple
    a_scale: float
    b_scale: float


@dataclass(frozen=True)
class Dragging:
    mode: str
    pointer_id: int
    origin: DragOrigin


IDLE = Idle()


def near_side_edge(px: float, py: float, rect: DialRect, band: float) -> bool:
    return rect.y <= py <= rect.bottom and (abs(px - rect.x) <= band or abs(px - rect.right) <= band)


# --- Controller -----------------------------------------------------------

class InteractionController:
    """
    Translate pointer, wheel and arrow input into session edits.

    Parameters
    ----------
    session : PreviewSession
    surface : compose.Surface
        Supplies the displayed-vs-native size ratio for screen -> canvas mapping.
    """

    def __init__(self, session, surface):
        self.session = session
        self.surface = surface
        self.state = IDLE
        self.captured_pointer = None
        self.cursor = "grab"
        self._last_wheel_ms = None

    @property
    def dragging(self) -> bool:
        return isinstance(self.state, Dragging)

    # --- hit-testing ------------------------------------------------------

    def part_rects(self):
        """Both parts' on-canvas boxes, or None when there is no placement or no sizes."""
        s = self.session
        if s.parts is None:
            return None
        try:
            size_a, size_b = s.part_sizes
        except LoadError as exc:
            logger.warning("part sizes unavailable (%s); hit-testing disabled", exc)
            return None
        n = s.config.canvas_size
        return part_rect(s.part_a, size_a, n), part_rect(s.part_b, size_b, n)

    def hit_test(self, cx: float, cy: float):
        """RESIZE, MOVE or None for a canvas point."""
        rects = self.part_rects()
        if rects is None:
            return None
        band = self.session.config.edge_band
        if any(near_side_edge(cx, cy, r, band) for r in rects):
            return RESIZE
        if any(r.contains(cx, cy) for r in rects):
            return MOVE
        return None

    # --- pointer ----------------------------------------------------------

    def pointer_down(self, pointer_id: int, sx: float, sy: float, left: float = 0.0, top: float = 0.0):
        s = self.session
        if s.lock_view or s.parts is None or self.dragging:
            return self.state
        cx, cy = self.surface.to_canvas(sx, sy, left, top)
        hit = self.hit_test(cx, cy)
        mode = hit or MOVE
        if hit == RESIZE:
            self.cursor = "ew-resize"
        elif hit == MOVE:
            self.cursor = "grabbing"
        a, b = s.parts
        origin = DragOrigin(cx, cy, (a.x, a.y), (b.x, b.y), a.scale, b.scale)
        self.state = Dragging(mode, pointer_id, origin)
        self.captured_pointer = pointer_id
        logger.debug("drag start %s at (%.1f, %.1f)", mode, cx, cy)
        return self.state

    def pointer_move(self, pointer_id: int, sx: float, sy: float, left: float = 0.0, top: float = 0.0) -> bool:
        st = self.state
        if not isinstance(st, Dragging) or st.pointer_id != pointer_id:
            return False
        s = self.session
        if s.parts is None:
            return False
        cx, cy = self.surface.to_canvas(sx, sy, left, top)
        o = st.origin
        dx, dy = cx - o.canvas_x, cy - o.canvas_y
        a, b = s.parts
        if st.mode == RESIZE:
            rng = s.config.scale_range
            d = dx * s.config.resize_gain
            s.set_transforms(replace(a, scale=rng.clamp(o.a_scale + d)),
                             replace(b, scale=rng.clamp(o.b_scale + d)))
        else:
            s.set_transforms(replace(a, x=o.a_xy[0] + dx, y=o.a_xy[1] + dy),
                             replace(b, x=o.b_xy[0] + dx, y=o.b_xy[1] + dy))
        return True

    def pointer_up(self, pointer_id: int) -> bool:
        st = self.state
        if not isinstance(st, Dragging) or st.pointer_id != pointer_id:
            return False
        self.state = IDLE
        self.captured_pointer = None
        self.cursor = "grab"
        return True

    pointer_cancel = pointer_up

    # --- variant cycling --------------------------------------------------

    def wheel(self, delta: float, now_ms: float | None = None):
        """
        Step the strap variant from a wheel event. Steps closer than the
        debounce interval are dropped; returns the new index or None.
        """
        if not delta:
            return None
        now = now_ms if now_ms is not None else time.monotonic() * 1000.0
        last = self._last_wheel_ms
        if last is not None and now - last < self.session.config.wheel_debounce_ms:
            return None
        self._last_wheel_ms = now
        return self.session.cycle_variant(1 if delta > 0 else -1)

    def arrow(self, direction: int) -> int:
        return self.session.cycle_variant(1 if direction > 0 else -1)
