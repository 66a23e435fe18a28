"""
===========================================================
strap_fit.config: engine configuration
===========================================================

All geometry (placement, compositing, hit-testing) is expressed on one
square canonical canvas. The ranges below are the clamps applied to every
value coming from the surrounding UI; nothing outside is trusted.

An EngineConfig is passed explicitly into each session, so independent
sessions never share mutable defaults.
"""

# --- Imports --------------------------------------------------------------

from dataclasses import dataclass, field, replace

from .placement import PartTransform


# --- Ranges ---------------------------------------------------------------

@dataclass(frozen=True)
class Range:
    """Closed numeric interval with an idempotent clamp."""

    low: float
    high: float

    def __post_init__(self):
        if self.low > self.high:
            raise ValueError(f"invalid range [{self.low}, {self.high}]")

    def clamp(self, value: float) -> float:
        return float(min(self.high, max(self.low, value)))

    def __contains__(self, value) -> bool:
        return self.low <= value <= self.high


def _default_part_a() -> PartTransform:
    return PartTransform(scale=85.0, x=0.0, y=-240.0, rotation=0.0, opacity=1.0)


def _default_part_b() -> PartTransform:
    return PartTransform(scale=85.0, x=0.0, y=240.0, rotation=0.0, opacity=1.0)


# --- EngineConfig ---------------------------------------------------------

@dataclass(frozen=True)
class EngineConfig:
    """
    Session-wide settings.

    Attributes
    ----------
    canvas_size : int
        Side of the square output surface, in canvas units (= pixels).
    dial_fit : float
        Fraction of the canvas side the dial image is fitted into.
    plan_scale_range : Range
        Scale clamp used by the auto-placement planner.
    scale_range : Range
        Scale clamp used by interactive edits (resize drag, size slider).
    gap_range, dial_scale_range, view_zoom_range, rotation_range, opacity_range : Range
        Slider clamps.
    edge_band : float
        Distance (canvas units) from a part's left/right edge that starts a resize.
    resize_gain : float
        Scale percent added per canvas unit of horizontal resize drag.
    wheel_debounce_ms : float
        Minimum delay between two wheel-triggered variant steps.
    export_filename : str
        Default filename for PNG export.
    """

    canvas_size: int = 900
    dial_fit: float = 0.68
    plan_scale_range: Range = Range(30.0, 230.0)
    scale_range: Range = Range(30.0, 250.0)
    gap_range: Range = Range(250.0, 900.0)
    dial_scale_range: Range = Range(0.7, 1.35)
    view_zoom_range: Range = Range(0.62, 1.05)
    rotation_range: Range = Range(-180.0, 180.0)
    opacity_range: Range = Range(0.05, 1.0)
    edge_band: float = 28.0
    resize_gain: float = 0.09
    wheel_debounce_ms: float = 160.0
    export_filename: str = "watch-strap-preview.png"
    default_part_a: PartTransform = field(default_factory=_default_part_a)
    default_part_b: PartTransform = field(default_factory=_default_part_b)

    def __post_init__(self):
        if self.canvas_size <= 0:
            raise ValueError("canvas_size must be positive")
        if not 0.0 < self.dial_fit <= 1.0:
            raise ValueError("dial_fit must lie in (0, 1]")

    @property
    def center(self) -> float:
        return self.canvas_size / 2.0

    def with_overrides(self, **kwargs) -> "EngineConfig":
        return replace(self, **kwargs)

    def clamp_transform(self, t: PartTransform) -> PartTransform:
        """Clamp every field of an interactive edit into its range."""
        return replace(
            t,
            scale=self.scale_range.clamp(t.scale),
            rotation=self.rotation_range.clamp(t.rotation),
            opacity=self.opacity_range.clamp(t.opacity),
        )
