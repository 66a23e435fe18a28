"""
===========================================================
strap_fit.session: one preview session's state
===========================================================

Holds everything the compositor reads and the controls edit: the dial
source, the selected strap variant, both part transforms, dial scale and
view zoom. Transforms are replaced wholesale, always as a pair, and every
value from outside goes through the EngineConfig clamps.

Modes:
  - preserve_adjustments : switching variant keeps the current transforms
  - lock_view            : every transform edit is ignored except view zoom
"""

# --- Imports --------------------------------------------------------------

import logging
from dataclasses import replace

from . import compose
from .catalog import ALL_CATEGORIES, StrapCatalog
from .config import EngineConfig
from .detect import clean_dial
from .errors import RenderError
from .io import load_image
from .placement import PartTransform, plan

logger = logging.getLogger(__name__)

TOP, BOTTOM = "top", "bottom"


class PreviewSession:
    """
    Parameters
    ----------
    config : EngineConfig
    catalog : StrapCatalog
    dial : source, optional
        Dial image (anything load_image() accepts).
    category : str, optional
        Starting category; defaults to the first concrete category.
    loader : callable
        Source -> PixelBuffer; load_image by default.
    """

    def __init__(self, config: EngineConfig, catalog: StrapCatalog, dial=None,
                 category: str | None = None, loader=load_image):
        self.config = config
        self.catalog = catalog
        self._loader = loader
        cats = [c for c in catalog.categories if c != ALL_CATEGORIES]
        self.category = category if category is not None else cats[0]
        catalog.variants_for(self.category)
        self.variant_index = 0
        self.dial_source = dial
        self.dial_scale = 1.0
        self.view_zoom = 1.0
        self.preserve_adjustments = False
        self.lock_view = False
        self._parts: tuple[PartTransform, PartTransform] | None = None
        self._part_sizes = None
        self._generation = 0

    # --- read side --------------------------------------------------------

    @property
    def variants(self) -> tuple:
        return self.catalog.variants_for(self.category)

    @property
    def variant(self):
        return self.variants[self.variant_index]

    @property
    def tint(self):
        return self.variant.tint

    @property
    def parts(self):
        return self._parts

    @property
    def part_a(self) -> PartTransform | None:
        return self._parts[0] if self._parts else None

    @property
    def part_b(self) -> PartTransform | None:
        return self._parts[1] if self._parts else None

    @property
    def part_sizes(self):
        """Native ((wa, ha), (wb, hb)) of the current variant's part images."""
        if self._part_sizes is None:
            a = self._loader(self.variant.strap_a)
            b = self._loader(self.variant.strap_b)
            self._part_sizes = (a.size, b.size)
        return self._part_sizes

    @property
    def gap(self) -> float:
        """Half the vertical distance between the two part centers."""
        a, b = self._require_parts()
        return (b.y - a.y) / 2.0

    @property
    def strap_size(self) -> float:
        a, b = self._require_parts()
        return (a.scale + b.scale) / 2.0

    def _require_parts(self):
        if self._parts is None:
            raise RuntimeError("no placement yet; call replan() first")
        return self._parts

    # --- placement --------------------------------------------------------

    def set_transforms(self, part_a: PartTransform, part_b: PartTransform):
        """Store both transforms at once, clamped."""
        self._parts = (self.config.clamp_transform(part_a), self.config.clamp_transform(part_b))

    def _plan(self, dial_source, variant):
        """Placement for a dial source and variant; touches no session state."""
        if dial_source is None:
            return (self.config.default_part_a, self.config.default_part_b), None
        dial = self._loader(dial_source)
        a = self._loader(variant.strap_a)
        b = self._loader(variant.strap_b)
        cfg = self.config
        parts = plan(dial, a, b, cfg.canvas_size, cfg.dial_fit,
                     (cfg.plan_scale_range.low, cfg.plan_scale_range.high))
        return parts, (a.size, b.size)

    def replan(self):
        """
        Run auto-placement for the current dial and variant. Without a dial,
        the configured default transforms are used.
        """
        parts, sizes = self._plan(self.dial_source, self.variant)
        if sizes is not None:
            self._part_sizes = sizes
        self.set_transforms(*parts)
        logger.info("placed %s: a=%s b=%s", self.variant.id, self._parts[0], self._parts[1])
        return self._parts

    recenter = replan

    def reset(self):
        """Back to dial scale 1, zoom 1 and a fresh placement."""
        self.dial_scale = 1.0
        self.view_zoom = 1.0
        return self.replan()

    def set_dial_source(self, source, clean: bool = False):
        """
        New dial photo. With `clean`, the photo goes through detection +
        radial background cleanup first. Re-plans.
        """
        if clean:
            source = clean_dial(self._loader(source))
        parts, sizes = self._plan(source, self.variant)
        self.dial_source = source
        self._part_sizes = sizes
        self.set_transforms(*parts)
        logger.info("new dial; placed %s: a=%s b=%s", self.variant.id, *self._parts)
        return self._parts

    # --- variants ---------------------------------------------------------

    def select_category(self, category: str):
        variants = self.catalog.variants_for(category)
        self._switch_variant(category, 0, variants[0])

    def cycle_variant(self, direction: int) -> int:
        """Step the variant index by +1 / -1, wrapping within the category."""
        n = len(self.variants)
        step = 1 if direction > 0 else -1
        index = (self.variant_index + step) % n
        self._switch_variant(self.category, index, self.variants[index])
        return self.variant_index

    def _switch_variant(self, category, index, variant):
        """Plan for the new variant first; commit only if that succeeds."""
        parts = sizes = None
        if self._parts is None or not (self.preserve_adjustments or self.lock_view):
            parts, sizes = self._plan(self.dial_source, variant)
        self.category = category
        self.variant_index = index
        self._part_sizes = sizes
        if parts is not None:
            self.set_transforms(*parts)
        logger.info("variant -> %s (%d/%d)", variant.id, index + 1, len(self.variants))

    # --- sliders ----------------------------------------------------------

    def _locked(self, what: str) -> bool:
        if self.lock_view:
            logger.debug("view locked; ignoring %s", what)
        return self.lock_view

    def set_gap(self, half_gap: float):
        if self._locked("gap"):
            return
        a, b = self._require_parts()
        g = self.config.gap_range.clamp(half_gap)
        mid = (a.y + b.y) / 2.0
        self.set_transforms(replace(a, y=mid - g), replace(b, y=mid + g))

    def set_strap_size(self, size: float):
        if self._locked("strap size"):
            return
        a, b = self._require_parts()
        rng = self.config.scale_range
        delta = rng.clamp(size) - (a.scale + b.scale) / 2.0
        self.set_transforms(replace(a, scale=rng.clamp(a.scale + delta)),
                            replace(b, scale=rng.clamp(b.scale + delta)))

    def set_dial_scale(self, value: float):
        if self._locked("dial scale"):
            return
        self.dial_scale = self.config.dial_scale_range.clamp(value)

    def set_view_zoom(self, value: float):
        self.view_zoom = self.config.view_zoom_range.clamp(value)

    def _edit_parts(self, part, **fields):
        a, b = self._require_parts()
        if part not in (None, TOP, BOTTOM):
            raise ValueError(f"part must be {TOP!r}, {BOTTOM!r} or None")
        if part in (None, TOP):
            a = replace(a, **fields)
        if part in (None, BOTTOM):
            b = replace(b, **fields)
        self.set_transforms(a, b)

    def set_rotation(self, degrees: float, part: str | None = None):
        if self._locked("rotation"):
            return
        self._edit_parts(part, rotation=self.config.rotation_range.clamp(degrees))

    def set_opacity(self, value: float, part: str | None = None):
        if self._locked("opacity"):
            return
        self._edit_parts(part, opacity=self.config.opacity_range.clamp(value))

    # --- rendering --------------------------------------------------------

    def _render_args(self):
        if self.dial_source is None:
            raise RenderError("no dial image")
        a, b = self._require_parts()
        v = self.variant
        return (self.dial_source, v.strap_a, v.strap_b, a, b), dict(
            tint=v.tint, dial_scale=self.dial_scale, view_zoom=self.view_zoom,
            dial_fit=self.config.dial_fit)

    def render(self, surface: compose.Surface):
        args, kwargs = self._render_args()
        self._generation += 1
        compose.render(surface, *args, **kwargs)

    async def render_async(self, surface: compose.Surface) -> bool:
        """
        Render the live state. If another render_async starts before this
        one finishes, this one's frame is dropped (latest wins).
        """
        args, kwargs = self._render_args()
        self._generation += 1
        generation = self._generation
        committed = await compose.render_async(
            surface, *args, should_commit=lambda: generation == self._generation, **kwargs)
        if not committed:
            logger.warning("render %d superseded by %d; frame dropped", generation, self._generation)
        return committed
