"""
===========================================================
strap_fit.catalog: strap variants & tints
===========================================================

The catalogue is an opaque list of (top part, bottom part, tint) triples
grouped by category. Sources are anything load_image() accepts.
"""

# --- Imports --------------------------------------------------------------

from dataclasses import dataclass
from pathlib import Path

ALL_CATEGORIES = "All categories"


# --- Tints ----------------------------------------------------------------

@dataclass(frozen=True)
class StrapStyle:
    """Flat colour overlay; alpha == 0 means the part is drawn as is."""

    name: str = "Original"
    color: tuple = (0, 0, 0)
    alpha: float = 0.0

    def __post_init__(self):
        if not 0.0 <= self.alpha <= 1.0:
            raise ValueError(f"tint alpha must lie in [0, 1], got {self.alpha}")
        if len(self.color) != 3:
            raise ValueError("tint color must be an (r, g, b) triple")

    @classmethod
    def from_hex(cls, name: str, color: str, alpha: float) -> "StrapStyle":
        h = color.lstrip("#")
        if len(h) == 3:
            h = "".join(ch * 2 for ch in h)
        if len(h) != 6:
            raise ValueError(f"bad colour {color!r}")
        return cls(name, tuple(int(h[i:i + 2], 16) for i in (0, 2, 4)), float(alpha))


ORIGINAL = StrapStyle()

STRAP_STYLES = (
    ORIGINAL,
    StrapStyle.from_hex("Black Leather", "#111111", 0.3),
    StrapStyle.from_hex("Brown Leather", "#6f4a2f", 0.28),
    StrapStyle.from_hex("Olive NATO", "#5f6b42", 0.3),
    StrapStyle.from_hex("Steel", "#8b939d", 0.22),
    StrapStyle.from_hex("Rubber", "#1f1f1f", 0.36),
    StrapStyle.from_hex("Suede", "#8e6c55", 0.25),
)


# --- Variants -------------------------------------------------------------

@dataclass(frozen=True)
class StrapVariant:
    id: str
    label: str
    category: str
    strap_a: object
    strap_b: object
    tint: StrapStyle = ORIGINAL


class StrapCatalog:
    """
    Ordered variants grouped by category, plus the "All categories" view.
    """

    def __init__(self, variants):
        self._variants = tuple(variants)
        if not self._variants:
            raise ValueError("catalog needs at least one variant")
        ids = [v.id for v in self._variants]
        if len(set(ids)) != len(ids):
            raise ValueError("duplicate variant ids")

    @property
    def categories(self) -> list[str]:
        seen = []
        for v in self._variants:
            if v.category not in seen:
                seen.append(v.category)
        return [ALL_CATEGORIES] + seen

    def variants_for(self, category: str) -> tuple:
        if category == ALL_CATEGORIES:
            return self._variants
        found = tuple(v for v in self._variants if v.category == category)
        if not found:
            raise KeyError(f"unknown strap category: {category!r}")
        return found

    def get(self, variant_id: str) -> StrapVariant:
        for v in self._variants:
            if v.id == variant_id:
                return v
        raise KeyError(variant_id)

    def __len__(self):
        return len(self._variants)


def default_catalog(asset_dir) -> StrapCatalog:
    """The four stock variants, with part images looked up under `asset_dir`."""
    d = Path(asset_dir)
    base_a, base_b = d / "sample-strap-a.png", d / "sample-strap-b.png"
    metal_a, metal_b = d / "metal-strap-a.png", d / "metal-strap-b.png"
    return StrapCatalog([
        StrapVariant("leather-classic", "Classic Leather", "Leather", base_a, base_b),
        StrapVariant("rubber-sport", "Sport Rubber", "Rubber", base_a, base_b),
        StrapVariant("fabric-nato", "NATO Fabric", "Fabric", base_a, base_b),
        StrapVariant("metal-bracelet", "Steel Bracelet", "Metal", metal_a, metal_b),
    ])
