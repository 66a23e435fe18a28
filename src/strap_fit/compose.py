"""
===========================================================
strap_fit.compose: dial + strap compositor (Pillow)
===========================================================

Frame recipe, in this order:
  1) opaque white canvas
  2) optional view zoom about the canvas center (applies to every layer)
  3) dial image, fitted to dial_fit * canvas side * dial_scale, centered
  4) part A then part B: translate to center + (x, y), rotate, scale/100,
     opacity, then the tint blended over the part's own pixels

Each layer is a single affine warp; the matrix is the inverse of
    P = C + zoom * (t + s * R(rotation) * (q - half))
mapping source pixel q to canvas point P (y down, positive rotation is
clockwise on screen). Frames are built off-surface and committed whole,
so a failed render leaves the previous frame in place.
"""

# --- Imports --------------------------------------------------------------

import asyncio
import io
import logging
import math
from pathlib import Path

import numpy as np
from PIL import Image

from .buffer import PixelBuffer
from .errors import LoadError, RenderError
from .io import load_image, load_images_async
from .placement import PartTransform, fit_dial_rect

logger = logging.getLogger(__name__)

DEFAULT_EXPORT_NAME = "watch-strap-preview.png"
WHITE = (255, 255, 255, 255)


# --- Surface --------------------------------------------------------------

class Surface:
    """
    Fixed-size square output plus its on-screen display size.

    Parameters
    ----------
    size : int
        Canvas side (native pixels).
    display_width, display_height : float, optional
        Displayed size on screen; defaults to the native size (ratio 1).
    export_filename : str
        Default file name used by export_png().
    """

    def __init__(self, size: int = 900, display_width: float | None = None,
                 display_height: float | None = None, export_filename: str = DEFAULT_EXPORT_NAME):
        if size <= 0:
            raise ValueError("surface size must be positive")
        self.size = int(size)
        self.display_width = float(display_width or size)
        self.display_height = float(display_height or size)
        self.export_filename = export_filename
        self.frame: Image.Image | None = None
        self.frames_committed = 0

    def resize_display(self, width: float, height: float):
        if width <= 0 or height <= 0:
            raise ValueError("display size must be positive")
        self.display_width, self.display_height = float(width), float(height)

    def to_canvas(self, sx: float, sy: float, left: float = 0.0, top: float = 0.0):
        """Screen point (relative to the displayed surface's top-left) -> canvas point."""
        return ((sx - left) * self.size / self.display_width,
                (sy - top) * self.size / self.display_height)

    def commit(self, frame: Image.Image):
        if frame.size != (self.size, self.size):
            raise RenderError(f"frame size {frame.size} does not match surface {self.size}")
        self.frame = frame
        self.frames_committed += 1

    def to_buffer(self) -> PixelBuffer:
        if self.frame is None:
            raise RenderError("nothing rendered yet")
        return PixelBuffer.from_image(self.frame)

    def to_png_bytes(self) -> bytes:
        if self.frame is None:
            raise RenderError("nothing rendered yet")
        out = io.BytesIO()
        self.frame.save(out, format="PNG")
        return out.getvalue()

    def export_png(self, path=None) -> Path:
        """Write the on-screen frame as PNG; `path` may be a directory or a file."""
        data = self.to_png_bytes()
        p = Path(path) if path is not None else Path(self.export_filename)
        if p.is_dir():
            p = p / self.export_filename
        p.write_bytes(data)
        logger.info("exported preview -> %s", p)
        return p


# --- Layers ---------------------------------------------------------------

def affine_coefficients(src_size, scale: float, tx: float, ty: float, rotation: float,
                        canvas_size: float, zoom: float = 1.0):
    """
    Pillow AFFINE data (a, b, c, d, e, f) mapping canvas -> source coordinates.
    """
    w, h = src_size
    k = 1.0 / (scale * zoom)
    th = math.radians(rotation)
    c, s = math.cos(th), math.sin(th)
    half = canvas_size / 2.0
    ox = half + zoom * tx
    oy = half + zoom * ty
    return (k * c, k * s, w / 2.0 - k * (c * ox + s * oy),
            -k * s, k * c, h / 2.0 + k * (s * ox - c * oy))


def warp_layer(img: Image.Image, canvas_size: int, scale: float, tx: float = 0.0, ty: float = 0.0,
               rotation: float = 0.0, zoom: float = 1.0) -> Image.Image:
    """Place `img` on a transparent canvas-sized layer (Pillow resamples RGBA premultiplied)."""
    if scale <= 0 or zoom <= 0:
        raise ValueError("scale and zoom must be positive")
    data = affine_coefficients(img.size, scale, tx, ty, rotation, canvas_size, zoom)
    return img.convert("RGBA").transform(
        (canvas_size, canvas_size), Image.Transform.AFFINE, data,
        resample=Image.Resampling.BICUBIC, fillcolor=(0, 0, 0, 0),
    )


def shade_layer(layer: Image.Image, opacity: float = 1.0, tint=None) -> Image.Image:
    """
    Multiply alpha by `opacity`; blend tint.color into the colour channels at
    min(1, opacity * tint.alpha). Alpha is untouched by the tint, so only
    the part's own pixels are coloured.
    """
    if opacity >= 1.0 and (tint is None or tint.alpha <= 0):
        return layer
    arr = np.asarray(layer, dtype=float).copy()
    arr[..., 3] *= max(0.0, min(1.0, opacity))
    if tint is not None and tint.alpha > 0:
        ta = min(1.0, opacity * tint.alpha)
        colour = np.asarray(tint.color, float).reshape(1, 1, 3)
        arr[..., :3] = arr[..., :3] * (1.0 - ta) + colour * ta
    return Image.fromarray(np.clip(np.rint(arr), 0, 255).astype(np.uint8))


# --- Frame ----------------------------------------------------------------

def compose_frame(canvas_size: int, dial: PixelBuffer, part_a: PixelBuffer, part_b: PixelBuffer,
                  transform_a: PartTransform, transform_b: PartTransform, tint=None,
                  dial_scale: float = 1.0, view_zoom: float | None = None,
                  dial_fit: float = 0.68) -> Image.Image:
    """Build one frame (RGBA, opaque) from decoded buffers."""
    zoom = view_zoom if view_zoom else 1.0
    frame = Image.new("RGBA", (canvas_size, canvas_size), WHITE)

    rect = fit_dial_rect(dial.width, dial.height, canvas_size, dial_fit, dial_scale)
    frame.alpha_composite(warp_layer(dial.to_image(), canvas_size, rect.width / dial.width, zoom=zoom))

    for buf, t in ((part_a, transform_a), (part_b, transform_b)):
        layer = warp_layer(buf.to_image(), canvas_size, t.scale / 100.0, t.x, t.y, t.rotation, zoom)
        frame.alpha_composite(shade_layer(layer, t.opacity, tint))
    return frame


def _resolve(source) -> PixelBuffer:
    try:
        return load_image(source)
    except LoadError as exc:
        raise RenderError(str(exc)) from exc


def render(surface: Surface, dial, part_a, part_b, transform_a: PartTransform,
           transform_b: PartTransform, tint=None, dial_scale: float = 1.0,
           view_zoom: float | None = None, dial_fit: float = 0.68):
    """
    Composite dial + two parts onto `surface`.

    Sources may be PixelBuffers or anything load_image() accepts.

    Raises
    ------
    RenderError
        A source could not be decoded; `surface` keeps its previous frame.
    """
    if surface is None:
        raise RenderError("no surface to render on")
    dial_b, a_b, b_b = (_resolve(s) for s in (dial, part_a, part_b))
    frame = compose_frame(surface.size, dial_b, a_b, b_b, transform_a, transform_b,
                          tint, dial_scale, view_zoom, dial_fit)
    surface.commit(frame)


async def render_async(surface: Surface, dial, part_a, part_b, transform_a: PartTransform,
                       transform_b: PartTransform, tint=None, dial_scale: float = 1.0,
                       view_zoom: float | None = None, dial_fit: float = 0.68,
                       should_commit=None) -> bool:
    """
    Like render(), with the three sources decoded concurrently and the
    compositing done off the event loop. Nothing is drawn unless all three
    decode. `should_commit()` is checked just before the frame lands; a
    False answer drops the frame (returns False).
    """
    if surface is None:
        raise RenderError("no surface to render on")
    try:
        dial_b, a_b, b_b = await load_images_async(dial, part_a, part_b)
    except LoadError as exc:
        raise RenderError(str(exc)) from exc
    frame = await asyncio.to_thread(compose_frame, surface.size, dial_b, a_b, b_b,
                                    transform_a, transform_b, tint, dial_scale, view_zoom, dial_fit)
    if should_commit is not None and not should_commit():
        logger.debug("dropping stale frame")
        return False
    surface.commit(frame)
    return True


# --- Catalogue thumbnail --------------------------------------------------

def combine_parts(part_a, part_b, gap: int = 16) -> PixelBuffer:
    """
    Stack both strap parts at a common width (the wider one), A over B,
    separated by `gap` px, over white.
    """
    a, b = load_image(part_a), load_image(part_b)
    width = max(a.width, b.width)
    ha = int(round(a.height * width / a.width))
    hb = int(round(b.height * width / b.width))
    out = Image.new("RGBA", (width, ha + hb + gap), WHITE)
    out.alpha_composite(a.to_image().resize((width, ha), Image.Resampling.LANCZOS), (0, 0))
    out.alpha_composite(b.to_image().resize((width, hb), Image.Resampling.LANCZOS), (0, ha + gap))
    return PixelBuffer.from_image(out)
