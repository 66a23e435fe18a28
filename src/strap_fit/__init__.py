"""
===========================================================
strap_fit: watch strap preview engine
===========================================================

Layer two strap-part images onto a photographed watch dial: find the
dial, clean its background, place the parts against it, and composite
the result under interactive move / resize / rotate / zoom edits.

Main functions
--------------
- load_image(source)
- segment(buffer)
- detect_circle(buffer), detect_dial(buffer), clean_dial(buffer)
- plan(dial, part_a, part_b)
- render(surface, dial, part_a, part_b, transform_a, transform_b, tint)

Typical workflow
----------------
    from strap_fit import *
    photo = load_image("watch.jpg")
    dial = clean_dial(photo)
    a, b = load_image("strap-a.png"), load_image("strap-b.png")
    ta, tb = plan(dial, a, b)
    surface = Surface(900)
    render(surface, dial, a, b, ta, tb)
    surface.export_png("preview.png")

Interactive use goes through PreviewSession + InteractionController.
"""

# --- Public Imports -------------------------------------------------------

from .buffer import PixelBuffer
from .errors import StrapFitError, LoadError, RenderError, DetectionLowConfidence
from .io import load_image, load_images, load_images_async, encode_png, save_png
from .segment import Segmenter, FlatThreshold, RadialFade, segment
from .detect import DetectionResult, DialDetection, detect_circle, detect_dial, clean_dial
from .placement import PartTransform, DialRect, fit_dial_rect, plan, plan_for_rect
from .compose import Surface, render, render_async, combine_parts
from .catalog import StrapStyle, StrapVariant, StrapCatalog, STRAP_STYLES, default_catalog
from .config import EngineConfig, Range
from .session import PreviewSession
from .interaction import InteractionController

__all__ = [
    "PixelBuffer",
    "StrapFitError",
    "LoadError",
    "RenderError",
    "DetectionLowConfidence",
    "load_image",
    "load_images",
    "load_images_async",
    "encode_png",
    "save_png",
    "Segmenter",
    "FlatThreshold",
    "RadialFade",
    "segment",
    "DetectionResult",
    "DialDetection",
    "detect_circle",
    "detect_dial",
    "clean_dial",
    "PartTransform",
    "DialRect",
    "fit_dial_rect",
    "plan",
    "plan_for_rect",
    "Surface",
    "render",
    "render_async",
    "combine_parts",
    "StrapStyle",
    "StrapVariant",
    "StrapCatalog",
    "STRAP_STYLES",
    "default_catalog",
    "EngineConfig",
    "Range",
    "PreviewSession",
    "InteractionController",
]
