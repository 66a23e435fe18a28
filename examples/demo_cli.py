"""
===========================================================
Strap Preview Demo (CLI version)
===========================================================

Usage
-----
    python3 examples/demo_cli.py path/to/watch.jpg path/to/strap-a.png path/to/strap-b.png

Outputs
-------
    dial_clean.png
    watch-strap-preview.png
"""

# --- Imports --------------------------------------------------------------

import sys
from strap_fit import (
    EngineConfig, LoadError, RenderError, Surface,
    clean_dial, load_image, plan, render, save_png,
)


# --- Main routine ---------------------------------------------------------

def main(argv=None):
    argv = argv or sys.argv[1:]
    if len(argv) != 3:
        print("Usage: demo_cli.py watch.jpg strap-a.png strap-b.png")
        return 1

    cfg = EngineConfig()
    try:
        photo, part_a, part_b = (load_image(p) for p in argv)
    except LoadError as e:
        print(f"[error] {e}")
        return 1
    print(f"[info] photo {photo.width}x{photo.height}")

    dial = clean_dial(photo)
    save_png(dial, "dial_clean.png")
    print(f"[info] cleaned dial {dial.width}x{dial.height}")

    ta, tb = plan(dial, part_a, part_b, cfg.canvas_size, cfg.dial_fit)
    print(f"[info] top: scale={ta.scale:.1f}% y={ta.y:.1f}  bottom: scale={tb.scale:.1f}% y={tb.y:.1f}")

    surface = Surface(cfg.canvas_size, export_filename=cfg.export_filename)
    try:
        render(surface, dial, part_a, part_b, ta, tb)
    except RenderError as e:
        print(f"[error] could not render preview: {e}")
        return 1
    out = surface.export_png()
    print(f"✅ Exported 'dial_clean.png' and '{out}'")
    return 0


# --- Entrypoint -----------------------------------------------------------

if __name__ == "__main__":
    raise SystemExit(main())
