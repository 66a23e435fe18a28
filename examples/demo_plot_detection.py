"""
===========================================================
Dial Detection Demo (plot)
===========================================================

Steps:
  1) Load a watch photo
  2) Detect the dial (circle grid search)
  3) Optionally clean the background around it
  4) Plot the detected circle and crop box

Usage
-----
    python3 examples/demo_plot_detection.py watch.jpg --save detection.png --clean dial.png
"""

# --- Imports --------------------------------------------------------------
import sys
import argparse

from strap_fit import load_image, detect_circle, clean_dial, save_png
from strap_fit.plotting import plot_detection

# --- CLI -----------------------------------------------------------------
def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Dial detection demo.")
    p.add_argument("photo", help="Path to the watch photo.")
    p.add_argument("--max-side", type=int, default=560,
                   help="Longest side of the detection image.")
    p.add_argument("--save", type=str, default="", help="Save the figure instead of showing it.")
    p.add_argument("--clean", type=str, default="", help="Also write the cleaned dial PNG here.")
    p.add_argument("--title", type=str, default="Dial Detection")
    return p.parse_args(argv)

# --- Main ----------------------------------------------------------------
def main(argv=None):
    args = parse_args(argv or sys.argv[1:])

    photo = load_image(args.photo)
    print(f"[info] loaded {photo.width}x{photo.height} from: {args.photo}")

    det = detect_circle(photo, max_side=args.max_side)
    cx, cy = det.center()
    if det.low_confidence:
        print("[warn] no clear dial found; showing the centered fallback")
    print(f"[detect] center=({cx:.1f},{cy:.1f}) r={det.radius():.1f} score={det.result.score:.1f}")

    if args.clean:
        save_png(clean_dial(photo), args.clean)
        print(f"[ok] cleaned dial -> {args.clean}")

    plot_detection(photo, det, title=args.title, save=args.save or None)
    if args.save:
        print(f"[ok] saved figure -> {args.save}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
