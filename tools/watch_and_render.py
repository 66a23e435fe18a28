"""
===========================================================
Preview Watcher (re-render on asset change)
===========================================================

Watches a dial photo and the two strap-part images; whenever one of them
is written, the preview is re-planned and re-rendered to a PNG. A failed
render (half-written file, bad image) leaves the last good PNG in place
and is retried on the next change.

Usage
-----
    python3 tools/watch_and_render.py watch.jpg strap-a.png strap-b.png \
        --out preview.png --clean

Dependencies
------------
    pip install watchdog colorama
"""

# --- Imports --------------------------------------------------------------

import sys
import time
import argparse
from pathlib import Path
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
from colorama import Fore, Style, init as colorama_init

from strap_fit import (
    EngineConfig, LoadError, RenderError, Surface,
    clean_dial, load_image, plan, render,
)


# --- CLI Parsing ----------------------------------------------------------

def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="watch_and_render",
        description="Watch dial + strap images and re-render the preview on change.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    p.add_argument("dial", help="Dial photo.")
    p.add_argument("strap_a", help="Top strap part image.")
    p.add_argument("strap_b", help="Bottom strap part image.")
    p.add_argument("--out", default=EngineConfig().export_filename, help="Output PNG.")
    p.add_argument("--clean", action="store_true",
                   help="Detect the dial and remove its background before placing.")
    p.add_argument("--interval", type=float, default=0.5,
                   help="Cooldown between re-renders (seconds).")
    return p.parse_args(argv)


# --- Render ---------------------------------------------------------------

def render_preview(dial_path, strap_a, strap_b, out, clean: bool = False,
                   config: EngineConfig | None = None) -> bool:
    """One full load -> (clean) -> plan -> render -> export pass. False on failure."""
    cfg = config or EngineConfig()
    try:
        dial = load_image(dial_path)
        if clean:
            dial = clean_dial(dial)
        part_a, part_b = load_image(strap_a), load_image(strap_b)
        ta, tb = plan(dial, part_a, part_b, cfg.canvas_size, cfg.dial_fit)
        surface = Surface(cfg.canvas_size, export_filename=cfg.export_filename)
        render(surface, dial, part_a, part_b, ta, tb)
    except (LoadError, RenderError) as e:
        print(f"{Fore.RED}❌ could not render preview: {e}{Style.RESET_ALL}")
        return False
    surface.export_png(out)
    print(f"{Fore.GREEN}✅ {out}{Style.RESET_ALL}  "
          f"{Fore.LIGHTBLACK_EX}(a {ta.scale:.0f}% @ {ta.y:.0f}, b {tb.scale:.0f}% @ {tb.y:.0f}){Style.RESET_ALL}")
    return True


# --- Watcher --------------------------------------------------------------

class AssetChangeHandler(FileSystemEventHandler):
    """Re-render when one of the watched files changes (debounced)."""

    def __init__(self, files, on_change, cooldown: float, clock=time.monotonic):
        self._files = {Path(f).resolve() for f in files}
        self._on_change = on_change
        self._cooldown = cooldown
        self._clock = clock
        self._last = None

    def watches(self, path) -> bool:
        return Path(path).resolve() in self._files

    def _trigger(self, path) -> bool:
        if not self.watches(path):
            return False
        now = self._clock()
        if self._last is not None and now - self._last < self._cooldown:
            return False
        self._last = now
        print(f"\n{Fore.MAGENTA}🧩 File changed:{Style.RESET_ALL} {path}")
        self._on_change()
        return True

    def on_modified(self, event):
        if not event.is_directory:
            self._trigger(event.src_path)

    def on_created(self, event):
        if not event.is_directory:
            self._trigger(event.src_path)

    def on_moved(self, event):
        if not event.is_directory:
            self._trigger(event.dest_path)


# --- Main -----------------------------------------------------------------

def main(argv=None) -> int:
    colorama_init(autoreset=True)
    args = parse_args(argv or sys.argv[1:])
    files = [args.dial, args.strap_a, args.strap_b]

    def rerender():
        render_preview(args.dial, args.strap_a, args.strap_b, args.out, clean=args.clean)

    print(f"{Fore.CYAN}{'='*60}")
    print(f"{Style.BRIGHT}👀 strap_fit preview watcher")
    print(f"{Fore.CYAN}{'='*60}{Style.RESET_ALL}")
    for f in files:
        print(f"  • watching: {Fore.LIGHTBLACK_EX}{f}{Style.RESET_ALL}")
    print(f"  • output: {Fore.LIGHTBLACK_EX}{args.out}{Style.RESET_ALL}\nPress Ctrl+C to stop.\n")

    handler = AssetChangeHandler(files, rerender, cooldown=args.interval)
    observer = Observer()
    for d in {str(Path(f).resolve().parent) for f in files}:
        observer.schedule(handler, d, recursive=False)

    observer.start()
    try:
        rerender()
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print(f"\n{Fore.YELLOW}🛑 Watcher stopped by user.{Style.RESET_ALL}")
        observer.stop()
    observer.join()
    return 0


# --- Entrypoint -----------------------------------------------------------

if __name__ == "__main__":
    raise SystemExit(main())
