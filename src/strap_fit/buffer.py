"""
===========================================================
strap_fit.buffer: immutable RGBA pixel buffer
===========================================================

A thin frozen wrapper around a (H, W, 4) uint8 NumPy array. The array is
flagged read-only on construction; every derived buffer (crop, new alpha)
is a fresh instance with its own storage.
"""

# --- Imports --------------------------------------------------------------

from dataclasses import dataclass

import numpy as np
from PIL import Image


# --- PixelBuffer ----------------------------------------------------------

@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    RGBA raster with 8-bit channels.

    Parameters
    ----------
    data : np.ndarray
        Array of shape (height, width, 4), dtype uint8.
    """

    data: np.ndarray

    def __post_init__(self):
        arr = np.ascontiguousarray(self.data, dtype=np.uint8)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"PixelBuffer expects (H, W, 4) data, got {arr.shape}")
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise ValueError("PixelBuffer cannot be empty")
        if arr is self.data:
            arr = arr.copy()
        arr.setflags(write=False)
        object.__setattr__(self, "data", arr)

    # --- constructors -----------------------------------------------------

    @classmethod
    def from_array(cls, arr) -> "PixelBuffer":
        """Build from a gray (H, W), RGB (H, W, 3) or RGBA (H, W, 4) array."""
        a = np.asarray(arr)
        if a.dtype != np.uint8:
            a = np.clip(np.rint(a), 0, 255).astype(np.uint8)
        if a.ndim == 2:
            a = np.repeat(a[..., None], 3, axis=2)
        if a.ndim == 3 and a.shape[2] == 3:
            alpha = np.full(a.shape[:2] + (1,), 255, np.uint8)
            a = np.concatenate([a, alpha], axis=2)
        return cls(a)

    @classmethod
    def from_image(cls, img: Image.Image) -> "PixelBuffer":
        if img.mode != "RGBA":
            img = img.convert("RGBA")
        return cls(np.array(img, dtype=np.uint8))

    # --- accessors --------------------------------------------------------

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        """(width, height), Pillow order."""
        return self.width, self.height

    def rgb(self) -> np.ndarray:
        """Float copy of the colour channels, shape (H, W, 3)."""
        return self.data[..., :3].astype(float)

    def alpha(self) -> np.ndarray:
        """Alpha channel as uint8 (read-only view)."""
        return self.data[..., 3]

    def to_image(self) -> Image.Image:
        return Image.fromarray(np.array(self.data))

    # --- derivations ------------------------------------------------------

    def with_alpha(self, alpha: np.ndarray) -> "PixelBuffer":
        """New buffer with the same colours and the given alpha channel."""
        alpha = np.asarray(alpha)
        if alpha.shape != self.data.shape[:2]:
            raise ValueError("alpha shape does not match the buffer")
        out = np.array(self.data)
        out[..., 3] = np.clip(np.rint(alpha), 0, 255).astype(np.uint8)
        return PixelBuffer(out)

    def crop(self, box) -> "PixelBuffer":
        """
        Crop to an inclusive pixel box (x0, y0, x1, y1).
        """
        x0, y0, x1, y1 = (int(v) for v in box)
        x0, y0 = max(0, x0), max(0, y0)
        x1, y1 = min(self.width - 1, x1), min(self.height - 1, y1)
        if x1 < x0 or y1 < y0:
            raise ValueError(f"empty crop box {box}")
        return PixelBuffer(np.array(self.data[y0:y1 + 1, x0:x1 + 1]))

    def __eq__(self, other):
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.data.shape == other.data.shape and bool(np.array_equal(self.data, other.data))

    __hash__ = None
