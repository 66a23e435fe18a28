import asyncio
import io
import logging
from pathlib import Path

import requests
from PIL import Image, UnidentifiedImageError

from .buffer import PixelBuffer
from .errors import LoadError

logger = logging.getLogger(__name__)

URL_TIMEOUT = 10.0


def _decode(fp) -> PixelBuffer:
    with Image.open(fp) as img:
        img.load()
        return PixelBuffer.from_image(img)


def _fetch(url: str) -> PixelBuffer:
    resp = requests.get(url, timeout=URL_TIMEOUT)
    try:
        resp.raise_for_status()
        return _decode(io.BytesIO(resp.content))
    finally:
        resp.close()


def load_image(source) -> PixelBuffer:
    """
    Decode a raster into a PixelBuffer.

    Parameters
    ----------
    source : PixelBuffer | PIL.Image.Image | bytes | file object | str | Path
        Strings starting with http:// or https:// are fetched over the network.

    Raises
    ------
    LoadError
        If the source cannot be read or decoded.
    """
    if isinstance(source, PixelBuffer):
        return source
    try:
        if isinstance(source, Image.Image):
            return PixelBuffer.from_image(source)
        if isinstance(source, (bytes, bytearray, memoryview)):
            return _decode(io.BytesIO(bytes(source)))
        if isinstance(source, str) and source.startswith(("http://", "https://")):
            return _fetch(source)
        if isinstance(source, (str, Path)):
            p = Path(source)
            if not p.exists():
                raise FileNotFoundError(f"File not found: {p}")
            return _decode(p)
        if hasattr(source, "read"):
            return _decode(source)
    except (OSError, ValueError, UnidentifiedImageError, Image.DecompressionBombError,
            requests.RequestException) as exc:
        logger.debug("load failed for %r: %s", source, exc)
        raise LoadError(f"Failed to load image: {source!r}") from exc
    raise LoadError(f"Unsupported image source type: {type(source).__name__}")


def load_images(*sources) -> list[PixelBuffer]:
    return [load_image(s) for s in sources]


async def load_images_async(*sources) -> list[PixelBuffer]:
    """Decode several sources concurrently (off the event loop); all or nothing."""
    return list(await asyncio.gather(*(asyncio.to_thread(load_image, s) for s in sources)))


def encode_png(buffer: PixelBuffer) -> bytes:
    out = io.BytesIO()
    buffer.to_image().save(out, format="PNG")
    return out.getvalue()


def save_png(buffer: PixelBuffer, path) -> Path:
    """
    Write a buffer as PNG.

    Parameters
    ----------
    buffer : PixelBuffer
    path : str | Path
        Output file path.
    """
    p = Path(path)
    buffer.to_image().save(p, format="PNG")
    return p
