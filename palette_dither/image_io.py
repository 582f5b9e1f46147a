# palette_dither/image_io.py
from __future__ import annotations

from pathlib import Path

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from .buffer import PixelBuffer

"""
Image I/O helpers (RGBA in sRGB), exact resize, and PixelBuffer bridges.
"""


def load_image(path: Path) -> Image.Image:
    """Open with Pillow, apply EXIF orientation, return a loaded RGBA image."""
    with Image.open(path) as im0:
        im = ImageOps.exif_transpose(im0)
        rgba = im.convert("RGBA")
    rgba.load()
    return rgba


def resize_exact(image: Image.Image, width: int, height: int) -> Image.Image:
    """Nearest-neighbour resize to exactly width x height (aspect not kept)."""
    if image.size == (width, height):
        return image.copy()
    return image.resize((width, height), resample=Image.Resampling.NEAREST)


def image_to_buffer(image: Image.Image, channels: int = 4) -> PixelBuffer:
    """Copy a Pillow image into a new RGBA (or RGB) PixelBuffer."""
    mode = "RGBA" if channels == 4 else "RGB"
    arr = np.array(image.convert(mode), dtype=np.uint8)
    return PixelBuffer.from_array(np.ascontiguousarray(arr))


def buffer_to_image(buffer: PixelBuffer) -> Image.Image:
    """Pillow image from the buffer contents (copied)."""
    return Image.fromarray(buffer.pixels().copy())


def save_image(path: Path, image: Image.Image) -> Path:
    """Save as PNG; a different suffix is replaced with .png."""
    if path.suffix.lower() != ".png":
        path = path.with_suffix(".png")
    image.save(path, format="PNG")
    return path


def is_image_file(path: Path) -> bool:
    try:
        with Image.open(path) as im:
            im.seek(0)
            im.load()
        return True
    except (UnidentifiedImageError, OSError):
        return False


__all__ = [
    "load_image",
    "resize_exact",
    "image_to_buffer",
    "buffer_to_image",
    "save_image",
    "is_image_file",
]
