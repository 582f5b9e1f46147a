# palette_dither/__init__.py
"""
palette_dither package.

Purpose:
  Reduce an RGB(A) image to a small fixed palette with CIEDE2000 matching and
  ordered two-colour dithering. See dither_image.py for the CLI.

Public API:
  Palette                 : ordered reference colours, nearest-two lookup.
  PixelBuffer             : packed RGB/RGBA pixels, width x height.
  apply_palette_dithered  : in-place palette pass over a PixelBuffer.
  apply_palette_to_rows   : per-pixel pass over rows, skipping malformed pixels.
  dither                  : ordered dither decision for one pixel.
  Screen                  : resized image + palette + render/present.
  colour_convert          : sRGB <-> Lab, CIEDE2000.
  palette_catalog         : palettes JSON loading and selection.

Quick start:
  from palette_dither import Palette, PixelBuffer, apply_palette_dithered
  buf = PixelBuffer(width, height, bytearray_rgba)
  apply_palette_dithered(buf, Palette(["#000000", "#ffffff"]))
"""

__version__ = "0.1.0"

from . import colour_convert
from . import core_types
from . import palette_catalog
from . import utils

from .buffer import PixelBuffer, apply_palette_dithered, apply_palette_to_rows
from .core_types import BufferShapeError, ColorMix, PaletteError
from .dither import dither
from .palette import Palette
from .screen import Screen

__all__ = [
    "__version__",
    "colour_convert",
    "core_types",
    "palette_catalog",
    "utils",
    "Palette",
    "PixelBuffer",
    "apply_palette_dithered",
    "apply_palette_to_rows",
    "dither",
    "Screen",
    "ColorMix",
    "PaletteError",
    "BufferShapeError",
]
