# palette_dither/core_types.py
from __future__ import annotations

"""
Core type aliases, small value objects, errors and hex helpers.
"""

from dataclasses import dataclass
from typing import Literal, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

# Basic aliases

RGBTuple = Tuple[int, int, int]
HexStr = str
ColourLike = Union[RGBTuple, Sequence[int], HexStr]

U8Image = NDArray[np.uint8]  # (H, W, 3|4)
Lab = NDArray[np.float32]  # (..., 3) CIE Lab

# "closest": nearest entry only
# "random": proportional random mix between the two nearest
# "ordered": dispersed ordered dither between the two nearest
Strategy = Literal["closest", "random", "ordered"]
STRATEGIES: Tuple[Strategy, ...] = ("closest", "random", "ordered")


# Errors


class PaletteError(ValueError):
    """Palette is empty or a colour in it cannot be parsed."""


class BufferShapeError(ValueError):
    """Pixel buffer does not match width * height * channels."""


# Value objects


@dataclass(frozen=True)
class PaletteItem:
    """Palette entry with its precomputed Lab row."""

    rgb: RGBTuple
    lab: Lab  # shape (3,)


@dataclass(frozen=True)
class ColorMix:
    """
    Result of one nearest-two palette lookup.

    mix = closest_delta / alternative_delta, 0 for an exact match and close
    to 1 when both candidates are nearly equidistant.
    """

    closest: RGBTuple
    alternative: RGBTuple
    mix: float
    closest_delta: float = 0.0
    alternative_delta: float = 0.0


# Hex helpers


def rgb_to_hex(rgb: Sequence[int]) -> HexStr:
    """RGB tuple to lowercase hex string '#rrggbb'."""
    return f"#{int(rgb[0]):02x}{int(rgb[1]):02x}{int(rgb[2]):02x}"


def hex_to_rgb(hex_str: str) -> RGBTuple:
    """Parse '#rgb', '#rrggbb', 'rgb' or 'rrggbb' (case-insensitive) into an RGB tuple."""
    s = hex_str.strip().lower()
    if s.startswith("#"):
        s = s[1:]
    if len(s) == 3:
        s = "".join(ch * 2 for ch in s)
    if len(s) != 6:
        raise ValueError(f"hex must be 'rrggbb' or 'rgb': {hex_str!r}")
    try:
        return (int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16))
    except ValueError:
        raise ValueError(f"invalid hex colour: {hex_str!r}") from None


def coerce_to_rgb_tuple(value: ColourLike) -> RGBTuple:
    """
    Coerce a hex string, 3/4-length sequence or array row to an RGB tuple.
    Alpha, if present, is dropped. Channels must lie in [0, 255].
    """
    if isinstance(value, str):
        return hex_to_rgb(value)
    if len(value) < 3:
        raise ValueError("sequence too small for RGB")
    rgb = (int(value[0]), int(value[1]), int(value[2]))
    if any(c < 0 or c > 255 for c in rgb):
        raise ValueError(f"channel out of range [0, 255]: {rgb}")
    return rgb


__all__ = [
    "RGBTuple",
    "HexStr",
    "ColourLike",
    "U8Image",
    "Lab",
    "Strategy",
    "STRATEGIES",
    "PaletteError",
    "BufferShapeError",
    "PaletteItem",
    "ColorMix",
    "rgb_to_hex",
    "hex_to_rgb",
    "coerce_to_rgb_tuple",
]
