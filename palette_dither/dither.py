# palette_dither/dither.py
from __future__ import annotations

"""
Two-colour dither decisions.

Exports:
  dispersion_index(x, y) -> int
  dispersion_threshold(x, y) -> float
  dither(x, y, main_colour, alternative_colour, mix) -> colour
  dither_random(main_colour, alternative_colour, mix, rng) -> colour
  threshold_map(width, height, *, y0=0) -> float64 [H,W]
  random_thresholds(shape, rng) -> float64
  pick_alternative(mix, thresholds) -> bool array

The ordered threshold for a pixel is DISPERSED[|x - 3y| % 9] / 9, in (0, 1].
A pixel keeps the main colour while mix < threshold. NaN mix keeps the main
colour.
"""

import math
from typing import Tuple, TypeVar

import numpy as np
from numpy.typing import NDArray

from .constants import DISPERSED, DISPERSION_MATRIX_SIZE, DISPERSION_Y_STRIDE

C = TypeVar("C")

_DISPERSED_ARR = np.array(DISPERSED, dtype=np.float64) / float(DISPERSION_MATRIX_SIZE)


def dispersion_index(x: int, y: int) -> int:
    """abs(x - 3*y) % 9; always in [0, 8], negative coordinates included."""
    return abs(int(x) - DISPERSION_Y_STRIDE * int(y)) % DISPERSION_MATRIX_SIZE


def dispersion_threshold(x: int, y: int) -> float:
    return DISPERSED[dispersion_index(x, y)] / float(DISPERSION_MATRIX_SIZE)


def dither(x: int, y: int, main_colour: C, alternative_colour: C, mix: float) -> C:
    """
    Ordered dither between the nearest (main) and second-nearest colour.

    Deterministic in (x, y, mix). Lowering mix never turns a main result
    into the alternative.
    """
    if math.isnan(mix):
        return main_colour
    if mix < dispersion_threshold(x, y):
        return main_colour
    return alternative_colour


def dither_random(
    main_colour: C, alternative_colour: C, mix: float, rng: np.random.Generator
) -> C:
    """
    Proportional random mix: the alternative is chosen with probability ~mix.
    Reproducible for a seeded Generator.
    """
    threshold = 1.0 - float(rng.random())  # (0, 1]
    if math.isnan(mix) or mix < threshold:
        return main_colour
    return alternative_colour


# Vectorised helpers


def threshold_map(width: int, height: int, *, y0: int = 0) -> NDArray[np.float64]:
    """
    Ordered thresholds for rows [y0, y0 + height) of a width-wide image.
    Identical values to dispersion_threshold(x, y).
    """
    xs = np.arange(width, dtype=np.int64)[None, :]
    ys = np.arange(y0, y0 + height, dtype=np.int64)[:, None]
    idx = np.abs(xs - DISPERSION_Y_STRIDE * ys) % DISPERSION_MATRIX_SIZE
    return _DISPERSED_ARR[idx]


def random_thresholds(shape: Tuple[int, ...], rng: np.random.Generator) -> NDArray[np.float64]:
    """Uniform thresholds in (0, 1]."""
    return 1.0 - rng.random(shape)


def pick_alternative(mix: np.ndarray, thresholds: np.ndarray) -> NDArray[np.bool_]:
    """True where the alternative colour wins; NaN mix never picks it."""
    mix_f = np.asarray(mix, dtype=np.float64)
    return ~np.isnan(mix_f) & ~(mix_f < thresholds)


__all__ = [
    "dispersion_index",
    "dispersion_threshold",
    "dither",
    "dither_random",
    "threshold_map",
    "random_thresholds",
    "pick_alternative",
]
