# palette_dither/palette.py
from __future__ import annotations

"""
Palette definition and nearest-two lookup.

Exports:
  Palette(colours)
    .find_closest(rgb) -> ColorMix
    .find_closest_batch(rgb_rows) -> (closest_idx, alternative_idx, mix)
  mix_ratio(closest_delta, alternative_delta, palette_size) -> float

Entries are scanned in palette order. Both slots start at entry 0 with
SENTINEL_DISTANCE; strict '<' keeps the earlier entry on ties.
"""

from typing import Iterator, List, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from .colour_convert import delta_e2000_matrix, delta_e2000_pair, lab_to_rgb, rgb_to_lab
from .constants import SENTINEL_DISTANCE
from .core_types import (
    ColorMix,
    ColourLike,
    HexStr,
    Lab,
    PaletteError,
    PaletteItem,
    U8Image,
    coerce_to_rgb_tuple,
    rgb_to_hex,
)

# Rows of source colours per CIEDE2000 block in the batch path.
_BATCH_ROWS = 4096


def mix_ratio(closest_delta: float, alternative_delta: float, palette_size: int) -> float:
    """
    closest_delta / alternative_delta with the degenerate cases pinned:
      - single-entry palette -> 1.0
      - 0 / 0 (exact match on both slots) -> 0.0, i.e. always the closest
    """
    if palette_size == 1:
        return 1.0
    if alternative_delta == 0.0:
        return 0.0
    return float(closest_delta / alternative_delta)


class Palette:
    """Immutable, ordered, non-empty set of reference colours."""

    def __init__(self, colours: Sequence[ColourLike]) -> None:
        if colours is None or len(colours) == 0:
            raise PaletteError("palette must contain at least one colour")
        try:
            rgbs = [coerce_to_rgb_tuple(c) for c in colours]
        except (TypeError, ValueError) as e:
            raise PaletteError(f"invalid palette colour: {e}") from e

        rgb_arr = np.array(rgbs, dtype=np.uint8).reshape(-1, 3)
        lab_arr: Lab = rgb_to_lab(rgb_arr)
        rgb_arr.setflags(write=False)
        lab_arr.setflags(write=False)

        self._rgb: U8Image = rgb_arr
        self._lab: Lab = lab_arr
        self._items: Tuple[PaletteItem, ...] = tuple(
            PaletteItem(rgb=rgb, lab=lab_arr[i]) for i, rgb in enumerate(rgbs)
        )

    @classmethod
    def from_hex(cls, hex_list: Sequence[HexStr]) -> "Palette":
        """Build from '#rrggbb' / 'rrggbb' strings."""
        return cls(list(hex_list))

    @classmethod
    def from_lab(cls, lab_rows: Sequence[Sequence[float]] | NDArray[np.floating]) -> "Palette":
        """Build from Lab triples; each is converted to its nearest 8-bit sRGB."""
        lab = np.asarray(lab_rows, dtype=np.float64).reshape(-1, 3)
        if lab.shape[0] == 0:
            raise PaletteError("palette must contain at least one colour")
        return cls([tuple(int(v) for v in row) for row in lab_to_rgb(lab)])

    # Container protocol

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[PaletteItem]:
        return iter(self._items)

    def __getitem__(self, index: int) -> PaletteItem:
        return self._items[index]

    def __repr__(self) -> str:
        return f"Palette({self.hexes()!r})"

    @property
    def rgb(self) -> U8Image:
        """uint8 [P,3], read-only."""
        return self._rgb

    @property
    def lab(self) -> Lab:
        """float32 [P,3], read-only."""
        return self._lab

    def hexes(self) -> List[HexStr]:
        return [rgb_to_hex(item.rgb) for item in self._items]

    # Lookup

    def find_closest(self, rgb: Sequence[int]) -> ColorMix:
        """
        Nearest and second-nearest palette entries for one colour by CIEDE2000.
        A fourth (alpha) channel is ignored.
        """
        target = rgb_to_lab(np.asarray(rgb[:3], dtype=np.uint8))

        closest_idx, closest_delta = 0, SENTINEL_DISTANCE
        alt_idx, alt_delta = 0, SENTINEL_DISTANCE
        for i, item in enumerate(self._items):
            delta = delta_e2000_pair(target, item.lab)
            if delta < closest_delta:
                alt_idx, alt_delta = closest_idx, closest_delta
                closest_idx, closest_delta = i, delta
            elif delta < alt_delta:
                alt_idx, alt_delta = i, delta

        return ColorMix(
            closest=self._items[closest_idx].rgb,
            alternative=self._items[alt_idx].rgb,
            mix=mix_ratio(closest_delta, alt_delta, len(self._items)),
            closest_delta=float(closest_delta),
            alternative_delta=float(alt_delta),
        )

    def find_closest_batch(
        self, rgb_rows: np.ndarray
    ) -> Tuple[NDArray[np.intp], NDArray[np.intp], NDArray[np.float64]]:
        """
        Vectorised find_closest over many colours.

        Args:
          rgb_rows: uint8 [N,3] or [N,4]
        Returns:
          (closest_idx [N], alternative_idx [N], mix [N]) with the same
          ordering, tie and sentinel rules as find_closest.
        """
        rows = np.asarray(rgb_rows)
        n = int(rows.shape[0])
        closest_out = np.zeros(n, dtype=np.intp)
        alt_out = np.zeros(n, dtype=np.intp)
        mix_out = np.zeros(n, dtype=np.float64)

        for start in range(0, n, _BATCH_ROWS):
            stop = min(start + _BATCH_ROWS, n)
            c_idx, a_idx, mix = self._nearest_two_block(rows[start:stop])
            closest_out[start:stop] = c_idx
            alt_out[start:stop] = a_idx
            mix_out[start:stop] = mix
        return closest_out, alt_out, mix_out

    def _nearest_two_block(
        self, rows: np.ndarray
    ) -> Tuple[NDArray[np.intp], NDArray[np.intp], NDArray[np.float64]]:
        deltas = delta_e2000_matrix(rgb_to_lab(rows), self._lab)
        n = deltas.shape[0]

        closest_idx = np.zeros(n, dtype=np.intp)
        closest_delta = np.full(n, SENTINEL_DISTANCE, dtype=np.float64)
        alt_idx = np.zeros(n, dtype=np.intp)
        alt_delta = np.full(n, SENTINEL_DISTANCE, dtype=np.float64)

        # Column by column in palette order so ties resolve as in find_closest.
        for j in range(deltas.shape[1]):
            d = deltas[:, j]
            better = d < closest_delta
            second = ~better & (d < alt_delta)
            alt_idx = np.where(better, closest_idx, np.where(second, j, alt_idx))
            alt_delta = np.where(better, closest_delta, np.where(second, d, alt_delta))
            closest_idx = np.where(better, j, closest_idx)
            closest_delta = np.where(better, d, closest_delta)

        if len(self._items) == 1:
            mix = np.ones(n, dtype=np.float64)
        else:
            exact = alt_delta == 0.0
            mix = np.divide(
                closest_delta,
                alt_delta,
                out=np.zeros(n, dtype=np.float64),
                where=~exact,
            )
        return closest_idx, alt_idx, mix


__all__ = ["Palette", "mix_ratio"]
