# palette_dither/buffer.py
from __future__ import annotations

"""
Row-major packed pixel buffer and the palette passes that rewrite it.

Exports:
  PixelBuffer(width, height, data, channels=4)
  apply_palette_dithered(buffer, palette, *, strategy="ordered", workers=1, seed=0, debug=False)
  apply_palette_to_rows(rows, palette, *, strategy="ordered", channels=4, seed=0) -> skipped

Pixel i sits at x = i % width, y = i // width. Only R, G, B are rewritten;
alpha, when present, is left as it was.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, MutableSequence, Sequence, Tuple, Union

import numpy as np

from .constants import DEFAULT_CHANNELS
from .core_types import (
    STRATEGIES,
    BufferShapeError,
    ColorMix,
    RGBTuple,
    Strategy,
    U8Image,
)
from .dither import (
    dither,
    dither_random,
    pick_alternative,
    random_thresholds,
    threshold_map,
)
from .palette import Palette
from .utils import (
    debug_log,
    format_seconds_compact,
    key_value_pairs_to_string,
    split_rows_into_parts,
)

BufferLike = Union[bytearray, memoryview, bytes, np.ndarray]


class PixelBuffer:
    """
    Fixed-size width x height buffer of packed 8-bit RGB or RGBA pixels.

    Writable inputs (bytearray, writable memoryview, uint8 ndarray) are wrapped
    without copying so palette passes show up in the caller's object. bytes
    is copied; read the result back with to_bytes().
    """

    def __init__(
        self,
        width: int,
        height: int,
        data: BufferLike,
        channels: int = DEFAULT_CHANNELS,
    ) -> None:
        if int(width) <= 0 or int(height) <= 0:
            raise BufferShapeError(f"invalid size {width}x{height}")
        if channels not in (3, 4):
            raise BufferShapeError(f"channels must be 3 or 4, got {channels}")

        if isinstance(data, np.ndarray):
            if data.dtype != np.uint8:
                raise BufferShapeError(f"expected uint8 pixels, got {data.dtype}")
            if not data.flags.c_contiguous:
                raise BufferShapeError("pixel array must be C-contiguous")
            flat = data.reshape(-1)
        else:
            flat = np.frombuffer(data, dtype=np.uint8)
            if not flat.flags.writeable:
                flat = flat.copy()

        expected = int(width) * int(height) * channels
        if flat.size != expected:
            raise BufferShapeError(
                f"buffer has {flat.size} bytes, expected {width}x{height}x{channels}={expected}"
            )
        if not flat.flags.writeable:
            raise BufferShapeError("pixel array is read-only")

        self._width = int(width)
        self._height = int(height)
        self._channels = int(channels)
        self._flat = flat

    @classmethod
    def from_array(cls, pixels: U8Image) -> "PixelBuffer":
        """Wrap a uint8 [H,W,3|4] array."""
        if pixels.ndim != 3:
            raise BufferShapeError(f"expected [H,W,C] array, got shape {pixels.shape}")
        height, width, channels = pixels.shape
        return cls(width, height, pixels, channels)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def channels(self) -> int:
        return self._channels

    def __len__(self) -> int:
        return int(self._flat.size)

    def position(self, index: int) -> Tuple[int, int]:
        """(x, y) of pixel index."""
        return index % self._width, index // self._width

    def pixels(self) -> U8Image:
        """[H,W,C] view sharing memory with the buffer."""
        return self._flat.reshape(self._height, self._width, self._channels)

    def to_bytes(self) -> bytes:
        return self._flat.tobytes()


def _check_strategy(strategy: str) -> None:
    if strategy not in STRATEGIES:
        raise ValueError(f"unknown strategy {strategy!r}; expected one of {STRATEGIES}")


def _pack_rgb_keys(rgb: np.ndarray) -> np.ndarray:
    """uint8 [...,3] -> uint32 0xRRGGBB keys."""
    return (
        (rgb[..., 0].astype(np.uint32) << 16)
        | (rgb[..., 1].astype(np.uint32) << 8)
        | rgb[..., 2].astype(np.uint32)
    )


def _unpack_rgb_keys(keys: np.ndarray) -> U8Image:
    out = np.empty((keys.shape[0], 3), dtype=np.uint8)
    out[:, 0] = (keys >> 16) & 0xFF
    out[:, 1] = (keys >> 8) & 0xFF
    out[:, 2] = keys & 0xFF
    return out


def apply_palette_dithered(
    buffer: PixelBuffer,
    palette: Palette,
    *,
    strategy: Strategy = "ordered",
    workers: int = 1,
    seed: int = 0,
    debug: bool = False,
) -> None:
    """
    Rewrite every pixel of buffer in place with a palette colour.

    Each unique source colour is looked up once (nearest two + mix); the
    per-pixel decision then uses only that pixel's own (x, y). Rows are split
    across threads when workers > 1; output does not depend on workers.

    Strategies:
      closest : nearest entry everywhere
      random  : alternative with probability ~mix, seeded by seed
      ordered : dispersed ordered dither (dither.dither)
    """
    _check_strategy(strategy)
    t0 = time.perf_counter()

    pixels = buffer.pixels()
    height, width = buffer.height, buffer.width

    keys = _pack_rgb_keys(pixels[..., :3])
    unique_keys, inverse = np.unique(keys.reshape(-1), return_inverse=True)
    inverse = inverse.reshape(height, width)
    closest_idx, alt_idx, mix = palette.find_closest_batch(
        _unpack_rgb_keys(unique_keys)
    )
    t_lookup = time.perf_counter()

    thresholds = None
    if strategy == "random":
        thresholds = random_thresholds((height, width), np.random.default_rng(seed))

    def _rows(y0: int, y1: int) -> None:
        inv = inverse[y0:y1]
        chosen = closest_idx[inv]
        if strategy != "closest":
            th = (
                threshold_map(width, y1 - y0, y0=y0)
                if thresholds is None
                else thresholds[y0:y1]
            )
            flip = pick_alternative(mix[inv], th)
            chosen = np.where(flip, alt_idx[inv], chosen)
        pixels[y0:y1, :, :3] = palette.rgb[chosen]

    spans = split_rows_into_parts(height, workers)
    if workers <= 1 or len(spans) <= 1:
        _rows(0, height)
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for fut in [pool.submit(_rows, y0, y1) for y0, y1 in spans]:
                fut.result()

    if debug:
        t_end = time.perf_counter()
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Strategy", strategy),
                    ("Unique colours", int(unique_keys.shape[0])),
                    ("Palette size", len(palette)),
                    ("Workers", workers),
                    ("Lookup", format_seconds_compact(t_lookup - t0)),
                    ("Apply", format_seconds_compact(t_end - t_lookup)),
                ]
            )
        )


def apply_palette_to_rows(
    rows: Sequence[MutableSequence],
    palette: Palette,
    *,
    strategy: Strategy = "ordered",
    channels: int = DEFAULT_CHANNELS,
    seed: int = 0,
) -> int:
    """
    Per-pixel pass over caller-supplied rows of pixels, in place.

    Each pixel is a sequence of channel values. Pixels whose length is not
    channels are left untouched and counted; the pass carries on. Tuple
    pixels are replaced in their row, mutable ones are written through.

    Returns:
      number of skipped pixels
    """
    _check_strategy(strategy)
    rng = np.random.default_rng(seed)
    cache: Dict[RGBTuple, ColorMix] = {}
    skipped = 0

    for y, row in enumerate(rows):
        for x, pixel in enumerate(row):
            if len(pixel) != channels:
                skipped += 1
                continue
            key: RGBTuple = (int(pixel[0]), int(pixel[1]), int(pixel[2]))
            found = cache.get(key)
            if found is None:
                found = cache[key] = palette.find_closest(key)

            if strategy == "closest":
                out = found.closest
            elif strategy == "random":
                out = dither_random(found.closest, found.alternative, found.mix, rng)
            else:
                out = dither(x, y, found.closest, found.alternative, found.mix)

            if isinstance(pixel, tuple):
                row[x] = (*out, *pixel[3:])
            else:
                pixel[0:3] = out

    return skipped


__all__ = [
    "BufferLike",
    "PixelBuffer",
    "apply_palette_dithered",
    "apply_palette_to_rows",
]
