# palette_dither/constants.py
"""
Tunables and fixed tables used across the project.

- Nearest-two search sentinel
- Ordered dither dispersion table
- Default screen size, catalog groups and framebuffer sink
"""
from __future__ import annotations

from typing import Tuple

# =========================
# Nearest-two search
# =========================

# Starting distance for both the closest and the alternative slot.
# Above the black/white CIEDE2000 distance of 100.
SENTINEL_DISTANCE: float = 101.0

# =========================
# Ordered dither
# =========================

# 1D dispersion sequence indexed by abs(x - 3*y) % 9. A fixed permutation of
# 1..9; values and order must not change or previous outputs stop matching.
DISPERSION_MATRIX_SIZE: int = 9
DISPERSED: Tuple[int, ...] = (1, 7, 4, 5, 8, 3, 6, 2, 9)

# Diagonal stride applied to y before folding into the table.
DISPERSION_Y_STRIDE: int = 3

# =========================
# Screen / CLI defaults
# =========================

DEFAULT_WIDTH: int = 640
DEFAULT_HEIGHT: int = 480
DEFAULT_CHANNELS: int = 4

DEFAULT_GROUP: str = "bit4"
OUTPUT_SUFFIX: str = "_dithered"

# Raw RGBA sink read by an external viewer.
FRAMEBUFFER_PATH: str = "/tmp/imagesink"

# =========================
# Palette catalog
# =========================

# Size groups in catalog order. "moreThan64bit" holds everything larger.
CATALOG_GROUPS: Tuple[str, ...] = (
    "bit2",
    "bit3",
    "bit4",
    "bit5",
    "bit6",
    "bit7",
    "bit8",
    "bit9",
    "bit10",
    "bit11",
    "bit12",
    "bit13",
    "bit14",
    "bit15",
    "bit16",
    "bit20",
    "bit24",
    "bit28",
    "bit32",
    "bit36",
    "bit40",
    "bit44",
    "bit48",
    "bit52",
    "bit56",
    "bit60",
    "bit64",
    "moreThan64bit",
)
