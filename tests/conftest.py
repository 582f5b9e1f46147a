import numpy as np
import pytest

from palette_dither.palette import Palette


@pytest.fixture
def bw_palette():
    return Palette(["#000000", "#FFFFFF"])


@pytest.fixture
def small_palette():
    """A handful of distinct colours in arbitrary order."""
    return Palette(["#1a1c2c", "#b13e53", "#ef7d57", "#ffcd75", "#38b764", "#41a6f6", "#f4f4f4"])


@pytest.fixture
def random_rgba():
    """Deterministic random 40x24 RGBA image with varied alpha."""
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(24, 40, 4), dtype=np.uint8)
