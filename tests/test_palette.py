"""Tests for Palette construction and the nearest-two lookup."""
import math

import numpy as np
import pytest

from palette_dither.constants import SENTINEL_DISTANCE
from palette_dither.core_types import PaletteError, hex_to_rgb, rgb_to_hex
from palette_dither.palette import Palette, mix_ratio

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


# ============================================================================
# Construction
# ============================================================================


def test_empty_palette_fails_fast():
    with pytest.raises(PaletteError):
        Palette([])


@pytest.mark.parametrize("bad", [["zzzzzz"], ["#12345"], [(300, 0, 0)], [(1, 2)]])
def test_invalid_colours_rejected(bad):
    with pytest.raises(PaletteError):
        Palette(bad)


def test_mixed_inputs_keep_order():
    pal = Palette(["#FF0000", (0, 255, 0), "0000ff", "#fff"])
    assert pal.hexes() == ["#ff0000", "#00ff00", "#0000ff", "#ffffff"]
    assert len(pal) == 4
    assert [item.rgb for item in pal] == [
        (255, 0, 0),
        (0, 255, 0),
        (0, 0, 255),
        (255, 255, 255),
    ]


def test_palette_arrays_are_read_only(bw_palette):
    assert bw_palette.lab.shape == (2, 3)
    assert bw_palette.rgb.shape == (2, 3)
    with pytest.raises(ValueError):
        bw_palette.rgb[0, 0] = 7
    with pytest.raises(ValueError):
        bw_palette.lab[0, 0] = 7.0


def test_from_lab():
    pal = Palette.from_lab([[0.0, 0.0, 0.0], [100.0, 0.0, 0.0]])
    assert pal.hexes() == ["#000000", "#ffffff"]
    with pytest.raises(PaletteError):
        Palette.from_lab(np.zeros((0, 3)))


def test_hex_helpers():
    assert hex_to_rgb("#AbC") == (0xAA, 0xBB, 0xCC)
    assert hex_to_rgb("112233") == (0x11, 0x22, 0x33)
    assert rgb_to_hex((17, 34, 51)) == "#112233"
    with pytest.raises(ValueError):
        hex_to_rgb("#1234")


# ============================================================================
# find_closest
# ============================================================================


def test_mid_gray_between_black_and_white(bw_palette):
    found = bw_palette.find_closest((128, 128, 128))
    assert {found.closest, found.alternative} == {BLACK, WHITE}
    assert found.closest_delta <= found.alternative_delta
    assert 0.7 < found.mix < 1.0


def test_exact_match_has_zero_mix(bw_palette):
    found = bw_palette.find_closest((255, 255, 255, 10))
    assert found.closest == WHITE
    assert found.alternative == BLACK
    assert found.mix == 0.0
    assert found.alternative_delta == pytest.approx(100.0, abs=1e-2)


def test_single_entry_palette():
    pal = Palette(["#112233"])
    for rgb in [(0x11, 0x22, 0x33), (0, 0, 0), (250, 10, 99)]:
        found = pal.find_closest(rgb)
        assert found.closest == (0x11, 0x22, 0x33)
        assert found.alternative == (0x11, 0x22, 0x33)
        assert found.mix == 1.0


def test_duplicate_exact_entries_do_not_produce_nan():
    pal = Palette(["#ff0000", "#ff0000", "#0000ff"])
    found = pal.find_closest((255, 0, 0))
    assert found.closest_delta == 0.0
    assert found.alternative_delta == 0.0
    assert found.mix == 0.0
    assert not math.isnan(found.mix)


def test_ties_keep_earlier_entry():
    # Same colour listed twice: the first listed wins closest.
    pal = Palette(["#808080", "#000000", "#808080"])
    found = pal.find_closest((120, 120, 120))
    assert found.closest == (128, 128, 128)
    # second copy ties with closest, so it only takes the alternative slot
    assert found.alternative == (128, 128, 128)
    assert found.alternative_delta == found.closest_delta

    c_idx, a_idx, _mix = pal.find_closest_batch(np.array([[120, 120, 120]], dtype=np.uint8))
    assert c_idx.tolist() == [0]
    assert a_idx.tolist() == [2]


def test_closest_displaces_into_alternative():
    pal = Palette(["#000000", "#404040", "#ffffff"])
    found = pal.find_closest((70, 70, 70))
    assert found.closest == (64, 64, 64)
    assert found.alternative == BLACK


def test_ordering_invariant_and_mix_bounds(small_palette):
    rng = np.random.default_rng(42)
    for rgb in rng.integers(0, 256, size=(200, 3)):
        found = small_palette.find_closest(tuple(int(v) for v in rgb))
        assert found.closest_delta <= found.alternative_delta
        assert found.alternative_delta < SENTINEL_DISTANCE
        assert 0.0 <= found.mix <= 1.0


def test_batch_matches_scalar(small_palette):
    rng = np.random.default_rng(3)
    rows = rng.integers(0, 256, size=(150, 3), dtype=np.uint8)
    c_idx, a_idx, mix = small_palette.find_closest_batch(rows)
    assert c_idx.shape == a_idx.shape == mix.shape == (150,)
    for i, row in enumerate(rows):
        found = small_palette.find_closest(tuple(int(v) for v in row))
        assert small_palette[int(c_idx[i])].rgb == found.closest
        assert small_palette[int(a_idx[i])].rgb == found.alternative
        assert mix[i] == pytest.approx(found.mix, abs=1e-9)


def test_batch_degenerate_cases():
    single = Palette(["#112233"])
    c_idx, a_idx, mix = single.find_closest_batch(
        np.array([[0x11, 0x22, 0x33], [0, 0, 0]], dtype=np.uint8)
    )
    assert c_idx.tolist() == [0, 0]
    assert a_idx.tolist() == [0, 0]
    assert mix.tolist() == [1.0, 1.0]

    dupes = Palette(["#ff0000", "#ff0000", "#0000ff"])
    c_idx, a_idx, mix = dupes.find_closest_batch(np.array([[255, 0, 0, 7]], dtype=np.uint8))
    assert c_idx.tolist() == [0]
    assert a_idx.tolist() == [1]
    assert mix.tolist() == [0.0]


def test_batch_handles_more_rows_than_one_block(bw_palette):
    rows = np.full((5000, 3), 255, dtype=np.uint8)
    rows[4999] = 0
    c_idx, _a_idx, mix = bw_palette.find_closest_batch(rows)
    assert c_idx[:4999].tolist() == [1] * 4999
    assert c_idx[4999] == 0
    assert np.all(mix == 0.0)


def test_mix_ratio_rules():
    assert mix_ratio(3.0, 6.0, 4) == 0.5
    assert mix_ratio(0.0, 0.0, 4) == 0.0
    assert mix_ratio(0.0, 0.0, 1) == 1.0
    assert mix_ratio(5.0, 101.0, 1) == 1.0
