"""End-to-end tests for the dither_image command line."""
import json

import numpy as np
import pytest
from PIL import Image

import dither_image

BW = "000000,ffffff"


@pytest.fixture
def gray_png(tmp_path):
    rgba = np.zeros((10, 12, 4), dtype=np.uint8)
    rgba[..., :3] = 128
    rgba[..., 3] = 200
    path = tmp_path / "gray.png"
    Image.fromarray(rgba).save(path)
    return path


@pytest.fixture
def catalog_path(tmp_path):
    data = {
        "bit2": [{"name": "Paper", "author": "Someone", "colors": ["000000", "ffffff"]}],
        "bit4": [
            {
                "name": "Ice Cream GB",
                "author": "Kerrie Lake",
                "colors": ["7c3f58", "eb6b6f", "f9a875", "fff6d3"],
            }
        ],
    }
    path = tmp_path / "palettes.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def _colours(path):
    arr = np.array(Image.open(path).convert("RGBA"))
    return {tuple(int(v) for v in px) for px in arr[..., :3].reshape(-1, 3)}, arr


def test_single_image_with_explicit_colours(gray_png, capsys):
    dither_image.main([str(gray_png), "--colors", BW, "--width", "8", "--height", "6", "--workers", "1"])
    out_path = gray_png.with_name("gray_dithered.png")
    assert out_path.exists()
    with Image.open(out_path) as im:
        assert im.size == (8, 6)
    colours, arr = _colours(out_path)
    assert colours == {(0, 0, 0), (255, 255, 255)}
    assert np.all(arr[..., 3] == 200)

    out = capsys.readouterr().out
    assert "Palette: custom [2 Colors]" in out
    assert "Wrote gray_dithered.png | size=8x6 | palette_size=2" in out
    assert "Colours used:" in out


def test_catalog_selection(gray_png, catalog_path, tmp_path, capsys):
    outdir = tmp_path / "out"
    dither_image.main(
        [
            str(gray_png),
            "--palettes",
            str(catalog_path),
            "--group",
            "bit4",
            "--palette",
            "ice cream gb",
            "--outdir",
            str(outdir),
            "--width",
            "9",
            "--height",
            "3",
        ]
    )
    colours, _arr = _colours(outdir / "gray_dithered.png")
    allowed = {(0x7C, 0x3F, 0x58), (0xEB, 0x6B, 0x6F), (0xF9, 0xA8, 0x75), (0xFF, 0xF6, 0xD3)}
    assert colours <= allowed
    out = capsys.readouterr().out
    assert "Finished parsing [2 Palettes]" in out
    assert "Palette: Ice Cream GB by Kerrie Lake [4 Colors]" in out


def test_list_catalog(catalog_path, capsys):
    dither_image.main(["--palettes", str(catalog_path), "--list"])
    out = capsys.readouterr().out
    assert "[2 Palettes]" in out
    assert "=== bit2 ===" in out
    assert "Paper by Someone [2 Colors]" in out


@pytest.mark.parametrize(
    "argv",
    [
        ["missing.png", "--colors", BW],
        ["GRAY", "--colors", "12zz34"],
        ["GRAY"],
        ["GRAY", "--palettes", "CATALOG", "--group", "bit2", "--palette", "4"],
        ["GRAY", "--colors", BW, "--width", "0"],
        ["--list"],
    ],
)
def test_bad_invocations_exit_with_code_2(argv, gray_png, catalog_path, tmp_path, capsys):
    subst = {"GRAY": str(gray_png), "CATALOG": str(catalog_path)}
    argv = [subst.get(a, a) for a in argv]
    if argv[0] == "missing.png":
        argv[0] = str(tmp_path / "missing.png")
    with pytest.raises(SystemExit) as exc:
        dither_image.main(argv)
    assert exc.value.code == 2
    assert "[error]" in capsys.readouterr().err


def test_unreadable_single_file_exits_with_code_2(tmp_path, capsys):
    notes = tmp_path / "notes.txt"
    notes.write_text("plain text, not pixels", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        dither_image.main([str(notes), "--colors", BW])
    assert exc.value.code == 2
    assert "[error] not a readable image" in capsys.readouterr().err
    assert not (tmp_path / "notes_dithered.png").exists()


def test_folder_with_jobs(tmp_path, capsys):
    src = tmp_path / "in"
    src.mkdir()
    for i, shade in enumerate([30, 128, 220]):
        rgb = np.full((4, 4, 3), shade, dtype=np.uint8)
        Image.fromarray(rgb).save(src / f"img{i}.png")
    (src / "img0_dithered.png").write_bytes(b"")
    (src / "broken.png").write_bytes(b"not an image")
    (src / "notes.txt").write_text("ignored", encoding="utf-8")

    outdir = tmp_path / "out"
    dither_image.main(
        [str(src), "--colors", BW, "--width", "4", "--height", "4", "--jobs", "2", "--outdir", str(outdir)]
    )
    written = sorted(p.name for p in outdir.iterdir())
    assert written == ["img0_dithered.png", "img1_dithered.png", "img2_dithered.png"]
    out = capsys.readouterr().out
    assert "skipped unreadable file broken.png" in out
    # per-file blocks come back in input order
    assert out.index("=== img0.png ===") < out.index("=== img1.png ===") < out.index("=== img2.png ===")


def test_seeded_random_strategy_is_reproducible(gray_png, tmp_path):
    first = tmp_path / "a"
    second = tmp_path / "b"
    for outdir in (first, second):
        dither_image.main(
            [str(gray_png), "--colors", BW, "--strategy", "random", "--seed", "4",
             "--width", "12", "--height", "10", "--outdir", str(outdir), "--workers", "3"]
        )
    assert (first / "gray_dithered.png").read_bytes() == (second / "gray_dithered.png").read_bytes()


def test_framebuffer_sink(gray_png, tmp_path):
    sink = tmp_path / "imagesink"
    dither_image.main(
        [str(gray_png), "--colors", BW, "--width", "5", "--height", "2", "--framebuffer", str(sink)]
    )
    raw = sink.read_bytes()
    assert len(raw) == 5 * 2 * 4
    _colours_set, arr = _colours(gray_png.with_name("gray_dithered.png"))
    assert raw == arr.tobytes()
