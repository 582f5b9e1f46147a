#!/usr/bin/env python3
"""
dither_image.py
Reduce images to a small palette with CIEDE2000 matching and ordered dithering.

Usage:
  python dither_image.py INPUT --palettes palettes.json --group bit4 --palette 0
  python dither_image.py INPUT --colors 000000,ffffff --strategy ordered
  python dither_image.py --palettes palettes.json --list

Strategies:
  ordered : nearest two palette colours, picked per pixel from a fixed dispersion table.
  random  : nearest two palette colours, picked per pixel at random in proportion to the mix.
  closest : nearest palette colour only.

Input:
  Any Pillow-readable image, or a folder of them. The image is resized to
  exactly WIDTHxHEIGHT (nearest neighbour). Alpha is preserved.

Output:
  PNG. Written as <stem>_dithered.png next to INPUT, or into --outdir.
"""

from __future__ import annotations

import argparse
import os
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from palette_dither.constants import (
    DEFAULT_GROUP,
    DEFAULT_HEIGHT,
    DEFAULT_WIDTH,
    CATALOG_GROUPS,
    OUTPUT_SUFFIX,
)
from palette_dither.core_types import STRATEGIES, BufferShapeError, PaletteError
from palette_dither.display import FramebufferTarget
from palette_dither.image_io import is_image_file, load_image, save_image
from palette_dither.palette import Palette
from palette_dither.palette_catalog import load_catalog, parse_hex_list
from palette_dither.screen import Screen
from palette_dither.utils import (
    captured_output,
    colour_usage_report,
    debug_log,
    enable_line_buffered_stdout,
    error,
    format_seconds_compact,
    key_value_pairs_to_string,
    log,
    print_banner,
    print_config_line,
    warn,
)

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif"}

# CLI args & small helpers


def _default_workers() -> int:
    """Leave a few cores free for the system; returns a sensible worker count."""
    n = os.cpu_count() or 4
    reserve = 1 if n <= 6 else 2 if n <= 12 else 3 if n <= 18 else 4
    return max(1, n - reserve)


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments.

    Returns:
      argparse.Namespace with:
        src: Path to image or folder (optional with --list)
        outdir: optional Path for outputs
        palettes: optional palettes JSON catalog
        group: catalog size group
        palette: palette index or name inside group
        colors: optional comma/space separated hex list (overrides catalog)
        width, height: output size
        strategy: "closest" | "random" | "ordered"
        seed: random strategy seed
        jobs: parallel file workers
        workers: threads per image
        framebuffer: optional raw framebuffer sink path
        list: print catalog contents and exit
        debug: bool for verbose details
    """
    parser = argparse.ArgumentParser(
        prog="dither_image",
        description="Reduce image(s) to a fixed palette with ordered dithering.",
    )
    parser.add_argument("src", type=Path, nargs="?", help="Input image or folder")
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )
    parser.add_argument(
        "--palettes", type=Path, default=None, help="Palettes JSON catalog"
    )
    parser.add_argument(
        "--group",
        choices=list(CATALOG_GROUPS),
        default=DEFAULT_GROUP,
        help="Catalog size group.",
    )
    parser.add_argument(
        "--palette", default="0", help="Palette index or name inside --group"
    )
    parser.add_argument(
        "--colors",
        default=None,
        help="Explicit palette, e.g. 000000,ffffff. Overrides --palettes.",
    )
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH, help="Output width")
    parser.add_argument(
        "--height", type=int, default=DEFAULT_HEIGHT, help="Output height"
    )
    parser.add_argument(
        "--strategy", choices=list(STRATEGIES), default="ordered", help="Dither strategy."
    )
    parser.add_argument("--seed", type=int, default=0, help="Seed for --strategy random")
    parser.add_argument(
        "--jobs", type=int, default=1, help="Files processed in parallel"
    )
    parser.add_argument(
        "--workers", type=int, default=_default_workers(), help="Threads per image"
    )
    parser.add_argument(
        "--framebuffer",
        type=Path,
        default=None,
        help="Also write raw RGBA bytes to this framebuffer file",
    )
    parser.add_argument(
        "--list", action="store_true", help="List catalog palettes and exit"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose details")
    return parser.parse_args(argv)


def _resolve_palette(args: argparse.Namespace) -> Tuple[Palette, str]:
    """Build the Palette from --colors or from the catalog selection."""
    if args.colors:
        hexes = parse_hex_list(args.colors)
        return Palette.from_hex(hexes), f"custom [{len(hexes)} Colors]"
    if args.palettes is None:
        raise PaletteError("no palette given: pass --colors or --palettes")
    catalog = load_catalog(args.palettes)
    log(f"Finished parsing {catalog}")
    entry = catalog.select(args.group, args.palette)
    return entry.to_palette(), str(entry)


def _list_catalog(path: Path) -> None:
    catalog = load_catalog(path)
    log(f"Catalog {path.name} {catalog}")
    current = None
    for group, entry in catalog:
        if group != current:
            print_banner(group)
            current = group
            index = 0
        log(f"  {index:>3}  {entry}")
        index += 1


def _collect_inputs(src: Path) -> List[Path]:
    if not src.is_dir():
        return [src]
    files = [
        p
        for p in src.iterdir()
        if p.is_file()
        and p.suffix.lower() in IMAGE_EXTS
        and not p.stem.endswith(OUTPUT_SUFFIX)
    ]
    files.sort(key=lambda p: p.name.lower())
    return files


# Per-file processing


def _process_single_image(
    src_path: Path,
    out_path: Optional[Path],
    palette: Palette,
    args: argparse.Namespace,
) -> Path:
    """
    Process a single image path end-to-end:
      load -> exact resize -> palette pass -> save -> report.
    """
    t_start = time.perf_counter()
    if out_path is None:
        out_path = src_path.with_name(f"{src_path.stem}{OUTPUT_SUFFIX}.png")

    print_banner(src_path.name)

    image = load_image(src_path)
    if args.debug:
        debug_log(
            key_value_pairs_to_string(
                [("Loaded", f"{image.width}x{image.height}"), ("Mode", image.mode)]
            )
        )

    screen = Screen(image, palette, args.width, args.height)
    t_loaded = time.perf_counter()

    screen.apply_palette_dithered(
        args.strategy, workers=args.workers, seed=args.seed, debug=args.debug
    )
    t_mapped = time.perf_counter()

    written = save_image(out_path, screen.render())
    if args.framebuffer is not None:
        screen.present(
            FramebufferTarget(
                path=args.framebuffer, width=screen.width, height=screen.height
            )
        )
    t_saved = time.perf_counter()

    log(
        f"Wrote {written.name} | size={screen.width}x{screen.height} | palette_size={len(palette)}"
    )
    log("Colours used:")
    for hex_code, count in colour_usage_report(screen.buffer.pixels()):
        log(f"  {hex_code}: {count:,}")

    if args.debug:
        debug_log(
            f"Total {format_seconds_compact(t_saved - t_start)}  "
            f"(load={format_seconds_compact(t_loaded - t_start)}, "
            f"map={format_seconds_compact(t_mapped - t_loaded)}, "
            f"save={format_seconds_compact(t_saved - t_mapped)})"
        )
    else:
        log(f"Total time {format_seconds_compact(t_saved - t_start)}")
    return written


def _process_one_captured(
    path: Path, palette: Palette, args: argparse.Namespace
) -> str:
    """
    Process a single file with stdout capture.

    Useful for concurrent execution where output should be printed in order.
    """
    with captured_output() as buf:
        dst = (args.outdir / f"{path.stem}{OUTPUT_SUFFIX}.png") if args.outdir else None
        _process_single_image(path, dst, palette, args)
    return buf.getvalue()


# Entry point


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    CLI entry point.

    Handles a single file or a folder. In folder mode supports --jobs
    parallelism while preserving readable output ordering.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    try:
        if args.list:
            if args.palettes is None:
                raise PaletteError("--list needs --palettes")
            _list_catalog(args.palettes)
            return

        if args.src is None:
            error("no input given")
            sys.exit(2)
        src = args.src
        if not src.exists():
            error(f"not found: {src}")
            sys.exit(2)
        if not src.is_dir() and not is_image_file(src):
            error(f"not a readable image: {src}")
            sys.exit(2)
        if args.width <= 0 or args.height <= 0:
            raise BufferShapeError(f"invalid size {args.width}x{args.height}")

        palette, description = _resolve_palette(args)
    except (PaletteError, BufferShapeError, KeyError, OSError) as e:
        error(str(e))
        sys.exit(2)

    print_config_line(
        "run",
        [
            ("Size", f"{args.width}x{args.height}"),
            ("Strategy", args.strategy),
            ("Workers", args.workers),
            ("Jobs", args.jobs),
        ],
        debug=False,
    )
    log(f"Palette: {description}")
    if args.debug:
        debug_log(f"palette colours: {' '.join(palette.hexes())}")

    if args.outdir is not None:
        args.outdir.mkdir(parents=True, exist_ok=True)

    files = _collect_inputs(src)
    if src.is_dir():
        readable = [p for p in files if is_image_file(p)]
        for p in files:
            if p not in readable:
                warn(f"skipped unreadable file {p.name}")
        files = readable
        if args.debug:
            debug_log(
                key_value_pairs_to_string([("Images", len(files)), ("Jobs", args.jobs)])
            )

    if args.jobs <= 1 or len(files) <= 1:
        for p in files:
            dst = (args.outdir / f"{p.stem}{OUTPUT_SUFFIX}.png") if args.outdir else None
            _process_single_image(p, dst, palette, args)
    else:
        with ThreadPoolExecutor(max_workers=args.jobs) as ex:
            futures = [ex.submit(_process_one_captured, p, palette, args) for p in files]
            blocks = [f.result() for f in futures]
        print("".join(blocks), end="", flush=True)


if __name__ == "__main__":
    main()
