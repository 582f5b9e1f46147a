# palette_dither/palette_catalog.py
from __future__ import annotations

"""
Palette catalogs.

A catalog is a JSON object keyed by size group ("bit2" ... "bit64",
"moreThan64bit"); each group is a list of
  {"name": str, "author": str, "colors": ["rrggbb", ...]}

Exports:
  CatalogPalette
  PaletteCatalog
  load_catalog(path) -> PaletteCatalog
  parse_catalog(obj) -> PaletteCatalog
  parse_hex_list("000000,ffffff") -> list[str]
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Tuple, Union

from .constants import CATALOG_GROUPS
from .core_types import HexStr, PaletteError, hex_to_rgb
from .palette import Palette


@dataclass(frozen=True)
class CatalogPalette:
    name: str
    author: str
    colors: Tuple[HexStr, ...]

    def __str__(self) -> str:
        author = "" if self.author in ("", " ") else f" by {self.author}"
        return f"{self.name}{author} [{len(self.colors)} Colors]"

    def to_palette(self) -> Palette:
        return Palette.from_hex(self.colors)


@dataclass(frozen=True)
class PaletteCatalog:
    groups: Dict[str, List[CatalogPalette]] = field(default_factory=dict)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self.groups.values())

    def __str__(self) -> str:
        return f"[{len(self)} Palettes]"

    def __iter__(self) -> Iterator[Tuple[str, CatalogPalette]]:
        for group in CATALOG_GROUPS:
            for entry in self.groups.get(group, []):
                yield group, entry

    def select(self, group: str, key: Union[int, str] = 0) -> CatalogPalette:
        """
        Pick a palette from group by index or case-insensitive name.
        Digit strings are treated as indices. Raises KeyError if missing.
        """
        if group not in CATALOG_GROUPS:
            raise KeyError(f"unknown palette group {group!r}")
        entries = self.groups.get(group, [])

        if isinstance(key, str) and key.strip().lstrip("-").isdigit():
            key = int(key)
        if isinstance(key, int):
            if not -len(entries) <= key < len(entries):
                raise KeyError(f"{group} has {len(entries)} palettes, no index {key}")
            return entries[key]

        wanted = key.strip().lower()
        for entry in entries:
            if entry.name.strip().lower() == wanted:
                return entry
        raise KeyError(f"no palette named {key!r} in {group}")


def _parse_entry(group: str, raw: Any) -> CatalogPalette:
    if not isinstance(raw, Mapping):
        raise PaletteError(f"{group}: palette entry must be an object")
    colors = raw.get("colors")
    if not isinstance(colors, list) or not colors:
        raise PaletteError(f"{group}: palette {raw.get('name')!r} has no colors")
    for hx in colors:
        try:
            hex_to_rgb(str(hx))
        except ValueError as e:
            raise PaletteError(f"{group}: {e}") from e
    return CatalogPalette(
        name=str(raw.get("name", "")),
        author=str(raw.get("author", "")),
        colors=tuple(str(hx) for hx in colors),
    )


def parse_catalog(obj: Any) -> PaletteCatalog:
    """Validate a decoded catalog object. Missing groups are empty."""
    if not isinstance(obj, Mapping):
        raise PaletteError("palette catalog must be a JSON object")
    groups: Dict[str, List[CatalogPalette]] = {}
    for group in CATALOG_GROUPS:
        raw_list = obj.get(group, [])
        if not isinstance(raw_list, list):
            raise PaletteError(f"{group}: expected a list of palettes")
        groups[group] = [_parse_entry(group, raw) for raw in raw_list]
    return PaletteCatalog(groups=groups)


def load_catalog(path: Path) -> PaletteCatalog:
    """Read and parse a palettes JSON file."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            obj = json.load(fh)
    except json.JSONDecodeError as e:
        raise PaletteError(f"{path}: invalid JSON ({e})") from e
    return parse_catalog(obj)


def parse_hex_list(text: str) -> List[HexStr]:
    """Split 'rrggbb,#rrggbb rrggbb' into a validated list of hex strings."""
    items = [tok for tok in text.replace(",", " ").split() if tok]
    if not items:
        raise PaletteError("no colours given")
    for hx in items:
        try:
            hex_to_rgb(hx)
        except ValueError as e:
            raise PaletteError(str(e)) from e
    return items


__all__ = [
    "CatalogPalette",
    "PaletteCatalog",
    "load_catalog",
    "parse_catalog",
    "parse_hex_list",
]
