# palette_dither/display.py
from __future__ import annotations

"""
Raw framebuffer sink.

A FramebufferTarget is a file of exactly width * height * channels bytes that
an external viewer maps and reads. present() copies a PixelBuffer into it.
All state lives on the target object.
"""

import mmap
from dataclasses import dataclass
from pathlib import Path

from .buffer import PixelBuffer
from .constants import DEFAULT_CHANNELS, DEFAULT_HEIGHT, DEFAULT_WIDTH, FRAMEBUFFER_PATH
from .core_types import BufferShapeError


@dataclass(frozen=True)
class FramebufferTarget:
    path: Path = Path(FRAMEBUFFER_PATH)
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    channels: int = DEFAULT_CHANNELS

    @property
    def size(self) -> int:
        return self.width * self.height * self.channels


def present(buffer: PixelBuffer, target: FramebufferTarget) -> None:
    """Write buffer bytes into the target file, creating or resizing it."""
    if (buffer.width, buffer.height, buffer.channels) != (
        target.width,
        target.height,
        target.channels,
    ):
        raise BufferShapeError(
            f"buffer {buffer.width}x{buffer.height}x{buffer.channels} does not match "
            f"target {target.width}x{target.height}x{target.channels}"
        )

    path = Path(target.path)
    with open(path, "r+b" if path.exists() else "w+b") as fh:
        fh.truncate(target.size)
        with mmap.mmap(fh.fileno(), target.size) as mm:
            mm[:] = buffer.to_bytes()
            mm.flush()


__all__ = ["FramebufferTarget", "present"]
