# palette_dither/screen.py
from __future__ import annotations

"""
Screen: one image resized to a fixed display size plus the palette applied to it.
"""

from typing import Optional

from PIL import Image

from .buffer import PixelBuffer, apply_palette_dithered
from .constants import DEFAULT_HEIGHT, DEFAULT_WIDTH
from .core_types import Strategy
from .display import FramebufferTarget, present
from .image_io import buffer_to_image, image_to_buffer, resize_exact
from .palette import Palette


class Screen:
    """
    Owns an RGBA PixelBuffer built from image at width x height (nearest
    resize) and the Palette used to recolour it.
    """

    def __init__(
        self,
        image: Image.Image,
        palette: Palette,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
    ) -> None:
        self.palette = palette
        self.buffer: PixelBuffer = image_to_buffer(resize_exact(image, width, height))

    @property
    def width(self) -> int:
        return self.buffer.width

    @property
    def height(self) -> int:
        return self.buffer.height

    def apply_palette_dithered(
        self,
        strategy: Strategy = "ordered",
        *,
        workers: int = 1,
        seed: int = 0,
        debug: bool = False,
    ) -> None:
        apply_palette_dithered(
            self.buffer,
            self.palette,
            strategy=strategy,
            workers=workers,
            seed=seed,
            debug=debug,
        )

    def render(self) -> Image.Image:
        return buffer_to_image(self.buffer)

    def present(self, target: Optional[FramebufferTarget] = None) -> None:
        """Copy the buffer into a framebuffer sink sized like this screen."""
        if target is None:
            target = FramebufferTarget(width=self.width, height=self.height)
        present(self.buffer, target)


__all__ = ["Screen"]
