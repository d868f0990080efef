"""RGBA pixel grid and the pure geometric transforms over it.

A ``PixelGrid`` wraps a Pillow image in RGBA mode. Transforms never touch
the source image; each one returns a new grid, with width and height
swapped for the quarter turns.
"""
from __future__ import annotations

from dataclasses import dataclass

from PIL import Image

RGBA = tuple[int, int, int, int]


@dataclass(frozen=True)
class PixelGrid:
    image: Image.Image

    def __post_init__(self) -> None:
        if self.image.mode != "RGBA":
            object.__setattr__(self, "image", self.image.convert("RGBA"))

    @classmethod
    def from_pixels(cls, width: int, height: int, pixels: list[RGBA]) -> PixelGrid:
        if len(pixels) != width * height:
            raise ValueError(f"expected {width * height} pixels, got {len(pixels)}")
        image = Image.new("RGBA", (width, height))
        image.putdata(pixels)
        return cls(image)

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size

    def pixel(self, x: int, y: int) -> RGBA:
        return self.image.getpixel((x, y))

    def tobytes(self) -> bytes:
        return self.image.tobytes()


def flip_horizontal(grid: PixelGrid) -> PixelGrid:
    return PixelGrid(grid.image.transpose(Image.Transpose.FLIP_LEFT_RIGHT))


def flip_vertical(grid: PixelGrid) -> PixelGrid:
    return PixelGrid(grid.image.transpose(Image.Transpose.FLIP_TOP_BOTTOM))


def rotate_180(grid: PixelGrid) -> PixelGrid:
    return PixelGrid(grid.image.transpose(Image.Transpose.ROTATE_180))


def rotate_90_cw(grid: PixelGrid) -> PixelGrid:
    # Pillow's ROTATE_* constants turn counter-clockwise
    return PixelGrid(grid.image.transpose(Image.Transpose.ROTATE_270))


def rotate_90_ccw(grid: PixelGrid) -> PixelGrid:
    return PixelGrid(grid.image.transpose(Image.Transpose.ROTATE_90))


def crop(grid: PixelGrid, left: int, top: int, width: int, height: int) -> PixelGrid:
    if left < 0 or top < 0 or left + width > grid.width or top + height > grid.height:
        raise ValueError(f"crop box ({left}, {top}, {width}x{height}) outside {grid.width}x{grid.height}")
    return PixelGrid(grid.image.crop((left, top, left + width, top + height)))


def scale(grid: PixelGrid, width: int, height: int) -> PixelGrid:
    if width < 1 or height < 1:
        raise ValueError(f"invalid target size {width}x{height}")
    return PixelGrid(grid.image.resize((width, height), Image.Resampling.LANCZOS))
