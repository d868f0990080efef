"""EXIF orientation correction."""
from collections.abc import Callable
from io import BytesIO

from PIL import ExifTags, Image, UnidentifiedImageError

from quillpost.imaging.pixels import (
    PixelGrid,
    flip_horizontal,
    flip_vertical,
    rotate_90_ccw,
    rotate_90_cw,
    rotate_180,
)

ORIENTATION_TAG = ExifTags.Base.Orientation  # 0x0112


def _identity(grid: PixelGrid) -> PixelGrid:
    return grid


CORRECTIONS: dict[int, Callable[[PixelGrid], PixelGrid]] = {
    1: _identity,
    2: flip_horizontal,
    3: rotate_180,
    4: flip_vertical,
    5: lambda grid: rotate_90_ccw(flip_horizontal(grid)),
    6: rotate_90_cw,
    7: lambda grid: rotate_90_cw(flip_horizontal(grid)),
    8: rotate_90_ccw,
}


def read_orientation(raw: bytes) -> int | None:
    """Orientation tag from the image's EXIF block, or None when absent."""
    try:
        with Image.open(BytesIO(raw)) as image:
            value = image.getexif().get(ORIENTATION_TAG)
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError):
        return None
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def apply_orientation(grid: PixelGrid, tag: int | None) -> PixelGrid:
    correction = CORRECTIONS.get(tag) if tag is not None else None
    if correction is None:
        return grid
    return correction(grid)


def correct_orientation(raw: bytes, grid: PixelGrid) -> PixelGrid:
    """Undo the camera orientation recorded in ``raw``'s EXIF data.

    Missing EXIF, a missing tag or an unknown tag value leave the grid as is.
    """
    return apply_orientation(grid, read_orientation(raw))
