"""Resize policies for avatars and post images."""
from quillpost.imaging.pixels import PixelGrid, crop, scale


def center_square_box(width: int, height: int) -> tuple[int, int, int]:
    """Largest centered square as (left, top, side)."""
    if width > height:
        return (width - height) // 2, 0, height
    return 0, (height - width) // 2, width


def square_crop_and_scale(grid: PixelGrid, size: int) -> PixelGrid:
    """Crop the longer side symmetrically, then scale to exactly size x size."""
    left, top, side = center_square_box(grid.width, grid.height)
    square = crop(grid, left, top, side, side)
    return scale(square, size, size)


def scale_to_max_width(grid: PixelGrid, max_width: int) -> PixelGrid:
    """Shrink to ``max_width`` keeping the aspect ratio; never upscale."""
    if grid.width <= max_width:
        return grid
    height = max(1, round(grid.height * max_width / grid.width))
    return scale(grid, max_width, height)
