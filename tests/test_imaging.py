"""Pixel grid transforms, EXIF orientation, resize policies and the codec."""
import io

import pytest
from PIL import Image

from conftest import gif_bytes, jpeg_bytes, png_bytes
from quillpost.imaging import (
    ImageDecodeError,
    PixelGrid,
    correct_orientation,
    decode,
    encode_jpeg,
    scale_to_max_width,
    sniff_content_type,
    square_crop_and_scale,
)
from quillpost.imaging.orientation import CORRECTIONS, apply_orientation, read_orientation
from quillpost.imaging.pixels import crop, flip_horizontal, rotate_90_ccw, rotate_90_cw, rotate_180, flip_vertical
from quillpost.imaging.resize import center_square_box

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


def asymmetric_grid() -> PixelGrid:
    """3x2 grid with distinct pixels so every transform is observable."""
    pixels = [
        (10, 0, 0, 255), (20, 0, 0, 255), (30, 0, 0, 255),
        (40, 0, 0, 255), (50, 0, 0, 255), (60, 0, 0, 255),
    ]
    return PixelGrid.from_pixels(3, 2, pixels)


INVERSES = {
    1: lambda g: g,
    2: flip_horizontal,
    3: rotate_180,
    4: flip_vertical,
    5: lambda g: flip_horizontal(rotate_90_cw(g)),
    6: rotate_90_ccw,
    7: lambda g: flip_horizontal(rotate_90_ccw(g)),
    8: rotate_90_cw,
}


class TestPixelGrid:
    def test_from_pixels_rejects_wrong_length(self):
        with pytest.raises(ValueError):
            PixelGrid.from_pixels(2, 2, [RED])

    def test_non_rgba_images_are_converted(self):
        grid = PixelGrid(Image.new("RGB", (2, 2), (1, 2, 3)))
        assert grid.image.mode == "RGBA"
        assert grid.pixel(0, 0) == (1, 2, 3, 255)

    def test_transforms_return_new_grids(self):
        grid = asymmetric_grid()
        before = grid.tobytes()
        flipped = flip_horizontal(grid)
        assert flipped is not grid
        assert grid.tobytes() == before
        assert flipped.pixel(0, 0) == grid.pixel(2, 0)

    def test_quarter_turns_swap_dimensions(self):
        grid = asymmetric_grid()
        cw = rotate_90_cw(grid)
        assert cw.size == (2, 3)
        # top-left of a clockwise turn is the original bottom-left
        assert cw.pixel(0, 0) == grid.pixel(0, 1)
        ccw = rotate_90_ccw(grid)
        assert ccw.size == (2, 3)
        # top-left of a counter-clockwise turn is the original top-right
        assert ccw.pixel(0, 0) == grid.pixel(2, 0)

    def test_crop_outside_bounds_raises(self):
        with pytest.raises(ValueError):
            crop(asymmetric_grid(), 1, 0, 3, 2)


class TestOrientation:
    @pytest.mark.parametrize("tag", range(1, 9))
    def test_inverse_restores_original(self, tag):
        grid = asymmetric_grid()
        corrected = apply_orientation(grid, tag)
        if tag >= 5:
            assert corrected.size == (grid.height, grid.width)
        restored = INVERSES[tag](corrected)
        assert restored.size == grid.size
        assert restored.tobytes() == grid.tobytes()

    def test_tag_5_is_a_transpose(self):
        grid = asymmetric_grid()
        corrected = CORRECTIONS[5](grid)
        expected = grid.image.transpose(Image.Transpose.TRANSPOSE)
        assert corrected.tobytes() == expected.tobytes()

    def test_unknown_or_missing_tag_is_identity(self):
        grid = asymmetric_grid()
        assert apply_orientation(grid, None) is grid
        assert apply_orientation(grid, 9) is grid

    def test_reads_tag_from_jpeg_exif(self):
        assert read_orientation(jpeg_bytes(4, 2, orientation=6)) == 6
        assert read_orientation(jpeg_bytes(4, 2)) is None
        assert read_orientation(b"not an image") is None

    def test_exif_rotation_swaps_dimensions(self):
        raw = jpeg_bytes(40, 20, orientation=6)
        corrected = correct_orientation(raw, decode(raw))
        assert corrected.size == (20, 40)

    def test_png_without_exif_is_unchanged(self):
        raw = png_bytes(40, 20)
        grid = decode(raw)
        assert correct_orientation(raw, grid) is grid


class TestResize:
    @pytest.mark.parametrize("size", [(300, 500), (500, 300), (256, 256), (10, 3), (1, 1)])
    def test_square_output_is_exact(self, size):
        grid = PixelGrid(Image.new("RGBA", size, RED))
        assert square_crop_and_scale(grid, 256).size == (256, 256)

    def test_square_crop_is_centered(self):
        assert center_square_box(300, 500) == (0, 100, 300)
        assert center_square_box(500, 300) == (100, 0, 300)

    def test_crop_keeps_the_middle(self):
        # left third red, middle blue, right third green
        image = Image.new("RGBA", (30, 10), RED)
        image.paste(BLUE, (10, 0, 20, 10))
        image.paste(GREEN, (20, 0, 30, 10))
        result = square_crop_and_scale(PixelGrid(image), 10)
        assert result.pixel(5, 5) == BLUE

    def test_narrow_image_is_returned_unchanged(self):
        grid = PixelGrid(Image.new("RGBA", (300, 500), RED))
        assert scale_to_max_width(grid, 800) is grid

    def test_wide_image_keeps_aspect_ratio(self):
        grid = PixelGrid(Image.new("RGBA", (1600, 901), RED))
        result = scale_to_max_width(grid, 800)
        assert result.width == 800
        assert result.height == 450  # round(450.5)

    def test_height_never_drops_below_one(self):
        grid = PixelGrid(Image.new("RGBA", (5000, 2), RED))
        assert scale_to_max_width(grid, 800).size == (800, 1)


class TestCodec:
    def test_sniffs_by_signature(self):
        assert sniff_content_type(jpeg_bytes(2, 2)) == "image/jpeg"
        assert sniff_content_type(png_bytes(2, 2)) == "image/png"
        assert sniff_content_type(gif_bytes(2, 2)) == "image/gif"
        assert sniff_content_type(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"
        assert sniff_content_type(b"%PDF-1.7") is None
        assert sniff_content_type(b"") is None

    def test_decode_rejects_garbage(self):
        with pytest.raises(ImageDecodeError):
            decode(b"\x89PNG\r\n\x1a\nbroken")

    def test_encode_produces_jpeg(self):
        data = encode_jpeg(decode(png_bytes(30, 20)), 80)
        with Image.open(io.BytesIO(data)) as image:
            assert image.format == "JPEG"
            assert image.size == (30, 20)

    def test_transparency_is_flattened_onto_white(self):
        grid = PixelGrid(Image.new("RGBA", (8, 8), (0, 0, 0, 0)))
        with Image.open(io.BytesIO(encode_jpeg(grid, 90))) as image:
            r, g, b = image.convert("RGB").getpixel((4, 4))
        assert min(r, g, b) > 245
