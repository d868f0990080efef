"""Image ingestion pipeline: decode, orient, resize, encode."""
from quillpost.imaging.codec import ImageDecodeError, ImageEncodeError, decode, encode_jpeg, sniff_content_type
from quillpost.imaging.orientation import correct_orientation
from quillpost.imaging.pixels import PixelGrid
from quillpost.imaging.resize import scale_to_max_width, square_crop_and_scale

__all__ = [
    "ImageDecodeError",
    "ImageEncodeError",
    "PixelGrid",
    "correct_orientation",
    "decode",
    "encode_jpeg",
    "scale_to_max_width",
    "sniff_content_type",
    "square_crop_and_scale",
]
