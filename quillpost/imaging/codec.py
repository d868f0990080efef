"""Content sniffing, decoding and JPEG encoding."""
from io import BytesIO

from PIL import Image, UnidentifiedImageError

from quillpost.imaging.pixels import PixelGrid

JPEG = "image/jpeg"
PNG = "image/png"
WEBP = "image/webp"
GIF = "image/gif"

FLATTEN_BACKGROUND = (255, 255, 255, 255)


class ImageDecodeError(ValueError):
    pass


class ImageEncodeError(RuntimeError):
    pass


def sniff_content_type(data: bytes) -> str | None:
    """Detect the image type from its leading bytes; the client's header is not consulted."""
    if data.startswith(b"\xff\xd8\xff"):
        return JPEG
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return PNG
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return WEBP
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return GIF
    return None


def decode(data: bytes) -> PixelGrid:
    try:
        with Image.open(BytesIO(data)) as image:
            image.load()
            return PixelGrid(image.convert("RGBA"))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as exc:
        raise ImageDecodeError(str(exc) or "cannot decode image") from exc


def encode_jpeg(grid: PixelGrid, quality: int) -> bytes:
    """Encode as baseline JPEG; transparency is flattened onto white."""
    background = Image.new("RGBA", grid.size, FLATTEN_BACKGROUND)
    flattened = Image.alpha_composite(background, grid.image).convert("RGB")
    buf = BytesIO()
    try:
        flattened.save(buf, format="JPEG", quality=quality, optimize=True)
    except (OSError, ValueError) as exc:
        raise ImageEncodeError(str(exc)) from exc
    return buf.getvalue()
