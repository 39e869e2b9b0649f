"""Convert PIL images to ESC/POS raster (GS v 0) commands."""

import base64
import binascii
import io
import re

from PIL import Image, UnidentifiedImageError

from printpool.encoder.escpos import CUT, GS, INIT, EncodeResult, EncodingError, feed
from printpool.models.request import ImageContent

LUMINANCE_THRESHOLD = 128
ALPHA_THRESHOLD = 128

_DATA_URI_PREFIX = re.compile(r"^data:image/\w+;base64,")


def decode_png(png_base64: str) -> Image.Image:
    """Decode a base64 PNG (raw or data URI) into a PIL image.

    Raises:
        EncodingError: If the data is not valid base64 or not an image.
    """
    raw = _DATA_URI_PREFIX.sub("", png_base64.strip())
    try:
        data = base64.b64decode(raw, validate=True)
    except binascii.Error as e:
        raise EncodingError(f"Invalid base64 image data: {e}") from e

    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise EncodingError(f"Unreadable image: {e}") from e
    return image


def scale_to_width(image: Image.Image, width: int) -> Image.Image:
    """Scale an image to the printer's dot width with nearest-neighbour sampling."""
    if image.width == width:
        return image
    height = max(1, round(image.height * width / image.width))
    return image.resize((width, height), Image.Resampling.NEAREST)


def image_to_escpos(image: Image.Image) -> bytes:
    """Convert a PIL image to an ESC/POS raster print sequence.

    Layout:
        ESC @                      initialise
        GS v 0 m xL xH yL yH       raster header (m=0 normal density)
        d1 ... dk                  1-bit rows, MSB first, 1 = black
        ESC d 4                    feed
        GS V 0                     full cut

    Transparent pixels print white; others are black when their weighted
    luminance falls below the threshold.
    """
    rgba = image.convert("RGBA")
    width, height = rgba.size
    bytes_per_row = (width + 7) // 8

    pixels = rgba.load()

    bitmap = bytearray(bytes_per_row * height)
    for y in range(height):
        row_offset = y * bytes_per_row
        for x in range(width):
            r, g, b, a = pixels[x, y]
            if a < ALPHA_THRESHOLD:
                continue
            if 0.299 * r + 0.587 * g + 0.114 * b < LUMINANCE_THRESHOLD:
                bitmap[row_offset + x // 8] |= 0x80 >> (x % 8)

    header = GS + b"v0\x00" + bytes(
        [bytes_per_row & 0xFF, (bytes_per_row >> 8) & 0xFF, height & 0xFF, (height >> 8) & 0xFF]
    )
    return INIT + header + bytes(bitmap) + feed(4) + CUT


def encode_image(content: ImageContent) -> EncodeResult:
    """Decode, scale and rasterise an image request."""
    image = scale_to_width(decode_png(content.png_base64), content.width)
    return EncodeResult(payload=image_to_escpos(image))
