"""
Raw pixel buffer to PNG conversion
"""

import base64
import io
from typing import Union

from PIL import Image

_MODES = {1: "L", 3: "RGB", 4: "RGBA"}

Buffer = Union[bytes, bytearray, memoryview]


def to_rgba(data: Buffer, width: int, height: int, channels: int) -> Image.Image:
    """
    Build an RGBA raster from raw interleaved samples.

    Grayscale samples are replicated into R, G and B; grayscale and RGB input get a
    fully opaque alpha channel; RGBA input is taken as is. A short buffer is padded
    with zero samples so malformed data still yields an image.
    """
    mode = _MODES.get(channels, "RGB")
    expected = width * height * len(mode)

    samples = bytes(data[:expected]) if data else b""
    if len(samples) < expected:
        samples = samples.ljust(expected, b"\x00")

    image = Image.frombytes(mode, (width, height), samples)
    return image if mode == "RGBA" else image.convert("RGBA")


def encode_png_base64(data: Buffer, width: int, height: int, channels: int) -> str:
    """
    Encode raw image samples as a base64 PNG.

    Args:
        data: Interleaved samples, row major, no row padding
        width: Image width in pixels
        height: Image height in pixels
        channels: Samples per pixel (1 = grayscale, 3 = RGB, 4 = RGBA)

    Returns:
        Base64 text of the PNG encoding of the RGBA raster
    """
    buffer = io.BytesIO()
    to_rgba(data, width, height, channels).save(buffer, format="PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")
