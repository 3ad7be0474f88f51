from __future__ import annotations

from io import BytesIO
import logging
import sys
from typing import Any

import numpy as np

from .base import PixmapDecodeError
from .types import RawImageBuffer


logger = logging.getLogger(__name__)

_MAGIC_BY_COLORS = {1: "P5", 3: "P6"}


def pixmap_header(width: int, height: int, bits: int, colors: int = 3) -> bytes:
    magic = _MAGIC_BY_COLORS.get(colors)
    if magic is None:
        raise PixmapDecodeError(f"no pixel-map format for {colors} color channels")
    if bits not in (8, 16):
        raise PixmapDecodeError(f"unsupported sample depth {bits}")
    return f"{magic}\n{width} {height}\n{(1 << bits) - 1}\n".encode("ascii")


def _big_endian_samples(buf: RawImageBuffer) -> bytes:
    if buf.bytes_per_sample == 1 or sys.byteorder == "big":
        return buf.data
    samples = np.frombuffer(buf.data, dtype="<u2")
    return samples.astype(">u2").tobytes()


def build_pixmap(buf: RawImageBuffer) -> bytes:
    """Frame a processed image as a binary PPM/PGM byte stream."""

    if buf.width <= 0 or buf.height <= 0:
        raise PixmapDecodeError(f"invalid image dimensions {buf.width}x{buf.height}")
    if buf.data_size != len(buf.data) or buf.data_size != buf.expected_size:
        raise PixmapDecodeError(
            f"pixel payload is {len(buf.data)} bytes (reported {buf.data_size}), "
            f"expected {buf.expected_size} for {buf.width}x{buf.height}x{buf.colors}@{buf.bits}"
        )
    header = pixmap_header(buf.width, buf.height, buf.bits, buf.colors)
    return header + _big_endian_samples(buf)


def decode_pixmap(data: bytes) -> Any:
    from PIL import Image, UnidentifiedImageError

    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as exc:
        raise PixmapDecodeError(f"pixel-map decode failed: {exc}") from exc
    return image


def decode_buffer(buf: RawImageBuffer) -> Any:
    image = decode_pixmap(build_pixmap(buf))
    if image.size != (buf.width, buf.height):
        raise PixmapDecodeError(f"decoded size {image.size} does not match {buf.width}x{buf.height}")
    logger.debug("decoded %dx%d %s image", buf.width, buf.height, image.mode)
    return image
