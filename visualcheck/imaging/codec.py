"""Raster codec boundary: encoded bytes <-> PixelBuffer, backed by Pillow."""

from __future__ import annotations

import io
import logging
from typing import Protocol

from PIL import Image, UnidentifiedImageError

from visualcheck.errors import DecodeError
from visualcheck.imaging.pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)


class ImageCodec(Protocol):
    def decode(self, data: bytes) -> PixelBuffer: ...

    def encode(self, buffer: PixelBuffer) -> bytes: ...


class PillowCodec:
    """Decodes any format Pillow understands; encodes PNG."""

    def __init__(self, image_format: str = "PNG"):
        self.image_format = image_format

    def decode(self, data: bytes) -> PixelBuffer:
        if not data:
            raise DecodeError("Cannot decode empty image data")
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                mode = "RGBA" if "A" in img.getbands() else "RGB"
                converted = img.convert(mode)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise DecodeError(f"Failed to decode image: {e}") from e

        width, height = converted.size
        logger.debug("Decoded %dx%d %s image", width, height, mode)
        # get_flattened_data() replaces getdata() on newer Pillow
        getter = getattr(converted, "get_flattened_data", None) or converted.getdata
        return PixelBuffer(width, height, [tuple(p) for p in getter()], mode)

    def encode(self, buffer: PixelBuffer) -> bytes:
        img = Image.new(buffer.mode, buffer.size)
        img.putdata(buffer.pixels)
        out = io.BytesIO()
        img.save(out, self.image_format)
        return out.getvalue()
