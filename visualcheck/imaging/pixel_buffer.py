"""Decoded in-memory image used by the comparison code."""

from __future__ import annotations

from dataclasses import dataclass, field

Pixel = tuple[int, ...]


@dataclass
class PixelBuffer:
    """Row-major RGB or RGBA pixels with 8-bit channels."""

    width: int
    height: int
    pixels: list[Pixel] = field(default_factory=list)
    mode: str = "RGB"

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Negative dimensions: {self.width}x{self.height}")
        if self.mode not in ("RGB", "RGBA"):
            raise ValueError(f"Unsupported pixel mode: {self.mode}")
        if len(self.pixels) != self.width * self.height:
            raise ValueError(
                f"Expected {self.width * self.height} pixels for "
                f"{self.width}x{self.height}, got {len(self.pixels)}"
            )

    @classmethod
    def filled(cls, width: int, height: int, color: Pixel) -> "PixelBuffer":
        mode = "RGBA" if len(color) == 4 else "RGB"
        return cls(width, height, [tuple(color)] * (width * height), mode)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    def pixel(self, x: int, y: int) -> Pixel:
        return self.pixels[y * self.width + x]

    def set_pixel(self, x: int, y: int, value: Pixel) -> None:
        self.pixels[y * self.width + x] = tuple(value)
