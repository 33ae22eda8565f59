"""
Flat RGBA32 pixel buffer with row-major addressing.
"""

from typing import Tuple

from . import color_palettes as colors
from .errors import InvalidParameter

BYTES_PER_PIXEL = 4
PIXEL_FORMAT = "RGBA32"


class PixelBuffer:
    """
    Width x height RGBA32 image stored in a single bytearray.

    Pixel (x, y) lives at offset (y * width + x) * 4. Row 0 is the bottom row
    in texture space.
    """

    def __init__(self, width: int, height: int, fill: colors.Color = colors.TRANSPARENT):
        if width <= 0:
            raise InvalidParameter("width", width, "must be positive")
        if height <= 0:
            raise InvalidParameter("height", height, "must be positive")
        self.width = width
        self.height = height
        self.data = bytearray(bytes(colors.to_bytes(fill)) * (width * height))

    def _offset(self, x: int, y: int) -> int:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        return (y * self.width + x) * BYTES_PER_PIXEL

    def set_pixel(self, x: int, y: int, color: colors.Color) -> None:
        offset = self._offset(x, y)
        self.data[offset:offset + BYTES_PER_PIXEL] = bytes(colors.to_bytes(color))

    def get_pixel(self, x: int, y: int) -> Tuple[int, int, int, int]:
        offset = self._offset(x, y)
        return tuple(self.data[offset:offset + BYTES_PER_PIXEL])

    def fill_rows(self, y_start: int, y_end: int, color: colors.Color) -> None:
        """Overwrite rows [y_start, y_end) with a single color."""
        y_start = max(0, y_start)
        y_end = min(self.height, y_end)
        if y_end <= y_start:
            return
        row = bytes(colors.to_bytes(color)) * self.width
        stride = self.width * BYTES_PER_PIXEL
        for y in range(y_start, y_end):
            self.data[y * stride:(y + 1) * stride] = row

    def copy(self) -> "PixelBuffer":
        clone = PixelBuffer.__new__(PixelBuffer)
        clone.width = self.width
        clone.height = self.height
        clone.data = bytearray(self.data)
        return clone

    def to_bytes(self) -> bytes:
        return bytes(self.data)

    def is_zero(self) -> bool:
        return not any(self.data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.data == other.data
        )

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height}, {PIXEL_FORMAT})"
