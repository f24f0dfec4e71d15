"""
Pixel packing - palette indices to panel wire format.

Images must already use only palette colors (quantize/dither upstream
against `profile.palette_for(mode).to_image()`); any other color raises
PaletteMiss instead of being approximated.

Layouts:
    1 bpp            8 pixels per byte, MSB first
    2 bpp, 2 planes  high bit of each index in plane H, low bit in plane L,
                     each 8 pixels per byte, MSB first
    4 bpp            2 pixels per byte, first pixel in the high nibble

Rows are byte aligned; a partial final byte is padded with index 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, Tuple, Union

from PIL import Image

from .errors import PaletteMiss
from .modes import Mode
from .profile import ColorLike, Palette, PanelProfile, PixelFormat, to_rgb

IndexGrid = List[List[int]]


@dataclass(frozen=True)
class PixelBuffer:
    """One packed plane. Read-only once handed to the driver."""

    data: bytes
    stride: int
    bits_per_pixel: int
    width: int
    height: int

    def __len__(self) -> int:
        return len(self.data)


Planes = Union[PixelBuffer, Tuple[PixelBuffer, ...]]


def as_planes(planes: Union[PixelBuffer, Sequence[PixelBuffer]]) -> Tuple[PixelBuffer, ...]:
    """Normalize pack() output (single buffer or tuple) to a tuple."""
    if isinstance(planes, PixelBuffer):
        return (planes,)
    return tuple(planes)


def _image_rows(image) -> Tuple[int, int, Iterable[Sequence[Tuple[int, ...]]]]:
    if isinstance(image, Image.Image):
        rgb = image if image.mode == "RGB" else image.convert("RGB")
        width, height = rgb.size
        pixels = rgb.load()
        rows = ([pixels[x, y] for x in range(width)] for y in range(height))
        return width, height, rows
    rows = [list(row) for row in image]
    width = len(rows[0]) if rows else 0
    for y, row in enumerate(rows):
        if len(row) != width:
            raise ValueError(f"Row {y} has {len(row)} pixels, expected {width}")
    return width, len(rows), rows


def quantize(image, palette: Palette) -> IndexGrid:
    """
    Map every pixel to its palette index by exact color match.

    Args:
        image: Pillow image (any mode, compared in RGB) or a sequence of rows
            of (r, g, b) tuples.
        palette: Target palette.

    Returns:
        Row-major grid of palette indices.

    Raises:
        PaletteMiss: on the first pixel whose color is not in the palette.
    """
    _, _, rows = _image_rows(image)
    grid: IndexGrid = []
    for y, row in enumerate(rows):
        out = []
        for x, pixel in enumerate(row):
            color = tuple(pixel[:3])
            index = palette.index_of(color)
            if index is None:
                raise PaletteMiss(x, y, color)
            out.append(index)
        grid.append(out)
    return grid


def _pack_bits(grid: IndexGrid, width: int, bits: int, select: Callable[[int], int]) -> bytes:
    per_byte = 8 // bits
    mask = (1 << bits) - 1
    out = bytearray()
    for row in grid:
        for start in range(0, width, per_byte):
            byte = 0
            for offset in range(per_byte):
                x = start + offset
                value = select(row[x]) & mask if x < width else 0
                byte = (byte << bits) | value
            out.append(byte)
    return bytes(out)


def pack_indices(grid: IndexGrid, fmt: PixelFormat) -> Planes:
    """Pack an index grid according to a pixel format."""
    height = len(grid)
    width = len(grid[0]) if grid else 0
    stride = fmt.stride(width)
    if fmt.plane_count == 2:
        high = _pack_bits(grid, width, 1, lambda i: i >> 1)
        low = _pack_bits(grid, width, 1, lambda i: i & 1)
        return (
            PixelBuffer(high, stride, 1, width, height),
            PixelBuffer(low, stride, 1, width, height),
        )
    data = _pack_bits(grid, width, fmt.bits_per_pixel, lambda i: i)
    return PixelBuffer(data, stride, fmt.bits_per_pixel, width, height)


def pack(image, profile: PanelProfile, mode: Mode = Mode.NORMAL) -> Planes:
    """
    Quantize and pack an image for a panel.

    Pure function of (image, profile, mode); safe to call off the driver's
    bus lock.

    Returns:
        A PixelBuffer, or a (high, low) pair for two-plane formats.
    """
    fmt = profile.format_for(mode)
    return pack_indices(quantize(image, fmt.palette), fmt)


def solid_fill(fmt: PixelFormat, color: ColorLike, width: int, height: int) -> Planes:
    """Planes for a frame filled with one palette color."""
    rgb = to_rgb(color)
    index = fmt.palette.index_of(rgb)
    if index is None:
        raise PaletteMiss(0, 0, rgb)
    # Pack a single row and repeat it.
    filled = tuple(
        PixelBuffer(p.data * height, p.stride, p.bits_per_pixel, width, height)
        for p in as_planes(pack_indices([[index] * width], fmt))
    )
    return filled if fmt.plane_count == 2 else filled[0]


def unpack(planes: Union[PixelBuffer, Sequence[PixelBuffer]]) -> IndexGrid:
    """Reference inverse of pack: planes back to an index grid."""
    planes = as_planes(planes)
    first = planes[0]
    width, height, stride = first.width, first.height, first.stride

    def read(buffer: PixelBuffer, x: int, y: int) -> int:
        bits = buffer.bits_per_pixel
        per_byte = 8 // bits
        byte = buffer.data[y * stride + x // per_byte]
        shift = 8 - bits * (x % per_byte + 1)
        return (byte >> shift) & ((1 << bits) - 1)

    if len(planes) == 2:
        high, low = planes
        return [[(read(high, x, y) << 1) | read(low, x, y) for x in range(width)] for y in range(height)]
    return [[read(first, x, y) for x in range(width)] for y in range(height)]


def preview(planes: Union[PixelBuffer, Sequence[PixelBuffer]], palette: Palette) -> Image.Image:
    """Render packed planes back into an RGB image."""
    grid = unpack(planes)
    first = as_planes(planes)[0]
    image = Image.new("RGB", (first.width, first.height))
    image.putdata([palette.color_of(i) for row in grid for i in row])
    return image
