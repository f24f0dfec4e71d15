"""
Panel profiles - declarative per-model panel descriptions.

A PanelProfile holds everything that differs between panel models:
resolution, palette, opcode table, per-mode init sequences, LUT bytes,
refresh sequences and partial-window addressing. The ProtocolDriver is
generic and only ever reads these values.

Profiles are frozen and shared read-only by every driver instance for
the same model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

from PIL import Image

from .errors import ProfileError
from .modes import Mode

Color = Tuple[int, int, int]
ColorLike = Union[Color, Sequence[int], int]

SUPPORTED_BITS = (1, 2, 4)


def to_rgb(color: ColorLike) -> Color:
    """
    Normalize a color to an (r, g, b) tuple.

    Accepts an (r, g, b) sequence or a packed 0xRRGGBB integer.
    """
    if isinstance(color, int):
        if not 0 <= color <= 0xFFFFFF:
            raise ProfileError(f"Packed color out of range: {color:#x}")
        return ((color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF)
    rgb = tuple(int(c) for c in color)
    if len(rgb) != 3 or any(not 0 <= c <= 255 for c in rgb):
        raise ProfileError(f"Not an RGB color: {color!r}")
    return rgb


def minimal_bits(color_count: int) -> int:
    """Smallest supported bits-per-pixel width covering color_count indices."""
    for bits in SUPPORTED_BITS:
        if color_count <= (1 << bits):
            return bits
    raise ProfileError(f"Palettes above {1 << SUPPORTED_BITS[-1]} colors are not supported")


@dataclass(frozen=True)
class PaletteEntry:
    color: Color
    index: int


@dataclass(frozen=True)
class Palette:
    """
    Immutable ordered palette.

    Indices are dense (0..n-1) and entries are kept in index order, so
    `colors` can be handed straight to an external quantizer/ditherer and
    its output indices map directly onto pack input.
    """

    entries: Tuple[PaletteEntry, ...]
    _lookup: Mapping[Color, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        entries = tuple(
            sorted(
                (PaletteEntry(to_rgb(e.color), int(e.index)) for e in self.entries),
                key=lambda e: e.index,
            )
        )
        if not entries:
            raise ProfileError("Palette must contain at least one color")
        indices = [e.index for e in entries]
        if indices != list(range(len(entries))):
            raise ProfileError(f"Palette indices must be dense 0..{len(entries) - 1}, got {indices}")
        lookup = {}
        for entry in entries:
            if entry.color in lookup:
                raise ProfileError(f"Color {entry.color} appears twice in palette")
            lookup[entry.color] = entry.index
        minimal_bits(len(entries))
        object.__setattr__(self, "entries", entries)
        object.__setattr__(self, "_lookup", MappingProxyType(lookup))

    @classmethod
    def from_colors(cls, colors: Iterable[ColorLike]) -> "Palette":
        """Build a palette whose indices follow the iteration order of colors."""
        return cls(tuple(PaletteEntry(to_rgb(c), i) for i, c in enumerate(colors)))

    @classmethod
    def from_mapping(cls, mapping: Mapping[ColorLike, int]) -> "Palette":
        """Build a palette from a color -> index mapping."""
        return cls(tuple(PaletteEntry(to_rgb(c), i) for c, i in mapping.items()))

    @property
    def colors(self) -> Tuple[Color, ...]:
        return tuple(e.color for e in self.entries)

    @property
    def bits_per_pixel(self) -> int:
        return minimal_bits(len(self.entries))

    def index_of(self, color: Color) -> Optional[int]:
        """Exact-match lookup; None when the color is not in the palette."""
        return self._lookup.get(color)

    def color_of(self, index: int) -> Color:
        return self.entries[index].color

    def to_image(self) -> Image.Image:
        """
        Return a Pillow "P" image carrying this palette.

        Intended for `image.quantize(palette=profile.palette.to_image())`.
        The 256-entry Pillow palette is padded by repeating the first color
        so the quantizer can never pick a color outside the panel palette.
        """
        flat = [channel for color in self.colors for channel in color]
        flat += list(self.colors[0]) * (256 - len(self.entries))
        palette_image = Image.new("P", (1, 1))
        palette_image.putpalette(flat)
        return palette_image

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[PaletteEntry]:
        return iter(self.entries)

    def __contains__(self, color) -> bool:
        try:
            return to_rgb(color) in self._lookup
        except (TypeError, ValueError):
            return False


@dataclass(frozen=True)
class PixelFormat:
    """
    Palette plus wire layout.

    plane_count == 2 splits each 2-bit index into a high-bit plane and a
    low-bit plane, each packed at 1 bit per pixel.
    """

    palette: Palette
    bits_per_pixel: int = 0
    plane_count: int = 1

    def __post_init__(self) -> None:
        minimal = self.palette.bits_per_pixel
        if self.bits_per_pixel == 0:
            object.__setattr__(self, "bits_per_pixel", minimal)
        elif self.bits_per_pixel != minimal:
            raise ProfileError(
                f"bits_per_pixel={self.bits_per_pixel} but a {len(self.palette)}-color "
                f"palette needs exactly {minimal}"
            )
        if self.plane_count not in (1, 2):
            raise ProfileError(f"plane_count must be 1 or 2, got {self.plane_count}")
        if self.plane_count == 2 and self.bits_per_pixel != 2:
            raise ProfileError("Two-plane layout is only defined for 2 bits per pixel")

    @property
    def plane_bits(self) -> int:
        """Bits each pixel occupies within a single plane."""
        return 1 if self.plane_count == 2 else self.bits_per_pixel

    def stride(self, width: int) -> int:
        """Bytes per row in each plane; rows are byte aligned."""
        return (width * self.plane_bits + 7) // 8

    def plane_size(self, width: int, height: int) -> int:
        return self.stride(width) * height


@dataclass(frozen=True)
class Command:
    """One wire transaction: opcode in command phase, data in data phase."""

    opcode: int
    data: bytes = b""
    delay_ms: int = 0
    wait_idle: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.opcode <= 0xFF:
            raise ProfileError(f"Opcode out of range: {self.opcode!r}")
        object.__setattr__(self, "data", bytes(self.data))


def cmd(opcode: int, *data: int, delay_ms: int = 0, wait_idle: bool = False) -> Command:
    """Shorthand used by the profile tables."""
    return Command(opcode, bytes(data), delay_ms=delay_ms, wait_idle=wait_idle)


@dataclass(frozen=True)
class LutSegment:
    """Slice lut_table[start:stop] written to register `opcode`."""

    opcode: int
    start: int
    stop: int


@dataclass(frozen=True)
class WriteStep:
    """
    Write one frame plane to a RAM register.

    Exactly one of `plane` (index into the packed planes) or `fill`
    (constant byte repeated for a full plane) is set.
    """

    opcode: int
    plane: Optional[int] = None
    fill: Optional[int] = None

    def __post_init__(self) -> None:
        if (self.plane is None) == (self.fill is None):
            raise ProfileError("WriteStep needs exactly one of plane or fill")


@dataclass(frozen=True)
class RefreshSequence:
    """How a mode writes its planes and triggers the refresh."""

    write_steps: Tuple[WriteStep, ...]
    refresh_opcode: int
    refresh_param: Optional[int] = None
    activate_opcode: Optional[int] = None
    settle_ms: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "write_steps", tuple(self.write_steps))

    @property
    def write_opcodes(self) -> Tuple[int, ...]:
        return tuple(step.opcode for step in self.write_steps)

    def trigger_commands(self) -> Tuple[Command, ...]:
        """Refresh trigger; the last command waits for the panel to go idle."""
        data = b"" if self.refresh_param is None else bytes([self.refresh_param])
        if self.activate_opcode is None:
            return (Command(self.refresh_opcode, data, delay_ms=self.settle_ms, wait_idle=True),)
        return (
            Command(self.refresh_opcode, data),
            Command(self.activate_opcode, delay_ms=self.settle_ms, wait_idle=True),
        )


@dataclass(frozen=True)
class ResetTiming:
    """Reset line held low for pulse_ms, then high for settle_ms."""

    pulse_ms: int = 10
    settle_ms: int = 10


def le16(value: int, mask: int) -> bytes:
    """Masked 16-bit little-endian register value."""
    value &= mask
    return bytes((value & 0xFF, (value >> 8) & 0xFF))


@dataclass(frozen=True)
class AddressWindow:
    """
    RAM window/cursor registers used for partial refresh.

    Columns and rows are written as masked 16-bit little-endian values.
    When rows_bottom_up is set the controller's Y counter decrements, so
    row y of the image lives at RAM row (height - 1 - y).
    """

    x_opcode: int
    y_opcode: int
    cursor_x_opcode: int
    cursor_y_opcode: int
    mask: int = 0x3FF
    rows_bottom_up: bool = False
    x_align: int = 8

    def window_commands(self, x_start: int, y_start: int, x_end: int, y_end: int) -> Tuple[Command, Command]:
        return (
            Command(self.x_opcode, le16(x_start, self.mask) + le16(x_end, self.mask)),
            Command(self.y_opcode, le16(y_start, self.mask) + le16(y_end, self.mask)),
        )

    def cursor_commands(self, x: int, y: int) -> Tuple[Command, Command]:
        return (
            Command(self.cursor_x_opcode, le16(x, self.mask)),
            Command(self.cursor_y_opcode, le16(y, self.mask)),
        )

    def region_commands(self, x: int, y: int, width: int, height: int, panel_height: int) -> Tuple[Command, ...]:
        """Window and cursor commands restricting RAM writes to a rectangle."""
        x_end = x + width - 1
        if self.rows_bottom_up:
            y_start = panel_height - 1 - y
            y_end = panel_height - y - height
        else:
            y_start = y
            y_end = y + height - 1
        return self.window_commands(x, y_start, x_end, y_end) + self.cursor_commands(x, y_start)


@dataclass(frozen=True, eq=False)
class PanelProfile:
    """
    Immutable description of one panel model.

    `palette`, `bits_per_pixel` and `plane_count` describe the default pixel
    format. Modes that use another layout (for example 4-level gray on a
    panel that is black/white otherwise) override it in `mode_formats`.
    """

    name: str
    width: int
    height: int
    pixel_format: PixelFormat
    opcodes: Mapping[str, int]
    init_sequences: Mapping[Mode, Tuple[Command, ...]]
    refresh_sequences: Mapping[Mode, RefreshSequence]
    sleep_sequence: Tuple[Command, ...]
    mode_formats: Mapping[Mode, PixelFormat] = field(default_factory=dict)
    lut_table: Optional[bytes] = None
    lut_segments: Tuple[LutSegment, ...] = ()
    lut_modes: frozenset = frozenset({Mode.GRAY4})
    max_chunk_bytes: int = 4096
    supports_partial: bool = False
    window: Optional[AddressWindow] = None
    reset: ResetTiming = ResetTiming()
    busy_level: int = 0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ProfileError(f"{self.name}: resolution must be positive, got {self.width}x{self.height}")
        if self.max_chunk_bytes <= 0:
            raise ProfileError(f"{self.name}: max_chunk_bytes must be positive")
        if self.busy_level not in (0, 1):
            raise ProfileError(f"{self.name}: busy_level must be 0 or 1")
        if self.supports_partial and self.window is None:
            raise ProfileError(f"{self.name}: partial refresh needs an address window")

        freeze = object.__setattr__
        freeze(self, "opcodes", MappingProxyType(dict(self.opcodes)))
        freeze(self, "init_sequences", MappingProxyType(
            {Mode.parse(m): tuple(seq) for m, seq in self.init_sequences.items()}
        ))
        freeze(self, "refresh_sequences", MappingProxyType(
            {Mode.parse(m): seq for m, seq in self.refresh_sequences.items()}
        ))
        freeze(self, "mode_formats", MappingProxyType(
            {Mode.parse(m): fmt for m, fmt in self.mode_formats.items()}
        ))
        freeze(self, "sleep_sequence", tuple(self.sleep_sequence))
        freeze(self, "lut_modes", frozenset(self.lut_modes))

        if self.lut_table is not None:
            freeze(self, "lut_table", bytes(self.lut_table))
            segments = tuple(self.lut_segments)
            if not segments:
                if "lut" not in self.opcodes:
                    raise ProfileError(f"{self.name}: lut_table given without lut_segments or a 'lut' opcode")
                segments = (LutSegment(self.opcodes["lut"], 0, len(self.lut_table)),)
            for segment in segments:
                if not 0 <= segment.start < segment.stop <= len(self.lut_table):
                    raise ProfileError(f"{self.name}: LUT segment {segment} outside table")
            freeze(self, "lut_segments", segments)

    @property
    def palette(self) -> Palette:
        return self.pixel_format.palette

    @property
    def bits_per_pixel(self) -> int:
        return self.pixel_format.bits_per_pixel

    @property
    def plane_count(self) -> int:
        return self.pixel_format.plane_count

    @property
    def modes(self) -> Tuple[Mode, ...]:
        """Modes with both an init sequence and a refresh sequence."""
        return tuple(m for m in Mode if m in self.init_sequences and m in self.refresh_sequences)

    def format_for(self, mode: Mode) -> PixelFormat:
        return self.mode_formats.get(mode, self.pixel_format)

    def palette_for(self, mode: Mode) -> Palette:
        return self.format_for(mode).palette

    def needs_lut(self, mode: Mode) -> bool:
        return self.lut_table is not None and mode in self.lut_modes

    def lut_commands(self) -> Tuple[Command, ...]:
        if self.lut_table is None:
            return ()
        return tuple(Command(s.opcode, self.lut_table[s.start:s.stop]) for s in self.lut_segments)

    def __repr__(self) -> str:
        return f"PanelProfile(name={self.name!r}, {self.width}x{self.height}, modes={[m.name for m in self.modes]})"
