"""Tests for palettes, pixel formats and panel profile invariants."""

import unittest

from epdpanel.errors import ProfileError
from epdpanel.modes import Mode
from epdpanel.profile import (
    AddressWindow,
    Command,
    LutSegment,
    Palette,
    PaletteEntry,
    PanelProfile,
    PixelFormat,
    RefreshSequence,
    WriteStep,
    cmd,
    le16,
    to_rgb,
)
from epdpanel.profiles import EPD4IN26, EPD7IN3F

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def _profile(**overrides):
    values = dict(
        name="test",
        width=16,
        height=4,
        pixel_format=PixelFormat(Palette.from_colors([BLACK, WHITE])),
        opcodes={"lut": 0x32},
        init_sequences={"normal": (cmd(0x12),)},
        refresh_sequences={Mode.NORMAL: RefreshSequence((WriteStep(0x24, plane=0),), 0x20)},
        sleep_sequence=[cmd(0x10, 0x01)],
    )
    values.update(overrides)
    return PanelProfile(**values)


class TestPalette(unittest.TestCase):
    """Palette construction and lookup.

    Expected failure message: ProfileError not raised
    Failure reason: Palette.__post_init__ stopped validating its entries.
    """

    def test_order_follows_indices(self):
        palette = Palette.from_colors([BLACK, WHITE, 0xFF0000])
        self.assertEqual(palette.colors, (BLACK, WHITE, (255, 0, 0)))
        self.assertEqual(palette.index_of((255, 0, 0)), 2)
        self.assertIsNone(palette.index_of((1, 1, 1)))
        self.assertEqual(len(palette), 3)
        self.assertIn(WHITE, palette)
        self.assertNotIn((1, 1, 1), palette)

    def test_contains_accepts_any_color_form(self):
        """Membership takes the same color forms as the rest of the API.

        Expected: packed ints and lists match, malformed colors are simply absent
        """
        palette = Palette.from_colors([BLACK, WHITE])
        self.assertIn(0xFFFFFF, palette)
        self.assertIn([0, 0, 0], palette)
        self.assertNotIn(0x123456, palette)
        self.assertNotIn(0x1000000, palette)
        self.assertNotIn((1, 2), palette)
        self.assertNotIn(None, palette)

    def test_from_mapping_sorts_by_index(self):
        palette = Palette.from_mapping({WHITE: 1, BLACK: 0})
        self.assertEqual(palette.colors, (BLACK, WHITE))
        self.assertEqual([e.index for e in palette], [0, 1])

    def test_sparse_indices_rejected(self):
        with self.assertRaises(ProfileError):
            Palette((PaletteEntry(BLACK, 0), PaletteEntry(WHITE, 2)))

    def test_duplicate_color_rejected(self):
        with self.assertRaises(ProfileError):
            Palette.from_colors([BLACK, WHITE, BLACK])

    def test_empty_rejected(self):
        with self.assertRaises(ProfileError):
            Palette.from_colors([])

    def test_too_many_colors(self):
        with self.assertRaises(ProfileError):
            Palette.from_colors([(i, i, i) for i in range(17)])

    def test_bits_per_pixel_is_minimal(self):
        cases = {1: 1, 2: 1, 3: 2, 4: 2, 5: 4, 7: 4, 16: 4}
        for count, bits in cases.items():
            palette = Palette.from_colors([(i, 0, 0) for i in range(count)])
            self.assertEqual(palette.bits_per_pixel, bits, f"{count} colors")

    def test_to_image_carries_palette(self):
        image = EPD7IN3F.palette.to_image()
        self.assertEqual(image.mode, "P")
        flat = image.getpalette()
        self.assertEqual(flat[:21], [c for color in EPD7IN3F.palette.colors for c in color])
        # padding repeats the first color
        self.assertEqual(flat[21:24], [0, 0, 0])

    def test_to_rgb(self):
        self.assertEqual(to_rgb(0xFF7F00), (255, 127, 0))
        self.assertEqual(to_rgb([1, 2, 3]), (1, 2, 3))
        with self.assertRaises(ProfileError):
            to_rgb((1, 2))
        with self.assertRaises(ProfileError):
            to_rgb((0, 0, 256))
        with self.assertRaises(ProfileError):
            to_rgb(0x1000000)


class TestPixelFormat(unittest.TestCase):
    def test_bits_default_to_palette(self):
        fmt = PixelFormat(EPD7IN3F.palette)
        self.assertEqual(fmt.bits_per_pixel, 4)
        self.assertEqual(fmt.stride(800), 400)
        self.assertEqual(fmt.plane_size(800, 480), 192000)

    def test_explicit_bits_must_match(self):
        with self.assertRaises(ProfileError):
            PixelFormat(Palette.from_colors([BLACK, WHITE]), bits_per_pixel=4)

    def test_two_planes_need_two_bits(self):
        with self.assertRaises(ProfileError):
            PixelFormat(EPD7IN3F.palette, plane_count=2)
        with self.assertRaises(ProfileError):
            PixelFormat(Palette.from_colors([BLACK, WHITE]), plane_count=3)

    def test_two_plane_stride_is_one_bit(self):
        fmt = EPD4IN26.format_for(Mode.GRAY4)
        self.assertEqual(fmt.plane_bits, 1)
        self.assertEqual(fmt.stride(800), 100)


class TestCommands(unittest.TestCase):
    def test_cmd_shorthand(self):
        command = cmd(0x61, 0x03, 0x20, wait_idle=True)
        self.assertEqual(command, Command(0x61, b"\x03\x20", wait_idle=True))

    def test_opcode_range(self):
        with self.assertRaises(ProfileError):
            Command(0x100)

    def test_write_step_needs_one_source(self):
        with self.assertRaises(ProfileError):
            WriteStep(0x10)
        with self.assertRaises(ProfileError):
            WriteStep(0x10, plane=0, fill=0)

    def test_trigger_with_activation(self):
        sequence = RefreshSequence((WriteStep(0x24, plane=0),), 0x22, 0xF7, 0x20)
        self.assertEqual(
            sequence.trigger_commands(),
            (Command(0x22, b"\xF7"), Command(0x20, wait_idle=True)),
        )

    def test_trigger_single_command(self):
        sequence = RefreshSequence([WriteStep(0x10, plane=0)], 0x12, 0x00, settle_ms=1)
        self.assertEqual(sequence.trigger_commands(), (Command(0x12, b"\x00", delay_ms=1, wait_idle=True),))
        self.assertEqual(sequence.write_opcodes, (0x10,))


class TestAddressWindow(unittest.TestCase):
    """Partial refresh register encoding."""

    def test_le16_masks(self):
        self.assertEqual(le16(0x1234, 0x3FF), bytes([0x34, 0x02]))
        self.assertEqual(le16(479, 0x3FF), bytes([0xDF, 0x01]))

    def test_bottom_up_rows(self):
        """Row 0 of the image is RAM row height-1 when Y decrements.

        Expected: window y 479..470 for a 10 row region at y=0
        """
        commands = EPD4IN26.window.region_commands(8, 0, 16, 10, 480)
        self.assertEqual(
            [(c.opcode, c.data) for c in commands],
            [
                (0x44, bytes([0x08, 0x00, 0x17, 0x00])),
                (0x45, bytes([0xDF, 0x01, 0xD6, 0x01])),
                (0x4E, bytes([0x08, 0x00])),
                (0x4F, bytes([0xDF, 0x01])),
            ],
        )

    def test_top_down_rows(self):
        window = AddressWindow(0x44, 0x45, 0x4E, 0x4F)
        commands = window.region_commands(0, 5, 8, 10, 100)
        self.assertEqual(commands[1].data, bytes([0x05, 0x00, 0x0E, 0x00]))
        self.assertEqual(commands[3].data, bytes([0x05, 0x00]))


class TestPanelProfile(unittest.TestCase):
    def test_mappings_are_frozen(self):
        profile = _profile()
        with self.assertRaises(TypeError):
            profile.opcodes["extra"] = 1
        with self.assertRaises(TypeError):
            profile.init_sequences[Mode.FAST] = ()
        self.assertIn(Mode.NORMAL, profile.init_sequences)
        self.assertIsInstance(profile.sleep_sequence, tuple)

    def test_modes_need_init_and_refresh(self):
        profile = _profile(init_sequences={Mode.NORMAL: (), Mode.FAST: ()})
        self.assertEqual(profile.modes, (Mode.NORMAL,))

    def test_default_lut_segment_uses_lut_opcode(self):
        profile = _profile(lut_table=bytes(range(10)))
        self.assertEqual(profile.lut_segments, (LutSegment(0x32, 0, 10),))
        self.assertEqual(profile.lut_commands(), (Command(0x32, bytes(range(10))),))
        self.assertTrue(profile.needs_lut(Mode.GRAY4))
        self.assertFalse(profile.needs_lut(Mode.NORMAL))

    def test_lut_without_destination(self):
        with self.assertRaises(ProfileError):
            _profile(opcodes={}, lut_table=b"\x00")

    def test_lut_segment_bounds(self):
        with self.assertRaises(ProfileError):
            _profile(lut_table=b"\x00" * 4, lut_segments=(LutSegment(0x32, 0, 5),))

    def test_split_lut(self):
        """4.26" gray LUT is split across four registers."""
        commands = EPD4IN26.lut_commands()
        self.assertEqual([c.opcode for c in commands], [0x32, 0x03, 0x04, 0x2C])
        self.assertEqual([len(c.data) for c in commands], [105, 1, 3, 1])
        self.assertEqual(commands[1].data, b"\x17")
        self.assertEqual(commands[3].data, b"\x30")

    def test_invalid_values(self):
        with self.assertRaises(ProfileError):
            _profile(width=0)
        with self.assertRaises(ProfileError):
            _profile(max_chunk_bytes=0)
        with self.assertRaises(ProfileError):
            _profile(busy_level=2)
        with self.assertRaises(ProfileError):
            _profile(supports_partial=True)

    def test_mode_formats(self):
        self.assertEqual(EPD4IN26.plane_count, 1)
        self.assertEqual(EPD4IN26.bits_per_pixel, 1)
        self.assertEqual(EPD4IN26.format_for(Mode.GRAY4).plane_count, 2)
        self.assertEqual(EPD4IN26.palette_for(Mode.GRAY4).color_of(3), BLACK)
        self.assertIs(EPD4IN26.format_for(Mode.PARTIAL), EPD4IN26.pixel_format)

    def test_repr(self):
        self.assertIn("epd4in26", repr(EPD4IN26))
        self.assertIn("800x480", repr(EPD4IN26))


if __name__ == "__main__":
    unittest.main()
