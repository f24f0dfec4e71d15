"""Tests for RefreshController mode lookups."""

import unittest

from epdpanel.errors import UnsupportedMode
from epdpanel.modes import Mode
from epdpanel.profile import Palette, PanelProfile, PixelFormat, RefreshSequence, WriteStep
from epdpanel.profiles import EPD2IN9D, EPD4IN26, EPD7IN3E, EPD7IN3F
from epdpanel.refresh import RefreshController


class TestRefreshLookup(unittest.TestCase):
    """Mode -> write opcodes and refresh trigger.

    Expected failure message: UnsupportedMode not raised
    Failure reason: RefreshController.check no longer validates the profile.
    """

    def setUp(self):
        self.controller = RefreshController(EPD4IN26)

    def test_normal_writes_both_rams(self):
        sequence = self.controller.lookup(Mode.NORMAL)
        self.assertEqual(sequence.write_opcodes, (0x24, 0x26))
        self.assertEqual((sequence.refresh_opcode, sequence.refresh_param), (0x22, 0xF7))
        self.assertEqual(sequence.activate_opcode, 0x20)

    def test_fast_parameter(self):
        self.assertEqual(self.controller.lookup(Mode.FAST).refresh_param, 0xC7)

    def test_gray4_plane_order(self):
        sequence = self.controller.lookup(Mode.GRAY4)
        self.assertEqual([(s.opcode, s.plane) for s in sequence.write_steps], [(0x26, 0), (0x24, 1)])

    def test_partial_single_write(self):
        sequence = self.controller.lookup(Mode.PARTIAL)
        self.assertEqual(sequence.write_opcodes, (0x24,))
        self.assertEqual(sequence.refresh_param, 0xFF)

    def test_supported_modes(self):
        self.assertEqual(self.controller.supported_modes(), (Mode.NORMAL, Mode.FAST, Mode.GRAY4, Mode.PARTIAL))
        self.assertEqual(RefreshController(EPD7IN3F).supported_modes(), (Mode.NORMAL,))
        self.assertEqual(RefreshController(EPD2IN9D).supported_modes(), (Mode.NORMAL,))


class TestUnsupportedModes(unittest.TestCase):
    def test_gray4_needs_two_planes(self):
        with self.assertRaises(UnsupportedMode) as ctx:
            RefreshController(EPD7IN3F).check(Mode.GRAY4)
        self.assertIs(ctx.exception.mode, Mode.GRAY4)

    def test_partial_needs_support(self):
        with self.assertRaises(UnsupportedMode):
            RefreshController(EPD2IN9D).lookup(Mode.PARTIAL)

    def test_missing_init_sequence(self):
        with self.assertRaises(UnsupportedMode):
            RefreshController(EPD7IN3E).check(Mode.FAST)

    def test_write_step_plane_out_of_range(self):
        profile = PanelProfile(
            name="broken",
            width=8,
            height=8,
            pixel_format=PixelFormat(Palette.from_colors([(0, 0, 0), (255, 255, 255)])),
            opcodes={},
            init_sequences={Mode.NORMAL: ()},
            refresh_sequences={Mode.NORMAL: RefreshSequence((WriteStep(0x24, plane=1),), 0x20)},
            sleep_sequence=(),
        )
        with self.assertRaises(UnsupportedMode):
            RefreshController(profile).check(Mode.NORMAL)


if __name__ == "__main__":
    unittest.main()
