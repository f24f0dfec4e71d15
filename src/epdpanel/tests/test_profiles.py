"""Tests for the concrete panel profiles and the profile registry."""

import pytest

from epdpanel.modes import Mode
from epdpanel.profiles import EPD2IN9D, EPD4IN26, EPD7IN3E, EPD7IN3F, PROFILES, available_profiles, get_profile
from epdpanel.refresh import RefreshController


class TestRegistry:
    def test_available(self):
        assert available_profiles() == ["epd2in9d", "epd4in26", "epd7in3e", "epd7in3f"]

    def test_lookup_is_case_insensitive(self):
        assert get_profile("EPD4in26 ") is EPD4IN26

    def test_unknown_name_lists_choices(self):
        with pytest.raises(ValueError) as excinfo:
            get_profile("epd9in7")
        assert "epd7in3f" in str(excinfo.value)


@pytest.mark.parametrize("profile", list(PROFILES.values()), ids=list(PROFILES))
class TestProfileTables:
    def test_every_mode_is_drivable(self, profile):
        controller = RefreshController(profile)
        assert profile.modes
        for mode in profile.modes:
            controller.check(mode)

    def test_sleep_ends_with_deep_sleep(self, profile):
        assert profile.sleep_sequence[-1].opcode == profile.opcodes["deep_sleep"]

    def test_white_in_palette(self, profile):
        assert (255, 255, 255) in profile.palette


class TestPanelSpecifics:
    def test_seven_color_panels(self):
        for profile in (EPD7IN3E, EPD7IN3F):
            assert (profile.width, profile.height) == (800, 480)
            assert len(profile.palette) == 7
            assert profile.bits_per_pixel == 4
            assert profile.busy_level == 0

    def test_palette_orders_differ(self):
        assert EPD7IN3F.palette.index_of((0, 255, 0)) == 2
        assert EPD7IN3E.palette.index_of((0, 255, 0)) == 6
        assert EPD7IN3E.palette.index_of((255, 255, 0)) == 2

    def test_4in26(self):
        assert EPD4IN26.busy_level == 1
        assert EPD4IN26.supports_partial
        assert EPD4IN26.window.rows_bottom_up
        assert EPD4IN26.modes == (Mode.NORMAL, Mode.FAST, Mode.GRAY4, Mode.PARTIAL)

    def test_2in9d_resolution_register(self):
        tres = [c for c in EPD2IN9D.init_sequences[Mode.NORMAL] if c.opcode == 0x61][0]
        assert tres.data == bytes([0x80, 0x01, 0x28])
