"""
Pytest configuration and fixtures for epdpanel tests.

This module provides:
- Hardware module stubs for running tests on non-Pi systems
- A tiny panel profile for packing tests
"""

import sys
from unittest.mock import MagicMock

# Stub hardware-specific modules BEFORE any epdpanel transport is built.
# This allows tests to run on non-Raspberry Pi systems (CI, development machines).
_hardware_modules = [
    "spidev",
    "gpiozero",
    "lgpio",
]

for module_name in _hardware_modules:
    if module_name not in sys.modules:
        sys.modules[module_name] = MagicMock()

import pytest

from epdpanel.modes import Mode
from epdpanel.profile import Palette, PanelProfile, PixelFormat, RefreshSequence, WriteStep

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def _tiny_profile(width=8, height=1, colors=(BLACK, WHITE)):
    """Smallest profile that pack() accepts."""
    return PanelProfile(
        name="tiny",
        width=width,
        height=height,
        pixel_format=PixelFormat(Palette.from_colors(colors)),
        opcodes={"write": 0x24, "refresh": 0x20},
        init_sequences={Mode.NORMAL: ()},
        refresh_sequences={Mode.NORMAL: RefreshSequence((WriteStep(0x24, plane=0),), 0x20)},
        sleep_sequence=(),
    )


@pytest.fixture
def make_profile():
    """Factory for a minimal single-mode profile: make_profile(width=8, height=1, colors=...)."""
    return _tiny_profile

