"""
Refresh sequence selection.

Maps a display mode to the write opcodes and refresh trigger sourced from
the panel profile, and rejects modes the profile cannot drive correctly.
"""

import logging

from .errors import UnsupportedMode
from .modes import Mode
from .profile import PanelProfile, RefreshSequence

logger = logging.getLogger(__name__)


class RefreshController:
    """Pure lookup over one PanelProfile."""

    def __init__(self, profile: PanelProfile) -> None:
        self._profile = profile

    def check(self, mode: Mode) -> None:
        """
        Raise UnsupportedMode unless the profile can drive `mode`.

        Gray4 needs a two-plane pixel format; Partial needs partial support
        and an address window; every mode needs an init and refresh sequence.
        """
        profile = self._profile
        if mode is Mode.GRAY4 and profile.format_for(mode).plane_count != 2:
            raise UnsupportedMode(mode, f"{profile.name} has no two-plane pixel format")
        if mode is Mode.PARTIAL and not profile.supports_partial:
            raise UnsupportedMode(mode, f"{profile.name} does not support partial refresh")
        if mode not in profile.init_sequences:
            raise UnsupportedMode(mode, f"{profile.name} has no init sequence for it")
        if mode not in profile.refresh_sequences:
            raise UnsupportedMode(mode, f"{profile.name} has no refresh sequence for it")

        sequence = profile.refresh_sequences[mode]
        plane_count = profile.format_for(mode).plane_count
        for step in sequence.write_steps:
            if step.plane is not None and not 0 <= step.plane < plane_count:
                raise UnsupportedMode(
                    mode, f"write step {step.opcode:#04x} addresses plane {step.plane} of {plane_count}"
                )

    def lookup(self, mode: Mode) -> RefreshSequence:
        """Return the refresh sequence for `mode` after checking legality."""
        self.check(mode)
        sequence = self._profile.refresh_sequences[mode]
        param = "-" if sequence.refresh_param is None else f"0x{sequence.refresh_param:02X}"
        opcodes = " ".join(f"0x{op:02X}" for op in sequence.write_opcodes)
        logger.debug(
            f"{self._profile.name} {mode.name}: write [{opcodes}], "
            f"refresh 0x{sequence.refresh_opcode:02X} param {param}"
        )
        return sequence

    def supported_modes(self) -> tuple:
        modes = []
        for mode in Mode:
            try:
                self.check(mode)
            except UnsupportedMode:
                continue
            modes.append(mode)
        return tuple(modes)
