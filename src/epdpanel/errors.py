"""
Error taxonomy for the e-paper driver.

All errors are raised synchronously from the operation that detected them.
None are retried automatically.
"""

from __future__ import annotations

from typing import Optional, Tuple


class EPaperError(Exception):
    """Base class for every error raised by epdpanel."""


class ProfileError(EPaperError, ValueError):
    """A panel profile was constructed with inconsistent data."""


class BusyTimeout(EPaperError, TimeoutError):
    """
    The busy line never reported idle within the timeout.

    Indicates a hardware or wiring fault. The driver should be disposed
    and the hardware inspected.
    """

    def __init__(self, timeout: float, context: str = "") -> None:
        self.timeout = timeout
        self.context = context
        message = f"Panel still busy after {timeout:.2f}s"
        if context:
            message += f" ({context})"
        super().__init__(message)


class PaletteMiss(EPaperError, ValueError):
    """A pixel color has no exact entry in the panel palette."""

    def __init__(self, x: int, y: int, color: Tuple[int, ...]) -> None:
        self.x = x
        self.y = y
        self.color = color
        super().__init__(
            f"Pixel ({x}, {y}) has color {color} which is not in the panel palette; "
            "quantize the image against the palette first"
        )


class InvalidRegion(EPaperError, ValueError):
    """A partial-refresh rectangle or frame size does not fit the panel."""


class UnsupportedMode(EPaperError):
    """The requested mode cannot be satisfied by the panel profile."""

    def __init__(self, mode, reason: Optional[str] = None) -> None:
        self.mode = mode
        self.reason = reason
        message = f"Mode {getattr(mode, 'name', mode)} is not supported"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InvalidState(EPaperError, RuntimeError):
    """An operation was called in a driver state that does not allow it."""
