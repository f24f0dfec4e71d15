"""
Display modes and driver states.

State Diagram:
    UNINITIALIZED --> READY(mode)      initialize(mode)
    ASLEEP        --> READY(mode)      initialize(mode)
    READY(a)      --> READY(b)         initialize(b), full re-initialization
    READY         --> TRANSMITTING --> REFRESHING --> READY    display()
    READY         --> ASLEEP           sleep()
    any           --> UNINITIALIZED    dispose()
"""

from enum import Enum


class Mode(Enum):
    """Refresh mode; selects the init sequence and refresh command."""

    NORMAL = "normal"
    FAST = "fast"
    GRAY4 = "gray4"
    PARTIAL = "partial"

    @classmethod
    def parse(cls, value) -> "Mode":
        """Accept a Mode or its name/value in any case."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for mode in cls:
            if text in (mode.value, mode.name.lower()):
                return mode
        raise ValueError(f"Unknown display mode: {value!r}")


class DriverState(Enum):
    """Lifecycle state of a ProtocolDriver."""

    UNINITIALIZED = 0
    READY = 1
    TRANSMITTING = 2
    REFRESHING = 3
    ASLEEP = 4
