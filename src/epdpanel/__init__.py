"""
epdpanel - protocol driver for SPI e-paper panels.

Typical use:

    from epdpanel import ProtocolDriver, get_profile, load_config

    config = load_config()
    with ProtocolDriver.from_config(get_profile(config.profile), config) as epd:
        epd.initialize("normal")
        epd.show(image)
        epd.sleep()

Applications call setup_logging() once at startup; the library itself only
logs through logging.getLogger(__name__).
"""

from .config import EPaperConfig, load_config
from .driver import ProtocolDriver
from .errors import (
    BusyTimeout,
    EPaperError,
    InvalidRegion,
    InvalidState,
    PaletteMiss,
    ProfileError,
    UnsupportedMode,
)
from .logging import ColoredFormatter, setup_logging
from .modes import DriverState, Mode
from .packer import PixelBuffer, pack, pack_indices, preview, quantize, solid_fill, unpack
from .profile import Palette, PanelProfile, PixelFormat
from .profiles import available_profiles, get_profile
from .refresh import RefreshController
from .regions import Region
from .transport import BusTransport, SimulatorTransport, SpiGpioTransport, iter_chunks, open_transport

__version__ = "1.0.0"

__all__ = [
    "BusTransport",
    "BusyTimeout",
    "ColoredFormatter",
    "DriverState",
    "EPaperConfig",
    "EPaperError",
    "InvalidRegion",
    "InvalidState",
    "Mode",
    "Palette",
    "PaletteMiss",
    "PanelProfile",
    "PixelBuffer",
    "PixelFormat",
    "ProfileError",
    "ProtocolDriver",
    "RefreshController",
    "Region",
    "SimulatorTransport",
    "SpiGpioTransport",
    "UnsupportedMode",
    "available_profiles",
    "get_profile",
    "iter_chunks",
    "load_config",
    "open_transport",
    "pack",
    "pack_indices",
    "preview",
    "quantize",
    "setup_logging",
    "solid_fill",
    "unpack",
]
