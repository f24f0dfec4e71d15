# Panel wiring configuration
#
# This file is part of epdpanel, which started from the Universal-Chess project
# ( https://github.com/adrian-dybwad/Universal-Chess )
#
# Licensed under the GNU General Public License v3.0 or later.

"""
Wiring and timing configuration.

Values come from an optional ini file (section [epaper]) and are then
overridden by EPAPER_* environment variables, so a board can be rewired
without code changes.

Example epaper.ini:

    [epaper]
    profile = epd4in26
    rst_pin = 17
    dc_pin = 25
    busy_pin = 24
    spi_bus = 0
    spi_device = 0
"""

import configparser
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Final, Mapping, Optional

logger = logging.getLogger(__name__)

CONFIG_ENV: Final[str] = "EPAPER_CONFIG_PATH"
SECTION: Final[str] = "epaper"

DEFAULT_BUSY_TIMEOUT: Final[float] = 5.0
DEFAULT_POLL_INTERVAL: Final[float] = 0.01


@dataclass(frozen=True)
class EPaperConfig:
    """GPIO/SPI wiring plus driver timing."""

    rst_pin: int = 17
    dc_pin: int = 25
    busy_pin: int = 24
    pwr_pin: Optional[int] = None
    spi_bus: int = 0
    spi_device: int = 0
    spi_speed_hz: int = 4000000
    spi_mode: int = 0
    busy_timeout: float = DEFAULT_BUSY_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    simulator: bool = False
    profile: str = "epd4in26"


# ini key / env var -> field name
_ENV_KEYS: Final[dict] = {
    "EPAPER_RST_PIN": "rst_pin",
    "EPAPER_DC_PIN": "dc_pin",
    "EPAPER_BUSY_PIN": "busy_pin",
    "EPAPER_PWR_PIN": "pwr_pin",
    "EPAPER_SPI_BUS": "spi_bus",
    "EPAPER_SPI_DEVICE": "spi_device",
    "EPAPER_SPI_SPEED": "spi_speed_hz",
    "EPAPER_SPI_MODE": "spi_mode",
    "EPAPER_BUSY_TIMEOUT": "busy_timeout",
    "EPAPER_POLL_INTERVAL": "poll_interval",
    "EPAPER_SIMULATOR": "simulator",
    "EPAPER_PROFILE": "profile",
}

_INT_FIELDS = {"rst_pin", "dc_pin", "busy_pin", "pwr_pin", "spi_bus", "spi_device", "spi_speed_hz", "spi_mode"}
_FLOAT_FIELDS = {"busy_timeout", "poll_interval"}


def _convert(name: str, raw: str):
    text = raw.strip()
    try:
        if name in _INT_FIELDS:
            if name == "pwr_pin" and text.lower() in ("", "none"):
                return None
            # Leading zeros are decimal (BCM "08"); only 0x/0o/0b prefixes change the base.
            if text.lower().lstrip("+-").startswith(("0x", "0o", "0b")):
                return int(text, 0)
            return int(text)
        if name in _FLOAT_FIELDS:
            value = float(text)
            if value <= 0:
                raise ValueError("must be positive")
            return value
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: {raw!r} ({e})") from None
    if name == "simulator":
        return text.lower() in ("1", "true", "yes", "on")
    return text


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> EPaperConfig:
    """
    Build an EPaperConfig from defaults, an ini file and the environment.

    Args:
        path: ini file to read. Defaults to $EPAPER_CONFIG_PATH when set.
        environ: Environment mapping (defaults to os.environ).

    Returns:
        The merged configuration.
    """
    env = os.environ if environ is None else environ
    config = EPaperConfig()
    names = {f.name for f in fields(EPaperConfig)}

    path = path or env.get(CONFIG_ENV)
    if path:
        parser = configparser.ConfigParser()
        if not parser.read(path):
            logger.warning(f"Config file {path} not found, using defaults")
        elif parser.has_section(SECTION):
            values = {}
            for key, raw in parser[SECTION].items():
                if key not in names:
                    logger.warning(f"Ignoring unknown key '{key}' in [{SECTION}] of {path}")
                    continue
                values[key] = _convert(key, raw)
            config = replace(config, **values)

    overrides = {field: _convert(field, env[var]) for var, field in _ENV_KEYS.items() if var in env}
    if overrides:
        logger.debug(f"Environment overrides: {sorted(overrides)}")
        config = replace(config, **overrides)
    return config
