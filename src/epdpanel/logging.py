# Logging Configuration
#
# This file is part of epdpanel, which started from the Universal-Chess project
# ( https://github.com/adrian-dybwad/Universal-Chess )
#
# Licensed under the GNU General Public License v3.0 or later.
#
# Library modules only call logging.getLogger(__name__); applications call
# setup_logging() once at startup.

import logging
import sys


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors to log levels for console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, *args, stream=None, **kwargs):
        super().__init__(*args, **kwargs)
        stream = stream if stream is not None else sys.stdout
        self.use_colors = hasattr(stream, "isatty") and stream.isatty()

    def format(self, record):
        if self.use_colors:
            original_levelname = record.levelname
            # Pad to 8 characters before adding color codes
            padded_levelname = f"{original_levelname:>8}"
            color = self.COLORS.get(original_levelname, '')
            record.levelname = f"{color}{padded_levelname}{self.RESET}"
            result = super().format(record)
            record.levelname = original_levelname
            return result
        return super().format(record)


LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-8s [%(name)s:%(lineno)d] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_file_path=None, log_level=logging.INFO, stream=None, driver_level=None):
    """Configure logging with colored console output and optional file output.

    Args:
        log_file_path: Path to the log file. If None, file logging is skipped.
        log_level: Logging level to set (default: logging.INFO).
        stream: Console stream (default: sys.stdout).
        driver_level: Level for the "epdpanel" loggers only, e.g. DEBUG to
            see per-plane wire statistics while the application stays at
            INFO. None leaves them at log_level.

    Returns:
        The configured root logger.
    """
    log = logging.getLogger()
    log.setLevel(log_level)
    log.handlers = []

    handler_level = log_level
    package_logger = logging.getLogger("epdpanel")
    if driver_level is None:
        package_logger.setLevel(logging.NOTSET)
    else:
        package_logger.setLevel(driver_level)
        handler_level = min(log_level, driver_level)

    if log_file_path:
        _fh = logging.FileHandler(log_file_path, mode="w")
        _fh.setLevel(handler_level)
        _fh.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        log.addHandler(_fh)

    stream = stream if stream is not None else sys.stdout
    _ch = logging.StreamHandler(stream)
    _ch.setLevel(handler_level)
    _ch.setFormatter(ColoredFormatter(LOG_FORMAT.replace("%(levelname)-8s", "%(levelname)s"), DATE_FORMAT, stream=stream))
    log.addHandler(_ch)

    return log
