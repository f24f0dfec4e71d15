"""
Bus transports - the SPI + GPIO capability the driver talks through.

The driver only needs the BusTransport capability set. SpiGpioTransport
drives a Raspberry Pi (spidev + gpiozero); SimulatorTransport records
every transaction for tests and headless development.
"""

from __future__ import annotations

import logging
import time
from typing import Iterator, List, Optional, Protocol, Tuple

from .config import EPaperConfig

logger = logging.getLogger(__name__)

# Data/command select line levels
COMMAND = 0
DATA = 1


class BusTransport(Protocol):
    """Capabilities required by ProtocolDriver."""

    def set_select_line(self, level: int) -> None:
        ...

    def write_command_byte(self, opcode: int) -> None:
        ...

    def write_data_bytes(self, chunk: bytes) -> None:
        ...

    def pulse_reset(self, pulse_ms: int, settle_ms: int) -> None:
        ...

    def read_busy_line(self) -> int:
        ...

    def delay_ms(self, ms: int) -> None:
        ...

    def close(self) -> None:
        ...


def iter_chunks(data: bytes, max_chunk: int) -> Iterator[bytes]:
    """Split data into consecutive chunks of at most max_chunk bytes."""
    if max_chunk <= 0:
        raise ValueError(f"max_chunk must be positive, got {max_chunk}")
    view = memoryview(data)
    for start in range(0, len(data), max_chunk):
        yield bytes(view[start:start + max_chunk])


class SpiGpioTransport:
    """
    Raspberry Pi transport: spidev for the bus, gpiozero for the lines.

    Chip select is handled by the SPI hardware (CE0/CE1 for the device).
    """

    def __init__(self, config: EPaperConfig) -> None:
        import spidev
        import gpiozero

        self._config = config
        self._closed = False
        self._spi = None
        self._rst = None
        self._dc = None
        self._pwr = None
        self._busy = None

        try:
            logger.info(
                f"Setting up GPIO pins: RST={config.rst_pin}, DC={config.dc_pin}, "
                f"BUSY={config.busy_pin}, PWR={config.pwr_pin}"
            )
            self._rst = gpiozero.LED(config.rst_pin)
            self._dc = gpiozero.LED(config.dc_pin)
            self._busy = gpiozero.DigitalInputDevice(config.busy_pin, pull_up=False)
            if config.pwr_pin is not None:
                self._pwr = gpiozero.LED(config.pwr_pin)
                self._pwr.on()

            logger.info(f"Opening SPI device (bus {config.spi_bus}, device {config.spi_device})...")
            self._spi = spidev.SpiDev()
            self._spi.open(config.spi_bus, config.spi_device)
            self._spi.max_speed_hz = config.spi_speed_hz
            self._spi.mode = config.spi_mode
            self._spi.lsbfirst = False
            self._spi.bits_per_word = 8

            self._dc.off()
            self._rst.on()
            logger.info("SPI transport ready")
        except Exception as e:
            logger.error(f"Failed to initialize SPI transport: {e}", exc_info=True)
            self.close()
            raise

    def set_select_line(self, level: int) -> None:
        if level:
            self._dc.on()
        else:
            self._dc.off()

    def write_command_byte(self, opcode: int) -> None:
        self._spi.writebytes([opcode])

    def write_data_bytes(self, chunk: bytes) -> None:
        self._spi.writebytes2(chunk)

    def pulse_reset(self, pulse_ms: int, settle_ms: int) -> None:
        self._rst.off()
        self.delay_ms(pulse_ms)
        self._rst.on()
        self.delay_ms(settle_ms)

    def read_busy_line(self) -> int:
        return int(self._busy.value)

    def delay_ms(self, ms: int) -> None:
        time.sleep(ms / 1000.0)

    def close(self) -> None:
        """Release SPI and GPIO; panel power (if wired) is switched off."""
        if self._closed:
            return
        self._closed = True
        logger.debug("spi end")
        try:
            if self._spi is not None:
                self._spi.close()
        finally:
            # GPIO lines are released even when the SPI device fails to close.
            for line in (self._rst, self._dc, self._pwr):
                if line is not None:
                    line.off()
            if self._pwr is not None:
                logger.debug("Panel power off")
            for device in (self._rst, self._dc, self._pwr, self._busy):
                if device is not None:
                    device.close()


class SimulatorTransport:
    """
    Records bus activity instead of driving hardware.

    Events are ("select", level), ("command", opcode), ("data", bytes),
    ("reset", pulse_ms, settle_ms) and ("delay", ms). The busy line reports
    idle unless `busy_reads` is positive (that many busy reads follow) or
    `stuck_busy` is set.
    """

    def __init__(self, busy_level: int = 0, max_write: Optional[int] = None) -> None:
        self.busy_level = busy_level
        self.max_write = max_write
        self.busy_reads = 0
        self.stuck_busy = False
        self.events: List[tuple] = []
        self.busy_polls = 0
        self.closed = False
        self.close_count = 0
        self._select = COMMAND

    def set_select_line(self, level: int) -> None:
        self._select = level
        self.events.append(("select", level))

    def write_command_byte(self, opcode: int) -> None:
        if self._select != COMMAND:
            raise RuntimeError(f"Command 0x{opcode:02X} written with select line in data state")
        self.events.append(("command", opcode))

    def write_data_bytes(self, chunk: bytes) -> None:
        if self._select != DATA:
            raise RuntimeError("Data written with select line in command state")
        if self.max_write is not None and len(chunk) > self.max_write:
            raise ValueError(f"Transfer of {len(chunk)} bytes exceeds transport maximum {self.max_write}")
        self.events.append(("data", bytes(chunk)))

    def pulse_reset(self, pulse_ms: int, settle_ms: int) -> None:
        self.events.append(("reset", pulse_ms, settle_ms))

    def read_busy_line(self) -> int:
        self.busy_polls += 1
        if self.stuck_busy or self.busy_reads > 0:
            self.busy_reads = max(0, self.busy_reads - 1)
            return self.busy_level
        return 1 - self.busy_level

    def delay_ms(self, ms: int) -> None:
        self.events.append(("delay", ms))

    def close(self) -> None:
        self.closed = True
        self.close_count += 1

    def transactions(self) -> List[Tuple[int, bytes]]:
        """Reassemble (opcode, data) pairs, joining data chunks per command."""
        result: List[Tuple[int, bytes]] = []
        for event in self.events:
            if event[0] == "command":
                result.append((event[1], b""))
            elif event[0] == "data" and result:
                opcode, data = result[-1]
                result[-1] = (opcode, data + event[1])
        return result

    def opcodes(self) -> List[int]:
        return [event[1] for event in self.events if event[0] == "command"]

    def data_chunks(self) -> List[bytes]:
        return [event[1] for event in self.events if event[0] == "data"]

    def clear(self) -> None:
        self.events.clear()


def open_transport(config: EPaperConfig, busy_level: int = 0) -> BusTransport:
    """Create the transport selected by the configuration."""
    if config.simulator:
        logger.info("Using simulator transport (EPAPER_SIMULATOR)")
        return SimulatorTransport(busy_level=busy_level)
    return SpiGpioTransport(config)
