"""
Generic e-paper protocol driver.

One ProtocolDriver works for every panel: all model specifics come from the
PanelProfile. The driver sequences reset, mode initialization, plane
transmission, refresh and deep sleep over an injected BusTransport, as an
explicit state machine (see modes.DriverState).

Every public operation holds the driver lock from its first bus
transaction to its last, so calls from several threads cannot interleave
command and data phases. Packing (packer.pack) is pure and should be done
before calling display(); show() does exactly that outside the lock.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Sequence, Tuple, Union

from .config import DEFAULT_BUSY_TIMEOUT, DEFAULT_POLL_INTERVAL, EPaperConfig
from .errors import BusyTimeout, InvalidRegion, InvalidState, UnsupportedMode
from .modes import DriverState, Mode
from .packer import PixelBuffer, as_planes, pack, solid_fill
from .profile import ColorLike, Command, Palette, PanelProfile
from .refresh import RefreshController
from .regions import Region
from .transport import COMMAND, DATA, BusTransport, iter_chunks, open_transport

logger = logging.getLogger(__name__)

RegionLike = Union[Region, Tuple[int, int, int, int]]

WHITE = (255, 255, 255)


class ProtocolDriver:
    """
    State machine driving one panel through a BusTransport.

    Args:
        profile: Panel description.
        transport: Bus capability (SpiGpioTransport, SimulatorTransport, ...).
        busy_timeout: Seconds a busy-wait may last before BusyTimeout.
        poll_interval: Seconds between busy-line polls.
    """

    def __init__(
        self,
        profile: PanelProfile,
        transport: BusTransport,
        busy_timeout: float = DEFAULT_BUSY_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if busy_timeout <= 0:
            raise ValueError("busy_timeout must be positive")
        self.profile = profile
        self._transport = transport
        self._busy_timeout = busy_timeout
        self._poll_interval = poll_interval
        self._refresh = RefreshController(profile)
        self._lock = threading.RLock()
        self._state = DriverState.UNINITIALIZED
        self._mode: Optional[Mode] = None
        self._disposed = False

    @classmethod
    def from_config(cls, profile: PanelProfile, config: EPaperConfig) -> "ProtocolDriver":
        """Open the configured transport and wrap it in a driver."""
        transport = open_transport(config, busy_level=profile.busy_level)
        return cls(profile, transport, busy_timeout=config.busy_timeout, poll_interval=config.poll_interval)

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def mode(self) -> Optional[Mode]:
        """Active mode while READY (kept while ASLEEP for reference)."""
        return self._mode

    @property
    def palette(self) -> Palette:
        """Palette of the active mode (default format before initialize)."""
        return self.profile.palette_for(self._mode or Mode.NORMAL)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def initialize(self, mode: Union[Mode, str] = Mode.NORMAL) -> None:
        """
        Reset the panel and run the init sequence for `mode`.

        Also used to switch modes: there is no incremental transition, the
        panel is always fully re-initialized.

        Raises:
            UnsupportedMode: before any bus traffic, if the profile cannot
                drive the mode.
            BusyTimeout: if the panel never reports idle.

        A failure after the reset pulse leaves the driver UNINITIALIZED.
        """
        mode = Mode.parse(mode)
        with self._lock:
            self._check_alive()
            if self._state not in (DriverState.UNINITIALIZED, DriverState.ASLEEP, DriverState.READY):
                raise InvalidState(f"Cannot initialize while {self._state.name}")
            self._refresh.check(mode)

            logger.info(f"Initializing {self.profile.name} in {mode.name} mode")
            self._state = DriverState.TRANSMITTING
            try:
                reset = self.profile.reset
                self._transport.pulse_reset(reset.pulse_ms, reset.settle_ms)
                self._wait_idle("after reset")
                for command in self.profile.init_sequences[mode]:
                    self._send(command)
                if self.profile.needs_lut(mode):
                    logger.debug(f"Loading LUT ({len(self.profile.lut_table)} bytes)")
                    for command in self.profile.lut_commands():
                        self._send(command)
            except Exception:
                # The controller was reset and is at best partly configured.
                logger.error(f"Initialization of {self.profile.name} failed after reset")
                self._state, self._mode = DriverState.UNINITIALIZED, None
                raise
            self._state = DriverState.READY
            self._mode = mode

    def display(
        self,
        planes: Union[PixelBuffer, Sequence[PixelBuffer]],
        region: Optional[RegionLike] = None,
    ) -> None:
        """
        Transmit packed planes and refresh the panel.

        Args:
            planes: pack() output for the active mode.
            region: Target rectangle; only valid in PARTIAL mode, where it
                defaults to the whole panel.

        Raises:
            InvalidRegion: region outside the panel or planes of the wrong
                size. Raised before any bus traffic.
            UnsupportedMode: region given outside PARTIAL mode.
            BusyTimeout: refresh never completed.
        """
        with self._lock:
            self._check_alive()
            if self._state is not DriverState.READY:
                raise InvalidState(f"display() requires READY, driver is {self._state.name}")
            mode = self._mode
            planes = as_planes(planes)
            target = self._target_region(mode, region)
            self._check_planes(mode, planes, target)
            sequence = self._refresh.lookup(mode)

            try:
                self._state = DriverState.TRANSMITTING
                if mode is Mode.PARTIAL:
                    window = self.profile.window
                    for command in window.region_commands(
                        target.x, target.y, target.width, target.height, self.profile.height
                    ):
                        self._send(command)

                plane_size = len(planes[0])
                for step in sequence.write_steps:
                    if step.plane is not None:
                        data = planes[step.plane].data
                        self._log_plane(step.opcode, data)
                    else:
                        data = bytes([step.fill]) * plane_size
                    self._send(Command(step.opcode, data))

                self._state = DriverState.REFRESHING
                started = time.monotonic()
                for command in sequence.trigger_commands():
                    self._send(command)
                logger.info(f"{mode.name} refresh complete in {time.monotonic() - started:.3f}s")
            finally:
                # Failed or not, the panel stays in the mode it was initialized for.
                self._state = DriverState.READY

    def show(self, image, region: Optional[RegionLike] = None) -> None:
        """Pack `image` for the active mode, then display it."""
        mode = self._mode
        if mode is None:
            raise InvalidState("show() requires initialize() first")
        self.display(pack(image, self.profile, mode), region)

    def clear(self, color: Optional[ColorLike] = None) -> None:
        """
        Fill the panel with one palette color.

        Defaults to white when the palette has it, else to palette index 0.
        """
        mode = self._mode
        if mode is None:
            raise InvalidState("clear() requires initialize() first")
        fmt = self.profile.format_for(mode)
        if color is None:
            color = WHITE if WHITE in fmt.palette else fmt.palette.color_of(0)
        if mode is Mode.PARTIAL:
            region = Region.full(self.profile.width, self.profile.height)
        else:
            region = None
        self.display(solid_fill(fmt, color, self.profile.width, self.profile.height), region)

    def sleep(self) -> None:
        """
        Put the panel into deep sleep.

        The panel ignores commands until initialize() is called again.
        """
        with self._lock:
            self._check_alive()
            if self._state is DriverState.ASLEEP:
                logger.debug("sleep() while already asleep, ignoring")
                return
            if self._state is not DriverState.READY:
                raise InvalidState(f"sleep() requires READY, driver is {self._state.name}")
            logger.info(f"Putting {self.profile.name} to sleep")
            try:
                for command in self.profile.sleep_sequence:
                    self._send(command)
            except Exception:
                self._state = DriverState.READY
                raise
            self._state = DriverState.ASLEEP

    def dispose(self) -> None:
        """Release the transport. Safe to call from any state, more than once."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            self._state = DriverState.UNINITIALIZED
            self._mode = None
            logger.debug(f"Disposing driver for {self.profile.name}")
            self._transport.close()

    def __enter__(self) -> "ProtocolDriver":
        return self

    def __exit__(self, *args) -> bool:
        self.dispose()
        return False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _check_alive(self) -> None:
        if self._disposed:
            raise InvalidState("Driver has been disposed")

    def _target_region(self, mode: Mode, region: Optional[RegionLike]) -> Region:
        profile = self.profile
        if mode is not Mode.PARTIAL:
            if region is not None:
                raise UnsupportedMode(mode, "region updates require PARTIAL mode")
            return Region.full(profile.width, profile.height)
        if region is None:
            return Region.full(profile.width, profile.height)
        return Region.coerce(region).validate(profile.width, profile.height, profile.window.x_align)

    def _check_planes(self, mode: Mode, planes: Tuple[PixelBuffer, ...], region: Region) -> None:
        fmt = self.profile.format_for(mode)
        if len(planes) != fmt.plane_count:
            raise InvalidRegion(f"{mode.name} expects {fmt.plane_count} plane(s), got {len(planes)}")
        expected = fmt.plane_size(region.width, region.height)
        for i, plane in enumerate(planes):
            if len(plane) != expected:
                raise InvalidRegion(
                    f"Plane {i} has {len(plane)} bytes, {region.width}x{region.height} "
                    f"at {fmt.bits_per_pixel} bpp needs {expected}"
                )

    def _send(self, command: Command) -> None:
        """
        One transaction: opcode with select low, then data with select high.

        The select line is set once per logical write; data larger than
        max_chunk_bytes goes out as consecutive bursts.
        """
        transport = self._transport
        transport.set_select_line(COMMAND)
        transport.write_command_byte(command.opcode)
        if command.data:
            transport.set_select_line(DATA)
            for chunk in iter_chunks(command.data, self.profile.max_chunk_bytes):
                transport.write_data_bytes(chunk)
        if command.delay_ms:
            transport.delay_ms(command.delay_ms)
        if command.wait_idle:
            self._wait_idle(f"after 0x{command.opcode:02X}")

    def _wait_idle(self, context: str = "") -> None:
        """
        Poll the busy line until idle.

        Raises:
            BusyTimeout: still busy after busy_timeout seconds.
        """
        busy_level = self.profile.busy_level
        start_time = time.monotonic()
        if self._transport.read_busy_line() != busy_level:
            return
        logger.debug(f"Panel busy {context}, waiting")
        while self._transport.read_busy_line() == busy_level:
            elapsed = time.monotonic() - start_time
            if elapsed > self._busy_timeout:
                logger.error(f"Timeout waiting for panel to become idle after {elapsed:.2f}s {context}")
                raise BusyTimeout(self._busy_timeout, context)
            time.sleep(self._poll_interval)
        elapsed = time.monotonic() - start_time
        if elapsed > 0.01:
            logger.debug(f"Waited {elapsed:.2f}s for panel to become idle")

    def _log_plane(self, opcode: int, data: bytes) -> None:
        """Debug helper: byte statistics of a plane about to be sent."""
        if not logger.isEnabledFor(logging.DEBUG):
            return
        black = data.count(0x00)
        white = data.count(0xFF)
        sample = " ".join(f"{b:02x}" for b in data[:16])
        logger.debug(
            f"0x{opcode:02X} len={len(data)} zero_bytes={black} ff_bytes={white} "
            f"other={len(data) - black - white} first 16: {sample}"
        )
