"""
Shared command tables for the 7.3" 800x480 multi-color panels.

Both the 7-color (F) and Spectra (E) variants take one 4 bpp plane through
DTM and share the same power-up sequence; they differ in palette order.
"""

from ..modes import Mode
from ..profile import Palette, PanelProfile, PixelFormat, RefreshSequence, ResetTiming, WriteStep, cmd

WIDTH = 800
HEIGHT = 480

# Controller Register Commands
PSR = 0x00  # Panel Setting Register
PWRR = 0x01  # Power Setting Register
POF = 0x02  # Power Off
POFS = 0x03  # Power Off Sequence Setting
PON = 0x04  # Power On
BTST1 = 0x05  # Booster Soft Start 1
BTST2 = 0x06  # Booster Soft Start 2
DSLP = 0x07  # Deep Sleep
BTST3 = 0x08  # Booster Soft Start 3
DTM = 0x10  # Data Transmission
DRF = 0x12  # Display Refresh
IPC = 0x13  # Inter-communication Protocol Control
PLL = 0x30  # PLL Control
TSE = 0x41  # Temperature Sensor Enable
CDI = 0x50  # VCOM and Data Interval Setting
TCON = 0x60  # Timing Control
TRES = 0x61  # Resolution Setting
VDCS = 0x82  # VCOM DC Setting
T_VDCS = 0x84  # Test VCOM Setting
AGID = 0x86  # Analog Gain Control
CMDH = 0xAA  # Command Header
CCSET = 0xE0  # Clock Configuration
PWS = 0xE3  # Power Saving
TSSET = 0xE6  # Temperature Sensor Setting

OPCODES = {
    "panel_setting": PSR,
    "power_setting": PWRR,
    "power_off": POF,
    "power_off_sequence": POFS,
    "power_on": PON,
    "booster_1": BTST1,
    "booster_2": BTST2,
    "deep_sleep": DSLP,
    "booster_3": BTST3,
    "write_frame": DTM,
    "refresh": DRF,
    "ipc": IPC,
    "pll": PLL,
    "temp_enable": TSE,
    "vcom_interval": CDI,
    "tcon": TCON,
    "resolution": TRES,
    "vcom_dc": VDCS,
    "test_vcom": T_VDCS,
    "analog_gain": AGID,
    "command_header": CMDH,
    "clock_config": CCSET,
    "power_saving": PWS,
    "temp_setting": TSSET,
}

INIT_NORMAL = (
    cmd(CMDH, 0x49, 0x55, 0x20, 0x08, 0x09, 0x18),
    cmd(PWRR, 0x3F, 0x00, 0x32, 0x2A, 0x0E, 0x2A),
    cmd(PSR, 0x5F, 0x69),
    cmd(POFS, 0x00, 0x54, 0x00, 0x44),
    cmd(BTST1, 0x40, 0x1F, 0x1F, 0x2C),
    cmd(BTST2, 0x6F, 0x1F, 0x16, 0x25),
    cmd(BTST3, 0x6F, 0x1F, 0x1F, 0x22),
    cmd(IPC, 0x00, 0x04),
    cmd(PLL, 0x02),
    cmd(TSE, 0x00),
    cmd(CDI, 0x3F),
    cmd(TCON, 0x02, 0x00),
    cmd(TRES, WIDTH >> 8, WIDTH & 0xFF, HEIGHT >> 8, HEIGHT & 0xFF),
    cmd(VDCS, 0x1E),
    cmd(T_VDCS, 0x01),
    cmd(AGID, 0x00),
    cmd(PWS, 0x2F),
    cmd(CCSET, 0x00),
    cmd(TSSET, 0x00),
    cmd(PON, wait_idle=True),
)

SLEEP = (
    cmd(POF, 0x00, wait_idle=True),
    cmd(DSLP, 0xA5),
)


def make_profile(name: str, colors) -> PanelProfile:
    """Build a 7.3" profile for a palette given in controller index order."""
    return PanelProfile(
        name=name,
        width=WIDTH,
        height=HEIGHT,
        pixel_format=PixelFormat(Palette.from_colors(colors)),
        opcodes=OPCODES,
        init_sequences={Mode.NORMAL: INIT_NORMAL},
        refresh_sequences={
            # DRF needs at least 200us before BUSY is valid
            Mode.NORMAL: RefreshSequence((WriteStep(DTM, plane=0),), DRF, 0x00, settle_ms=1),
        },
        sleep_sequence=SLEEP,
        max_chunk_bytes=4096,
        reset=ResetTiming(pulse_ms=10, settle_ms=10),
        busy_level=0,
    )
