"""
2.9" 128x296 black/white panel (UC8151D controller).

Full refresh only: the "old data" RAM (DTM1) is cleared and the frame goes
to DTM2 with the OTP waveform.
"""

from ..modes import Mode
from ..profile import Palette, PanelProfile, PixelFormat, RefreshSequence, ResetTiming, WriteStep, cmd

WIDTH = 128
HEIGHT = 296

# UC8151 Register Commands
UC8151_PSR = 0x00  # Panel Setting
UC8151_PWR = 0x01  # Power Setting
UC8151_POF = 0x02  # Power OFF
UC8151_PON = 0x04  # Power ON
UC8151_BTST = 0x06  # Booster Soft Start
UC8151_DSLP = 0x07  # Deep Sleep
UC8151_DTM1 = 0x10  # Data Start Transmission 1
UC8151_DRF = 0x12  # Display Refresh
UC8151_DTM2 = 0x13  # Data Start Transmission 2
UC8151_PLL = 0x30  # PLL Control
UC8151_CDI = 0x50  # VCOM and Data Interval Setting
UC8151_TRES = 0x61  # Resolution Setting
UC8151_FLG = 0x71  # Get Status
UC8151_VDCS = 0x82  # VCOM DC Setting

OPCODES = {
    "panel_setting": UC8151_PSR,
    "power_setting": UC8151_PWR,
    "power_off": UC8151_POF,
    "power_on": UC8151_PON,
    "booster": UC8151_BTST,
    "deep_sleep": UC8151_DSLP,
    "write_old": UC8151_DTM1,
    "refresh": UC8151_DRF,
    "write_new": UC8151_DTM2,
    "pll": UC8151_PLL,
    "vcom_interval": UC8151_CDI,
    "resolution": UC8151_TRES,
    "status": UC8151_FLG,
    "vcom_dc": UC8151_VDCS,
}

INIT_NORMAL = (
    cmd(UC8151_PON, wait_idle=True),
    cmd(UC8151_PSR, 0x1F),  # LUT from OTP, B/W
    cmd(UC8151_TRES, WIDTH, HEIGHT >> 8, HEIGHT & 0xFF),
    cmd(UC8151_CDI, 0x97),
)

EPD2IN9D = PanelProfile(
    name="epd2in9d",
    width=WIDTH,
    height=HEIGHT,
    pixel_format=PixelFormat(Palette.from_colors([(0, 0, 0), (255, 255, 255)])),
    opcodes=OPCODES,
    init_sequences={Mode.NORMAL: INIT_NORMAL},
    refresh_sequences={
        Mode.NORMAL: RefreshSequence(
            (WriteStep(UC8151_DTM1, fill=0x00), WriteStep(UC8151_DTM2, plane=0)),
            UC8151_DRF,
            settle_ms=10,
        ),
    },
    sleep_sequence=(
        cmd(UC8151_CDI, 0xF7),
        cmd(UC8151_POF, wait_idle=True),
        cmd(UC8151_DSLP, 0xA5),
    ),
    max_chunk_bytes=4096,
    reset=ResetTiming(pulse_ms=5, settle_ms=20),
    busy_level=0,
)
