"""
4.26" 800x480 black/white panel (SSD1677-class controller).

Supports normal, fast, 4-level gray (custom LUT) and partial refresh.
The RAM Y counter runs bottom-up (data entry mode 0x01: X+, Y-).
"""

from dataclasses import replace

from ..modes import Mode
from ..profile import (
    AddressWindow,
    LutSegment,
    Palette,
    PanelProfile,
    PixelFormat,
    RefreshSequence,
    ResetTiming,
    WriteStep,
    cmd,
)

WIDTH = 800
HEIGHT = 480

# Controller Register Commands
DRIVER_OUTPUT = 0x01  # Driver Output Control
VGH = 0x03  # Gate Driving Voltage
VSH_VSL = 0x04  # Source Driving Voltage
SOFT_START = 0x0C  # Booster Soft Start
DEEP_SLEEP = 0x10  # Deep Sleep Mode
DATA_ENTRY = 0x11  # Data Entry Mode
SW_RESET = 0x12  # Software Reset
TEMP_SENSOR = 0x18  # Temperature Sensor Selection
TEMP_WRITE = 0x1A  # Write Temperature Register
ACTIVATE = 0x20  # Master Activation
UPDATE_CTRL2 = 0x22  # Display Update Control 2
RAM_BW = 0x24  # Write BW RAM
RAM_RED = 0x26  # Write RED RAM
VCOM = 0x2C  # VCOM Register
LUT = 0x32  # Write LUT Register
BORDER = 0x3C  # Border Waveform Control
RAM_X = 0x44  # RAM X Address Start/End
RAM_Y = 0x45  # RAM Y Address Start/End
RAM_X_CNT = 0x4E  # RAM X Address Counter
RAM_Y_CNT = 0x4F  # RAM Y Address Counter

OPCODES = {
    "driver_output": DRIVER_OUTPUT,
    "vgh": VGH,
    "vsh_vsl": VSH_VSL,
    "soft_start": SOFT_START,
    "deep_sleep": DEEP_SLEEP,
    "data_entry": DATA_ENTRY,
    "sw_reset": SW_RESET,
    "temp_sensor": TEMP_SENSOR,
    "temp_write": TEMP_WRITE,
    "activate": ACTIVATE,
    "update_control": UPDATE_CTRL2,
    "write_bw": RAM_BW,
    "write_red": RAM_RED,
    "vcom": VCOM,
    "lut": LUT,
    "border": BORDER,
    "window_x": RAM_X,
    "window_y": RAM_Y,
    "cursor_x": RAM_X_CNT,
    "cursor_y": RAM_Y_CNT,
}

# Update Control 2 sequences
SEQ_FULL = 0xF7
SEQ_FAST = 0xC7
SEQ_PARTIAL = 0xFF
SEQ_LOAD_TEMP = 0x91

WINDOW = AddressWindow(
    x_opcode=RAM_X,
    y_opcode=RAM_Y,
    cursor_x_opcode=RAM_X_CNT,
    cursor_y_opcode=RAM_Y_CNT,
    mask=0x3FF,
    rows_bottom_up=True,
    x_align=8,
)

BLACK_WHITE = PixelFormat(Palette.from_colors([(0, 0, 0), (255, 255, 255)]))

# Gray levels follow a cube-root curve: 255 ** (k / 3) for k = 0..3.
GRAY4 = PixelFormat(
    Palette.from_colors([(255, 255, 255), (40, 40, 40), (6, 6, 6), (0, 0, 0)]),
    plane_count=2,
)

# 105 bytes waveform, then VGH, VSH1/VSH2/VSL, VCOM and 2 unused bytes
LUT_4GRAY = bytes([
    0x80, 0x48, 0x4A, 0x22, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
    0x0A, 0x48, 0x68, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
    0x88, 0x48, 0x60, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
    0xA8, 0x48, 0x45, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
    0x07, 0x1E, 0x1C, 0x02, 0x00,
    0x05, 0x01, 0x05, 0x01, 0x02,
    0x08, 0x01, 0x01, 0x04, 0x04,
    0x00, 0x02, 0x00, 0x02, 0x01,
    0x00, 0x00, 0x00, 0x00, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x00,
    0x00, 0x00, 0x00, 0x00, 0x01,
    0x22, 0x22, 0x22, 0x22, 0x22,
    0x17, 0x41, 0xA8, 0x32, 0x30,
    0x00, 0x00,
])

LUT_SEGMENTS = (
    LutSegment(LUT, 0, 105),
    LutSegment(VGH, 105, 106),
    LutSegment(VSH_VSL, 106, 109),
    LutSegment(VCOM, 109, 110),
)


def _full_frame_setup():
    cursor_x, cursor_y = WINDOW.cursor_commands(0, 0)
    return (
        cmd(SW_RESET, wait_idle=True),
        cmd(TEMP_SENSOR, 0x80),  # internal temperature sensor
        cmd(SOFT_START, 0xAE, 0xC7, 0xC3, 0xC0, 0x80),
        cmd(DRIVER_OUTPUT, (HEIGHT - 1) & 0xFF, (HEIGHT - 1) >> 8, 0x02),
        cmd(BORDER, 0x01),
        cmd(DATA_ENTRY, 0x01),  # X+, Y-
        *WINDOW.window_commands(0, HEIGHT - 1, WIDTH - 1, 0),
        cursor_x,
        replace(cursor_y, wait_idle=True),
    )


INIT_NORMAL = _full_frame_setup()

INIT_FAST = INIT_NORMAL + (
    cmd(TEMP_WRITE, 0x5A),  # pretend 90C for the short waveform
    cmd(UPDATE_CTRL2, SEQ_LOAD_TEMP),
    cmd(ACTIVATE, wait_idle=True),
)

INIT_PARTIAL = (
    cmd(TEMP_SENSOR, 0x80),
    cmd(BORDER, 0x80),  # hold border at VCOM
    cmd(DRIVER_OUTPUT, (HEIGHT - 1) & 0xFF, (HEIGHT - 1) >> 8),
    cmd(DATA_ENTRY, 0x01),
)

BOTH_RAMS = (WriteStep(RAM_BW, plane=0), WriteStep(RAM_RED, plane=0))

EPD4IN26 = PanelProfile(
    name="epd4in26",
    width=WIDTH,
    height=HEIGHT,
    pixel_format=BLACK_WHITE,
    mode_formats={Mode.GRAY4: GRAY4},
    opcodes=OPCODES,
    init_sequences={
        Mode.NORMAL: INIT_NORMAL,
        Mode.FAST: INIT_FAST,
        Mode.GRAY4: INIT_NORMAL,
        Mode.PARTIAL: INIT_PARTIAL,
    },
    refresh_sequences={
        Mode.NORMAL: RefreshSequence(BOTH_RAMS, UPDATE_CTRL2, SEQ_FULL, ACTIVATE),
        Mode.FAST: RefreshSequence(BOTH_RAMS, UPDATE_CTRL2, SEQ_FAST, ACTIVATE),
        # high bits to RED RAM first, then low bits to BW RAM
        Mode.GRAY4: RefreshSequence(
            (WriteStep(RAM_RED, plane=0), WriteStep(RAM_BW, plane=1)),
            UPDATE_CTRL2, SEQ_FAST, ACTIVATE,
        ),
        Mode.PARTIAL: RefreshSequence((WriteStep(RAM_BW, plane=0),), UPDATE_CTRL2, SEQ_PARTIAL, ACTIVATE),
    },
    sleep_sequence=(cmd(DEEP_SLEEP, 0x01, delay_ms=100),),
    lut_table=LUT_4GRAY,
    lut_segments=LUT_SEGMENTS,
    max_chunk_bytes=4096,
    supports_partial=True,
    window=WINDOW,
    reset=ResetTiming(pulse_ms=10, settle_ms=10),
    busy_level=1,
)
