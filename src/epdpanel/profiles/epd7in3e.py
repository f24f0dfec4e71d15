"""7.3" 800x480 Spectra multi-color panel."""

from ._acep7in3 import make_profile

COLORS = (
    (0x00, 0x00, 0x00),  # black
    (0xFF, 0xFF, 0xFF),  # white
    (0xFF, 0xFF, 0x00),  # yellow
    (0xFF, 0x00, 0x00),  # red
    (0xFF, 0x7F, 0x00),  # orange
    (0x00, 0x00, 0xFF),  # blue
    (0x00, 0xFF, 0x00),  # green
)

EPD7IN3E = make_profile("epd7in3e", COLORS)
