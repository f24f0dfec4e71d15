"""
Rectangles for partial refresh.
"""

from dataclasses import dataclass

from .errors import InvalidRegion


@dataclass(frozen=True)
class Region:
    """
    Rectangle with top-left origin (x, y) and size (width, height) in pixels.
    """

    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        """Exclusive right edge."""
        return self.x + self.width

    @property
    def y2(self) -> int:
        """Exclusive bottom edge."""
        return self.y + self.height

    def to_box(self) -> tuple[int, int, int, int]:
        """Convert to PIL box format (x1, y1, x2, y2)."""
        return (self.x, self.y, self.x2, self.y2)

    def validate(self, panel_width: int, panel_height: int, x_align: int = 1) -> "Region":
        """
        Check the rectangle lies fully inside the panel.

        Raises InvalidRegion rather than clipping: a clipped rectangle would
        no longer match the caller's pixel data.
        """
        if self.width <= 0 or self.height <= 0:
            raise InvalidRegion(f"Region {self} has non-positive size")
        if self.x < 0 or self.y < 0:
            raise InvalidRegion(f"Region {self} starts outside the panel")
        if self.x2 > panel_width or self.y2 > panel_height:
            raise InvalidRegion(
                f"Region {self} extends beyond the {panel_width}x{panel_height} panel"
            )
        if x_align > 1 and self.x % x_align:
            raise InvalidRegion(f"Region x={self.x} must be a multiple of {x_align}")
        return self

    @staticmethod
    def full(width: int, height: int) -> "Region":
        """Create a full-screen region."""
        return Region(0, 0, width, height)

    @classmethod
    def coerce(cls, value) -> "Region":
        """Accept a Region or an (x, y, width, height) tuple."""
        if isinstance(value, cls):
            return value
        try:
            x, y, width, height = value
        except (TypeError, ValueError):
            raise InvalidRegion(f"Expected (x, y, width, height), got {value!r}") from None
        return cls(int(x), int(y), int(width), int(height))
