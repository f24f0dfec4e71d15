"""
Concrete panel profiles.

    from epdpanel.profiles import get_profile
    profile = get_profile("epd4in26")
"""

from typing import Dict, List

from ..profile import PanelProfile
from .epd2in9d import EPD2IN9D
from .epd4in26 import EPD4IN26
from .epd7in3e import EPD7IN3E
from .epd7in3f import EPD7IN3F

PROFILES: Dict[str, PanelProfile] = {
    profile.name: profile for profile in (EPD2IN9D, EPD4IN26, EPD7IN3E, EPD7IN3F)
}


def get_profile(name: str) -> PanelProfile:
    """Look up a profile by name (case-insensitive)."""
    try:
        return PROFILES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown panel profile {name!r}; available: {', '.join(available_profiles())}"
        ) from None


def available_profiles() -> List[str]:
    return sorted(PROFILES)


__all__ = ["EPD2IN9D", "EPD4IN26", "EPD7IN3E", "EPD7IN3F", "PROFILES", "get_profile", "available_profiles"]
