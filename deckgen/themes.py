import math
from typing import Dict, Optional, Tuple

from .models import Theme

DEFAULT_THEME = "blue"

THEMES: Dict[str, Theme] = {
    name: Theme(name=name, background=bg, title="FFFFFF", text="1F2937", accent=accent)
    for name, bg, accent in (
        ("blue", "1E3A8A", "3B82F6"),
        ("green", "166534", "22C55E"),
        ("purple", "7C3AED", "A855F7"),
        ("red", "DC2626", "EF4444"),
        ("orange", "EA580C", "F97316"),
        ("teal", "0F766E", "14B8A6"),
        ("gray", "4B5563", "6B7280"),
    )
}


def resolve_theme(name: Optional[str] = None) -> Theme:
    return THEMES.get((name or "").strip().lower(), THEMES[DEFAULT_THEME])


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    value = int(color.lstrip("#"), 16)
    return (value >> 16) & 255, (value >> 8) & 255, value & 255


def _clamp(v: float) -> int:
    return max(0, min(255, math.floor(v + 0.5)))


def lighten(color: str, fraction: float) -> str:
    """Blend ``color`` toward white by ``fraction`` (0 = unchanged, 1 = white)."""
    return "".join(
        f"{_clamp(c + (255 - c) * fraction):02X}" for c in hex_to_rgb(color)
    )
