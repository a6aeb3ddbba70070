from enum import Enum
from typing import Optional


class Layout(str, Enum):
    TITLE_BULLETS = "title-bullets"
    TWO_COLUMN = "two-column"
    QUOTE = "quote"
    SECTION_DIVIDER = "section-divider"
    CHECKLIST = "checklist"
    NUMBERS = "numbers"
    IMAGE_LEFT = "image-left"


LAYOUT_CYCLE = list(Layout)


def select_layout(index: int, requested: Optional[str] = None) -> Layout:
    """Honor a known ``requested`` layout, otherwise cycle through all seven by ``index``.

    Adjacent slides that request the same layout are left alone; only the default
    cycle guarantees variety.
    """
    if isinstance(requested, str) and requested:
        try:
            return Layout(requested)
        except ValueError:
            pass
    return LAYOUT_CYCLE[index % len(LAYOUT_CYCLE)]
