import io
import logging

from pptx import Presentation
from pptx.enum.text import PP_ALIGN
from pptx.util import Inches

from .errors import RenderError
from .layouts import select_layout
from .models import Outline, Theme
from .slide_renderer import Region, add_text, blank_layout, render_slide, set_background

logger = logging.getLogger(__name__)

SLIDE_WIDTH_IN = 10
SLIDE_HEIGHT_IN = 5.625

ERROR_TEXT = "Error: No content generated"
ERROR_COLOR = "FF0000"


def new_presentation() -> Presentation:
    try:
        prs = Presentation()
    except Exception as e:
        raise RenderError(f"Could not create presentation: {e}") from e
    prs.slide_width = Inches(SLIDE_WIDTH_IN)
    prs.slide_height = Inches(SLIDE_HEIGHT_IN)
    return prs


def add_title_slide(prs, title: str, topic: str, theme: Theme):
    s = prs.slides.add_slide(blank_layout(prs))
    set_background(s, theme.background)
    add_text(s, title, Region(1, 2, 8, 1.5), size=36, bold=True, color=theme.title, align=PP_ALIGN.CENTER)
    add_text(s, f"Presentation on {topic}", Region(1, 4, 8, 1), size=24, color=theme.title, align=PP_ALIGN.CENTER)
    return s


def add_error_slide(prs):
    s = prs.slides.add_slide(blank_layout(prs))
    set_background(s, "FFFFFF")
    add_text(s, ERROR_TEXT, Region(0.5, 0.5, 9, 1), size=24, bold=True, color=ERROR_COLOR)
    return s


def build_presentation(outline: Outline, theme: Theme, topic: str) -> bytes:
    prs = new_presentation()
    add_title_slide(prs, outline.title or topic, topic, theme)

    if outline.slides is None:
        logger.warning("Outline has no slides; emitting error slide")
        add_error_slide(prs)
    else:
        for idx, slide_data in enumerate(outline.slides):
            render_slide(prs, slide_data, theme, select_layout(idx, slide_data.layout), idx)

    bio = io.BytesIO()
    try:
        prs.save(bio)
    except Exception as e:
        raise RenderError(f"Failed to serialize presentation: {e}") from e
    return bio.getvalue()
