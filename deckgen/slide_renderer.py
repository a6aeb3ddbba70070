"""
Draws one content slide onto a python-pptx presentation.

Positions are in inches on a 10 x 5.625 in (16:9) canvas. Optional content (image,
table, chart) is tried through ``first_successful`` so a missing or broken element
just hands its region to the next candidate.
"""
import base64
import io
import logging
from typing import Callable, NamedTuple, Optional

from pptx.chart.data import CategoryChartData
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE, XL_LEGEND_POSITION
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, MSO_AUTO_SIZE, PP_ALIGN
from pptx.util import Inches, Pt

from .layouts import Layout
from .models import Chart, Image, Slide, Table, Theme
from .themes import lighten

logger = logging.getLogger(__name__)


class Region(NamedTuple):
    x: float
    y: float
    w: float
    h: float


TITLE = Region(0.5, 0.5, 9, 0.8)
BODY = Region(0.5, 1.4, 9, 3.8)
BOTTOM_BAND = Region(0.5, 4.0, 9, 1.8)
STRIPE = Region(0, 0, 10, 0.3)

CHART_TYPES = {
    "bar": XL_CHART_TYPE.BAR_CLUSTERED,
    "line": XL_CHART_TYPE.LINE_MARKERS,
    "pie": XL_CHART_TYPE.PIE,
}

DEFAULT_CHECKLIST = ["First task", "Second task"]
DEFAULT_NUMBERS = ["Point one", "Point two"]
DEFAULT_QUOTE = "Insightful quote or key takeaway goes here."


# ---------- drawing primitives ----------

def _rgb(color: str) -> RGBColor:
    return RGBColor.from_string(color)


def add_text(slide, text: str, r: Region, *, size: int, color: str, bold: bool = False,
             italic: bool = False, align=PP_ALIGN.LEFT, line_spacing: Optional[int] = None,
             anchor=MSO_ANCHOR.TOP):
    box = slide.shapes.add_textbox(Inches(r.x), Inches(r.y), Inches(r.w), Inches(r.h))
    tf = box.text_frame
    tf.word_wrap = True
    tf.auto_size = MSO_AUTO_SIZE.TEXT_TO_FIT_SHAPE
    tf.vertical_anchor = anchor
    for i, line in enumerate(text.split("\n")):
        p = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
        p.alignment = align
        if line_spacing:
            p.line_spacing = Pt(line_spacing)
        run = p.add_run()
        run.text = line
        run.font.size = Pt(size)
        run.font.bold = bold
        run.font.italic = italic
        run.font.color.rgb = _rgb(color)
    return box


def add_rect(slide, r: Region, fill: str, line: Optional[str] = None):
    shape = slide.shapes.add_shape(MSO_SHAPE.RECTANGLE, Inches(r.x), Inches(r.y), Inches(r.w), Inches(r.h))
    shape.fill.solid()
    shape.fill.fore_color.rgb = _rgb(fill)
    if line:
        shape.line.color.rgb = _rgb(line)
        shape.line.width = Pt(1)
    else:
        shape.line.fill.background()
    return shape


def set_background(slide, color: str):
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = _rgb(color)


def blank_layout(prs):
    for layout in prs.slide_layouts:
        if (layout.name or "").lower() == "blank":
            return layout
    return prs.slide_layouts[len(prs.slide_layouts) - 1]


def bullet_text(items, prefix: str = "• ") -> str:
    return "\n".join(f"{prefix}{t}" for t in items)


def first_successful(*attempts: Callable[[], bool]) -> bool:
    """Run ``attempts`` in order until one returns True; an exception counts as a miss."""
    for attempt in attempts:
        try:
            if attempt():
                return True
        except Exception as e:  # python-pptx and Pillow raise a wide range of types here
            logger.warning("Optional content failed to render, trying next option: %s", e)
    return False


# ---------- optional content ----------

def decode_data_url(data: str) -> bytes:
    if data.startswith("data:"):
        data = data.split(",", 1)[1]
    return base64.b64decode(data, validate=False)


def _add_cropped_picture(slide, blob: bytes, r: Region):
    pic = slide.shapes.add_picture(io.BytesIO(blob), Inches(r.x), Inches(r.y), Inches(r.w), Inches(r.h))
    img_w, img_h = pic.image.size
    if img_w and img_h:
        img_ratio, box_ratio = img_w / img_h, r.w / r.h
        if img_ratio > box_ratio:
            excess = (1 - box_ratio / img_ratio) / 2
            pic.crop_left = pic.crop_right = excess
        elif img_ratio < box_ratio:
            excess = (1 - img_ratio / box_ratio) / 2
            pic.crop_top = pic.crop_bottom = excess
    return pic


def _credit_photo(slide, image: Image):
    a = image.attribution
    if a is None or not a.photographer:
        return
    credit = f"Photo by {a.photographer} on Unsplash"
    if a.source_url:
        credit += f" ({a.source_url})"
    slide.notes_slide.notes_text_frame.text = credit


def render_image(slide, r: Region, image: Optional[Image], theme: Theme) -> bool:
    if image is None:
        return False
    if image.data:
        try:
            _add_cropped_picture(slide, decode_data_url(image.data), r)
            _credit_photo(slide, image)
            return True
        except Exception as e:  # bad base64, unsupported format (e.g. webp), corrupt bytes
            logger.warning("Image render failed, drawing placeholder: %s", e)

    add_rect(slide, r, lighten(theme.background, 0.6), line=theme.background)
    add_text(slide, image.idea or "Image placeholder", Region(r.x + 0.2, r.y + r.h - 0.5, r.w - 0.4, 0.4),
             size=12, color=theme.background, align=PP_ALIGN.RIGHT)
    return True


def render_table(slide, r: Region, table: Optional[Table]) -> bool:
    if table is None:
        return False
    ncols = len(table.headers)
    grid = [table.headers] + [row + [""] * (ncols - len(row)) for row in table.rows]
    shape = slide.shapes.add_table(len(grid), ncols, Inches(r.x), Inches(r.y), Inches(r.w), Inches(r.h))
    for i, row in enumerate(grid):
        for j, value in enumerate(row):
            cell = shape.table.cell(i, j)
            cell.text = value
            for p in cell.text_frame.paragraphs:
                p.font.size = Pt(12)
                p.font.bold = i == 0
    return True


def render_chart(slide, r: Region, chart: Optional[Chart]) -> bool:
    if chart is None:
        return False
    data = CategoryChartData()
    data.categories = chart.labels
    data.add_series(chart.title or "Series", chart.values)
    graphic = slide.shapes.add_chart(CHART_TYPES[chart.type], Inches(r.x), Inches(r.y), Inches(r.w), Inches(r.h), data)
    c = graphic.chart
    if chart.title:
        c.has_title = True
        c.chart_title.text_frame.text = chart.title
    if chart.type == "pie":
        c.has_legend = True
        c.legend.position = XL_LEGEND_POSITION.RIGHT
        c.legend.include_in_layout = False
    else:
        c.has_legend = False
    return True


# ---------- layouts ----------

def _title(s, text: str, theme: Theme, r: Region = TITLE):
    add_text(s, text, r, size=28, bold=True, color=theme.background)


def _body(s, text: str, theme: Theme, r: Region = BODY):
    if text:
        add_text(s, text, r, size=16, color=theme.text, line_spacing=24)


def _title_bullets(s, data: Slide, bullets, theme: Theme):
    _title(s, data.slide_title, theme)
    _body(s, bullet_text(bullets), theme, Region(0.5, 1.4, 6, 3.8))
    render_image(s, Region(6.75, 1.4, 2.75, 3.5), data.image, theme)
    first_successful(
        lambda: render_chart(s, BOTTOM_BAND, data.chart),
        lambda: render_table(s, BOTTOM_BAND, data.table),
    )


def _two_column(s, data: Slide, bullets, theme: Theme):
    _title(s, data.slide_title, theme)
    mid = (len(bullets) + 1) // 2 or 1
    _body(s, bullet_text(bullets[:mid]), theme, Region(0.5, 1.4, 4.25, 3.8))
    right = Region(5.25, 1.4, 4.25, 3.8)
    drawn = first_successful(
        lambda: render_table(s, right, data.table),
        lambda: render_chart(s, right, data.chart),
    )
    if not drawn:
        _body(s, bullet_text(bullets[mid:]), theme, right)


def _quote(s, data: Slide, bullets, theme: Theme):
    add_text(s, data.slide_title, Region(0.5, 0.5, 9, 0.6), size=24, bold=True, color=theme.text)
    quote = bullets[0] if bullets else DEFAULT_QUOTE
    add_text(s, f'"{quote}"', Region(0.75, 1.2, 8.5, 1.8), size=28, italic=True,
             color=theme.background, align=PP_ALIGN.CENTER)
    if bullets[1:]:
        add_text(s, bullet_text(bullets[1:]), Region(1, 3.2, 8, 2.3), size=14, color=theme.text, line_spacing=20)
    bottom = Region(0.75, 4.0, 8.5, 1.8)
    first_successful(
        lambda: render_table(s, bottom, data.table),
        lambda: render_chart(s, bottom, data.chart),
        lambda: render_image(s, bottom, data.image, theme),
    )


def _section_divider(s, data: Slide, bullets, theme: Theme):
    # Title only; bullets are not shown on dividers.
    add_rect(s, Region(1, 2, 8, 3), theme.accent)
    add_text(s, data.slide_title, Region(1, 2.8, 8, 1), size=36, bold=True, color="FFFFFF", align=PP_ALIGN.CENTER)


def _checklist(s, data: Slide, bullets, theme: Theme):
    _title(s, data.slide_title, theme)
    _body(s, bullet_text(bullets or DEFAULT_CHECKLIST, prefix="✓ "), theme)
    first_successful(
        lambda: render_chart(s, BOTTOM_BAND, data.chart),
        lambda: render_table(s, BOTTOM_BAND, data.table),
    )


def _numbers(s, data: Slide, bullets, theme: Theme):
    _title(s, data.slide_title, theme)
    items = bullets or DEFAULT_NUMBERS
    _body(s, "\n".join(f"{i}. {t}" for i, t in enumerate(items, 1)), theme)
    first_successful(
        lambda: render_chart(s, BOTTOM_BAND, data.chart),
        lambda: render_table(s, BOTTOM_BAND, data.table),
    )


def _image_left(s, data: Slide, bullets, theme: Theme):
    render_image(s, Region(0.5, 1.4, 4, 3.5), data.image, theme)
    _title(s, data.slide_title, theme, Region(4.75, 0.5, 4.75, 0.8))
    _body(s, bullet_text(bullets), theme, Region(4.75, 1.4, 4.75, 3.5))


LAYOUT_RENDERERS = {
    Layout.TITLE_BULLETS: _title_bullets,
    Layout.TWO_COLUMN: _two_column,
    Layout.QUOTE: _quote,
    Layout.SECTION_DIVIDER: _section_divider,
    Layout.CHECKLIST: _checklist,
    Layout.NUMBERS: _numbers,
    Layout.IMAGE_LEFT: _image_left,
}


def background_tint(theme: Theme, index: int) -> str:
    variants = [
        "FFFFFF",
        lighten(theme.accent, 0.85),
        lighten(theme.accent, 0.92),
        lighten(theme.background, 0.95),
        lighten(theme.accent, 0.8),
    ]
    return variants[index % len(variants)]


def render_slide(prs, data: Slide, theme: Theme, layout: Layout, index: int):
    s = prs.slides.add_slide(blank_layout(prs))
    set_background(s, background_tint(theme, index))
    add_rect(s, STRIPE, theme.accent)
    bullets = [b for b in data.bullet_points if b and b.strip()]
    LAYOUT_RENDERERS[layout](s, data, bullets, theme)
    return s
