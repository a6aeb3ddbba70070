from __future__ import annotations

import pytest
from pptx.dml.color import RGBColor
from pptx.enum.chart import XL_CHART_TYPE
from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.util import Inches

from deckgen.errors import RenderError
from deckgen.models import Outline
from deckgen.pptx_builder import ERROR_TEXT, build_presentation
from deckgen.slide_renderer import background_tint, first_successful
from deckgen.themes import resolve_theme

from helpers import data_url, open_deck, png_bytes, slide_texts

GREEN = resolve_theme("green")

TABLE = {"headers": ["Region", "Share"], "rows": [["EU", "40%"], ["US", "35%"]]}
CHART = {"type": "pie", "labels": ["Coal", "Gas", "Solar"], "values": [30, 45, 25], "title": "Energy mix"}


def build(slides, title="Deck", theme=GREEN, topic="Energy"):
    return open_deck(build_presentation(Outline.model_validate({"title": title, "slides": slides}), theme, topic))


def one(layout, **fields):
    deck = build([{"slideTitle": "Heading", "layout": layout, **fields}])
    return deck.slides[1]


def shapes_of(slide, kind):
    return [s for s in slide.shapes if getattr(s, kind, False)]


def pictures(slide):
    return [s for s in slide.shapes if s.shape_type == MSO_SHAPE_TYPE.PICTURE]


def test_title_slide_plus_one_per_content_slide() -> None:
    deck = build([{"slideTitle": f"S{i}", "bulletPoints": ["a"]} for i in range(3)], title="Climate Change")
    assert len(deck.slides) == 4
    first = deck.slides[0]
    assert first.background.fill.fore_color.rgb == RGBColor.from_string(GREEN.background)
    assert slide_texts(first) == ["Climate Change", "Presentation on Energy"]


def test_title_falls_back_to_topic() -> None:
    deck = build([], title=None, topic="Deep Sea Mining")
    assert slide_texts(deck.slides[0])[0] == "Deep Sea Mining"


def test_canvas_is_widescreen() -> None:
    deck = build([])
    assert (deck.slide_width, deck.slide_height) == (Inches(10), Inches(5.625))


def test_missing_slides_emits_single_error_slide() -> None:
    deck = build(None)
    assert len(deck.slides) == 2
    error = deck.slides[1]
    assert slide_texts(error) == [ERROR_TEXT]
    run = [s for s in error.shapes if s.has_text_frame][0].text_frame.paragraphs[0].runs[0]
    assert run.font.color.rgb == RGBColor.from_string("FF0000")


def test_non_object_entries_are_skipped() -> None:
    deck = build(["junk", {"slideTitle": "Real"}, 7])
    assert len(deck.slides) == 2


def test_content_slides_get_stripe_and_rotating_tint() -> None:
    deck = build([{"slideTitle": f"S{i}", "layout": "title-bullets"} for i in range(5)])
    tints = [s.background.fill.fore_color.rgb for s in list(deck.slides)[1:]]
    assert tints == [RGBColor.from_string(background_tint(GREEN, i)) for i in range(5)]
    assert len(set(tints)) == 5
    for slide in list(deck.slides)[1:]:
        stripe = slide.shapes[0]
        assert (stripe.left, stripe.top, stripe.width) == (0, 0, Inches(10))
        assert stripe.fill.fore_color.rgb == RGBColor.from_string(GREEN.accent)


def test_default_layouts_follow_slide_position() -> None:
    deck = build([{"slideTitle": f"S{i}", "bulletPoints": ["first", "second"]} for i in range(7)])
    checklist, numbers = deck.slides[5], deck.slides[6]
    assert "✓ first\n✓ second" in slide_texts(checklist)
    assert "1. first\n2. second" in slide_texts(numbers)


def test_title_bullets_draws_image_and_chart() -> None:
    slide = one("title-bullets", bulletPoints=["a", "b"], image={"data": data_url(png_bytes())}, chart=CHART, table=TABLE)
    assert len(pictures(slide)) == 1
    charts = shapes_of(slide, "has_chart")
    assert len(charts) == 1 and charts[0].chart.chart_type == XL_CHART_TYPE.PIE
    assert shapes_of(slide, "has_table") == []
    assert "• a\n• b" in slide_texts(slide)


def test_title_bullets_uses_table_when_chart_missing() -> None:
    slide = one("title-bullets", table=TABLE)
    tables = shapes_of(slide, "has_table")
    assert len(tables) == 1
    assert tables[0].table.cell(0, 0).text == "Region"
    assert tables[0].table.cell(2, 1).text == "35%"


def test_two_column_prefers_table_over_right_bullets() -> None:
    slide = one("two-column", bulletPoints=["l1", "l2", "r1"], table=TABLE, chart=CHART)
    assert len(shapes_of(slide, "has_table")) == 1
    assert shapes_of(slide, "has_chart") == []
    texts = slide_texts(slide)
    assert "• l1\n• l2" in texts
    assert "• r1" not in texts


def test_two_column_falls_back_to_right_bullets() -> None:
    slide = one("two-column", bulletPoints=["l1", "l2", "r1"])
    assert "• r1" in slide_texts(slide)


def test_quote_layout() -> None:
    slide = one("quote", bulletPoints=["Be curious", "then verify"], image={"idea": "owl"})
    texts = slide_texts(slide)
    assert '"Be curious"' in texts
    assert "• then verify" in texts
    assert "owl" in texts  # no table or chart, so the image placeholder fills the band


def test_section_divider_shows_title_only() -> None:
    slide = one("section-divider", bulletPoints=["hidden"], chart=CHART)
    assert slide_texts(slide) == ["Heading"]
    assert shapes_of(slide, "has_chart") == []


def test_checklist_and_numbers_use_default_items_when_empty() -> None:
    assert "✓ First task\n✓ Second task" in slide_texts(one("checklist"))
    assert "1. Point one\n2. Point two" in slide_texts(one("numbers"))


def test_image_left_places_picture_and_credits_photographer() -> None:
    image = {
        "data": data_url(png_bytes(300, 100)),
        "attribution": {"photographer": "Ada Lens", "sourceUrl": "https://unsplash.com/photos/1"},
    }
    slide = one("image-left", bulletPoints=["x"], image=image)
    pics = pictures(slide)
    assert len(pics) == 1
    assert pics[0].left == Inches(0.5)
    assert pics[0].crop_left > 0  # wide photo cropped to the region
    assert "Ada Lens" in slide.notes_slide.notes_text_frame.text


def test_undecodable_image_draws_placeholder_with_idea() -> None:
    slide = one("image-left", image={"data": "data:image/png;base64,bm90IGFuIGltYWdl", "idea": "wind turbines"})
    assert pictures(slide) == []
    assert "wind turbines" in slide_texts(slide)


def test_image_without_bytes_or_idea_gets_generic_label() -> None:
    slide = one("image-left", image={"url": "https://example.com/x.jpg"})
    assert "Image placeholder" in slide_texts(slide)


def test_no_optional_content_still_renders_every_layout() -> None:
    layouts = ["title-bullets", "two-column", "quote", "section-divider", "checklist", "numbers", "image-left"]
    deck = build([{"slideTitle": name, "layout": name} for name in layouts])
    assert len(deck.slides) == 8


def test_first_successful_stops_at_first_success() -> None:
    calls = []

    def attempt(name, result):
        def run():
            calls.append(name)
            return result
        return run

    assert first_successful(attempt("a", False), attempt("b", True), attempt("c", True)) is True
    assert calls == ["a", "b"]


def test_first_successful_treats_exceptions_as_misses() -> None:
    def boom():
        raise ValueError("broken chart")

    assert first_successful(boom, lambda: True) is True
    assert first_successful(boom, lambda: False) is False
    assert first_successful() is False


def test_presentation_creation_failure_is_render_error(monkeypatch) -> None:
    def broken():
        raise OSError("default template missing")

    monkeypatch.setattr("deckgen.pptx_builder.Presentation", broken)
    with pytest.raises(RenderError):
        build_presentation(Outline(title="T", slides=[]), GREEN, "topic")
