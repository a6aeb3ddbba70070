"""
Repairs raw model output into an outline dict.

Models prepend commentary, wrap JSON in markdown fences, return the wrong number
of slides and sometimes concatenate bullet points into a single string. Everything
here is a pure function over strings and dicts so it can be exercised with canned
responses.
"""
import json
import logging
import re
from typing import Any, Dict, List

from .errors import MalformedOutputError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", flags=re.S | re.I)
_BULLET_SEPARATORS_RE = re.compile(r"[\n•✓√/;]+")
_ENUMERATION_RE = re.compile(r"^\d+\.\s*")

FILLER_TITLE = "Additional Content {n}"


def extract_json_object(text: str) -> Dict[str, Any]:
    """Return the first JSON object embedded in ``text``."""
    if not text or "{" not in text:
        raise MalformedOutputError("No JSON found in model response.")

    fenced = _FENCE_RE.search(text)
    if fenced:
        text = fenced.group(1)

    # raw_decode stops at the end of the first object, so trailing commentary is ignored.
    decoder = json.JSONDecoder(strict=False)
    try:
        parsed, _ = decoder.raw_decode(text, text.index("{"))
    except json.JSONDecodeError as e:
        raise MalformedOutputError(f"Failed to parse extracted JSON from model response: {e}")
    return parsed


def repair_bullet_points(value: Any) -> List[str]:
    if isinstance(value, str):
        parts = (_ENUMERATION_RE.sub("", p.strip()) for p in _BULLET_SEPARATORS_RE.split(value))
        return [p for p in parts if p]
    if not isinstance(value, list):
        return []
    # Lists are trusted; only drop entries that can't be shown as text.
    return [b if isinstance(b, str) else str(b)
            for b in value
            if isinstance(b, (str, int, float)) and not isinstance(b, bool)]


def filler_slide(position: int, topic: str) -> Dict[str, Any]:
    return {
        "slideTitle": FILLER_TITLE.format(n=position),
        "bulletPoints": [
            f"Key point about {topic}",
            "Important information to consider",
            "Relevant details for this topic",
        ],
        "visualHint": " ".join(topic.split()[:2]),
    }


def repair_slide_count(slides: List[Dict[str, Any]], slide_count: int, topic: str) -> List[Dict[str, Any]]:
    if len(slides) == slide_count:
        return slides
    logger.info("Model returned %d slides, requested %d. Adjusting...", len(slides), slide_count)
    repaired = slides[:slide_count]
    while len(repaired) < slide_count:
        repaired.append(filler_slide(len(repaired) + 1, topic))
    return repaired


def normalize_outline(raw_text: str, slide_count: int, topic: str) -> Dict[str, Any]:
    """Extract, parse and repair an outline; the result feeds ``Outline.model_validate``."""
    outline = extract_json_object(raw_text)

    slides = outline.get("slides")
    if not isinstance(slides, list):
        logger.warning("Model response has no slides list (got %s)", type(slides).__name__)
        outline["slides"] = None
        return outline

    slides = [s for s in slides if isinstance(s, dict)]
    slides = repair_slide_count(slides, slide_count, topic)
    for s in slides:
        s["bulletPoints"] = repair_bullet_points(s.get("bulletPoints"))
    outline["slides"] = slides
    return outline
