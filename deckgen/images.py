"""
Best-effort stock photo enrichment via the Unsplash search API.

Nothing in here raises to the caller: a slide either comes back with an ``image``
attached or exactly as it went in.
"""
import asyncio
import base64
import logging
import re
from typing import List, Optional

import httpx

from .config import Settings
from .errors import EnrichmentFailure
from .models import Attribution, Image, Outline, Slide

logger = logging.getLogger(__name__)

UNSPLASH_SEARCH_URL = "https://api.unsplash.com/search/photos"
MAX_QUERY_CHARS = 50

_non_word_re = re.compile(r"[^\w\s]")


def clean_query(hint: str) -> str:
    """Unsplash matches short plain queries best: first comma segment, no punctuation."""
    return _non_word_re.sub("", hint.split(",")[0]).strip()[:MAX_QUERY_CHARS]


def _media_type(resp: httpx.Response, url: str) -> str:
    content_type = resp.headers.get("content-type", "")
    if "image/" in content_type:
        return content_type.split(";")[0].strip()
    if ".png" in url:
        return "image/png"
    if ".webp" in url:
        return "image/webp"
    return "image/jpeg"


def _text_at(obj, key: str) -> Optional[str]:
    value = obj.get(key) if isinstance(obj, dict) else None
    return value if isinstance(value, str) else None


def _attribution(hit: dict) -> Attribution:
    return Attribution(
        photographer=_text_at(hit.get("user"), "name"),
        source_url=_text_at(hit.get("links"), "html"),
    )


async def fetch_image(query: str, client: httpx.AsyncClient, settings: Settings) -> Image:
    if not settings.unsplash_access_key:
        raise EnrichmentFailure("UNSPLASH_ACCESS_KEY not configured")

    cleaned = clean_query(query)
    if not cleaned:
        raise EnrichmentFailure(f"Nothing searchable in hint {query!r}")

    try:
        r = await client.get(
            UNSPLASH_SEARCH_URL,
            params={"query": cleaned, "per_page": 1, "orientation": "landscape", "content_filter": "high"},
            headers={"Authorization": f"Client-ID {settings.unsplash_access_key}"},
            timeout=settings.image_search_timeout,
        )
        r.raise_for_status()
        body = r.json()
        results = body.get("results") if isinstance(body, dict) else None
        if not results or not isinstance(results, list):
            raise EnrichmentFailure(f"No images found for query {cleaned!r}")
        hit = results[0]
        if not isinstance(hit, dict):
            raise EnrichmentFailure(f"Unexpected Unsplash result for {cleaned!r}: {hit!r}")
        image_url = hit["urls"]["regular"]

        img = await client.get(image_url, timeout=settings.image_download_timeout)
        img.raise_for_status()

        encoded = base64.b64encode(img.content).decode("ascii")
        return Image(
            data=f"data:{_media_type(img, image_url)};base64,{encoded}",
            url=image_url,
            attribution=_attribution(hit),
        )
    except httpx.HTTPError as e:
        raise EnrichmentFailure(f"Unsplash request failed for {cleaned!r}: {e}") from e
    # pydantic's ValidationError is a ValueError
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise EnrichmentFailure(f"Unexpected Unsplash response for {cleaned!r}: {e}") from e


async def enrich_slide(slide: Slide, client: httpx.AsyncClient, settings: Settings) -> Slide:
    if not slide.visual_hint:
        return slide
    try:
        image = await fetch_image(slide.visual_hint, client, settings)
    except EnrichmentFailure as e:
        logger.warning("No image for slide %r: %s", slide.slide_title, e)
        return slide
    logger.info("Fetched image for slide %r", slide.slide_title)
    return slide.model_copy(update={"image": image})


async def enrich_outline(outline: Outline, client: httpx.AsyncClient, settings: Settings,
                         delay: Optional[float] = None) -> Outline:
    """Enrich slides one at a time, pausing between requests to stay under Unsplash's rate limit."""
    if not outline.slides:
        return outline
    delay = settings.image_request_delay if delay is None else delay

    logger.info("Fetching images for %d slides...", len(outline.slides))
    enriched: List[Slide] = []
    for i, slide in enumerate(outline.slides):
        enriched.append(await enrich_slide(slide, client, settings))
        if i < len(outline.slides) - 1 and delay > 0:
            await asyncio.sleep(delay)
    return outline.model_copy(update={"slides": enriched})
