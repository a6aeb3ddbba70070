import logging

import httpx

from .config import Settings
from .images import enrich_outline
from .llm_providers import generate_outline
from .models import GenerateRequest
from .pptx_builder import build_presentation
from .themes import resolve_theme
from .validation import validate_request

logger = logging.getLogger(__name__)


async def generate(req: GenerateRequest, settings: Settings, client: httpx.AsyncClient) -> bytes:
    """Topic and preferences in, ``.pptx`` bytes out."""
    opts = validate_request(req)
    logger.info("Processing request with options: %s", opts.model_dump(exclude={"topic"}))

    outline = await generate_outline(opts, settings, client)

    if settings.enrichment_enabled:
        outline = await enrich_outline(outline, client, settings)
    else:
        logger.info("UNSPLASH_ACCESS_KEY not configured, skipping image fetch")

    return build_presentation(outline, resolve_theme(opts.color_theme), opts.topic)
