import asyncio
import logging
from typing import Dict

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from .config import Settings
from .errors import (
    GenerationError,
    MalformedOutputError,
    ProviderOverloadedError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from .layouts import Layout
from .models import GenerateOptions, Outline
from .parser import normalize_outline
from .security import mask_api_key

logger = logging.getLogger(__name__)

# Gemini answers 503 when overloaded, Anthropic 529.
OVERLOAD_STATUSES = {503, 529}

# =========================
# Prompts
# =========================
SYSTEM_PROMPT = (
    "You are a presentation planning assistant. You turn a topic into a slide outline "
    "and answer with a single JSON object only, no markdown fences, no extra commentary."
)

USER_PROMPT_TMPL = """Create a high-quality PowerPoint outline about '{topic}' with EXACTLY {slide_count} slides.

IMPORTANT: You must create exactly {slide_count} slides, no more, no less.

Style: {style}
Audience level: {audience}
{conclusion}

Return a JSON object with:
- 'title': string
- 'slides': array with exactly {slide_count} slide objects

Each slide object must have:
- 'slideTitle': string
- 'bulletPoints': array of strings (4-6 bullet points per slide). This must be a JSON array of individual strings, like ["Point one", "Point two"]. Do not concatenate points into one string and do not include bullet symbols, checkmarks, numbers or separators in the strings.
- 'layout': one of [{layouts}], varied across slides (do not repeat the same layout back-to-back)
- 'visualHint': 1-2 simple descriptive words for a stock photo search (e.g. "technology", "teamwork", "growth")

Optional per slide (include tables or charts where slides discuss numbers, comparisons, statistics, trends or structured lists):
- 'image': {{ "idea": string }}
- 'table': {{ "headers": string[], "rows": string[][] }}  // 2-6 rows, 2-6 columns
- 'chart': {{ "type": "bar"|"line"|"pie", "labels": string[], "values": number[], "title"?: string }}  // max 6 items

Rules:
- Escape double quotes inside strings with a backslash.
- Make the content engaging, appropriate for the style and audience, and cover the topic in depth.
- Return ONLY JSON. REMEMBER: exactly {slide_count} slides in the slides array."""


def build_prompt(opts: GenerateOptions) -> Dict[str, str]:
    return {
        "system": SYSTEM_PROMPT,
        "user": USER_PROMPT_TMPL.format(
            topic=opts.topic,
            slide_count=opts.slide_count,
            style=opts.presentation_style,
            audience=opts.audience_level,
            conclusion="Include a conclusion slide as one of the slides." if opts.include_conclusion else "",
            layouts=", ".join(f"'{layout.value}'" for layout in Layout),
        ),
    }


# =========================
# Helpers
# =========================
def _raise_for_provider_error(resp: httpx.Response, provider_label: str):
    body = resp.text[:500]
    message = f"{provider_label} HTTP {resp.status_code}"
    if resp.status_code in OVERLOAD_STATUSES:
        raise ProviderOverloadedError(message, upstream=body)
    raise ProviderUnavailableError(message, upstream=body)


# =========================
# Entry points
# =========================
async def request_outline_text(opts: GenerateOptions, settings: Settings, client: httpx.AsyncClient) -> str:
    """One round trip to the configured provider; returns the model's raw text."""
    if not settings.llm_api_key:
        raise ProviderUnavailableError("LLM API key is not configured")

    payload = build_prompt(opts)
    provider = settings.llm_provider
    try:
        if provider == "gemini":
            return await _call_gemini(client, settings, payload)
        elif provider == "openai":  # also any OpenAI-compatible gateway via OPENAI_BASE
            return await _call_openai(client, settings, payload)
        elif provider == "anthropic":
            return await _call_anthropic(client, settings, payload)
    except httpx.TimeoutException as e:
        raise ProviderTimeoutError(f"{provider} request timed out", upstream=str(e)) from e
    except httpx.HTTPError as e:
        raise ProviderUnavailableError(f"{provider} request failed", upstream=str(e)) from e
    except ValueError as e:
        raise MalformedOutputError(f"{provider} returned a non-JSON body", upstream=str(e)) from e
    except (AttributeError, IndexError, KeyError, TypeError) as e:
        raise MalformedOutputError(f"{provider} returned an unexpected body shape", upstream=repr(e)) from e
    raise ProviderUnavailableError(f"Unsupported provider {provider!r}. Use gemini|openai|anthropic.")


async def generate_outline(opts: GenerateOptions, settings: Settings, client: httpx.AsyncClient) -> Outline:
    """Ask the model for an outline, retrying only while it reports being overloaded."""
    retrying = AsyncRetrying(
        stop=stop_after_attempt(settings.llm_max_attempts),
        wait=wait_exponential(multiplier=settings.llm_backoff_seconds, exp_base=2),
        retry=retry_if_exception_type(ProviderOverloadedError),
        sleep=asyncio.sleep,
        before_sleep=lambda rs: logger.warning(
            "LLM overloaded, retrying in %.1fs (attempt %d/%d)",
            rs.next_action.sleep, rs.attempt_number, settings.llm_max_attempts,
        ),
        reraise=True,
    )
    try:
        async for attempt in retrying:
            with attempt:
                raw = await request_outline_text(opts, settings, client)
    except GenerationError as e:
        logger.error("LLM error: %s (%s) key=%s", e, e.upstream, mask_api_key(settings.llm_api_key or ""))
        raise

    logger.debug("LLM raw response: %s", raw)
    try:
        outline = Outline.model_validate(normalize_outline(raw, opts.slide_count, opts.topic))
    except GenerationError as e:
        logger.error("Unusable LLM output: %s", e)
        raise
    return outline


# =========================
# Gemini (native)
# =========================
async def _call_gemini(client: httpx.AsyncClient, settings: Settings, p: Dict[str, str]) -> str:
    url = f"https://generativelanguage.googleapis.com/v1beta/models/{settings.model}:generateContent"
    data = {
        "systemInstruction": {"parts": [{"text": p["system"]}]},
        "contents": [{"role": "user", "parts": [{"text": p["user"]}]}],
        "generationConfig": {
            "temperature": 0.7,
            "response_mime_type": "application/json",
            "maxOutputTokens": 8192,
        },
    }
    r = await client.post(url, params={"key": settings.llm_api_key}, json=data, timeout=settings.llm_timeout)
    if r.status_code >= 400:
        _raise_for_provider_error(r, "Gemini")
    j = r.json()
    parts = ((j.get("candidates") or [{}])[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


# =========================
# OpenAI-compatible
# =========================
async def _call_openai(client: httpx.AsyncClient, settings: Settings, p: Dict[str, str]) -> str:
    base = settings.openai_base
    # accept either full /chat/completions or just /v1
    url = base if base.endswith("/chat/completions") else base.rstrip("/") + "/chat/completions"

    headers = {"Authorization": f"Bearer {settings.llm_api_key}"}
    data = {
        "model": settings.model,
        "temperature": 0.7,
        "response_format": {"type": "json_object"},
        "messages": [
            {"role": "system", "content": p["system"]},
            {"role": "user",   "content": p["user"]},
        ],
    }
    r = await client.post(url, headers=headers, json=data, timeout=settings.llm_timeout)
    if r.status_code >= 400:
        _raise_for_provider_error(r, "OpenAI-compatible")
    j = r.json()
    choices = j.get("choices") or [{}]
    return (choices[0].get("message") or {}).get("content") or ""


# =========================
# Anthropic
# =========================
async def _call_anthropic(client: httpx.AsyncClient, settings: Settings, p: Dict[str, str]) -> str:
    url = "https://api.anthropic.com/v1/messages"
    headers = {
        "x-api-key": settings.llm_api_key,
        "anthropic-version": "2023-06-01",
    }
    data = {
        "model": settings.model,
        "max_tokens": 8192,
        "temperature": 0.7,
        "system": p["system"],
        "messages": [{"role": "user", "content": p["user"]}],
    }
    r = await client.post(url, headers=headers, json=data, timeout=settings.llm_timeout)
    if r.status_code >= 400:
        _raise_for_provider_error(r, "Anthropic")
    j = r.json()
    return "".join([blk.get("text", "") for blk in j.get("content", [])])
