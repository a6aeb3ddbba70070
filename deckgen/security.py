import re

MIN_TOPIC_CHARS = 3
MAX_TOPIC_CHARS = 200

MASK = "••••••••"

_unsafe_filename_re = re.compile(r"[^A-Za-z0-9_.\-]")


def mask_api_key(s: str) -> str:
    if not s:
        return s
    if len(s) <= 8:
        return MASK
    return s[:4] + MASK + s[-2:]


def safe_filename(topic: str, suffix: str = ".pptx") -> str:
    name = _unsafe_filename_re.sub("", (topic or "").strip().replace(" ", "_"))
    return (name[:80] or "presentation") + suffix
