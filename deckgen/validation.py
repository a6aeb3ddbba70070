from typing import List, get_args

from .errors import ValidationError
from .models import GenerateOptions, GenerateRequest
from .security import MAX_TOPIC_CHARS, MIN_TOPIC_CHARS


def _choices(field: str) -> tuple:
    return get_args(GenerateOptions.model_fields[field].annotation)


def request_issues(req: GenerateRequest) -> List[str]:
    issues = []
    topic = req.topic
    if not isinstance(topic, str) or len(topic.strip()) < MIN_TOPIC_CHARS:
        issues.append(f"Topic must be at least {MIN_TOPIC_CHARS} characters long")
    elif len(topic) > MAX_TOPIC_CHARS:
        issues.append(f"Topic must be less than {MAX_TOPIC_CHARS} characters")

    # Falsy values fall back to defaults, matching what the form sends when a field is left alone.
    if req.slide_count and (isinstance(req.slide_count, bool) or req.slide_count not in _choices("slide_count")):
        issues.append("Slide count must be 3, 5, 7, or 10")
    if req.presentation_style and req.presentation_style not in _choices("presentation_style"):
        issues.append("Invalid presentation style")
    if req.audience_level and req.audience_level not in _choices("audience_level"):
        issues.append("Invalid audience level")
    if req.color_theme and req.color_theme not in _choices("color_theme"):
        issues.append("Invalid color theme")
    return issues


def validate_request(req: GenerateRequest) -> GenerateOptions:
    issues = request_issues(req)
    if issues:
        raise ValidationError(issues)

    values = {
        "slide_count": int(req.slide_count) if req.slide_count else None,
        "presentation_style": req.presentation_style,
        "audience_level": req.audience_level,
        "color_theme": req.color_theme,
    }
    return GenerateOptions(
        topic=req.topic.strip(),
        include_conclusion=req.include_conclusion is not False,
        **{k: v for k, v in values.items() if v},
    )
