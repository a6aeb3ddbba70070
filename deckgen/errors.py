"""Error taxonomy for deck generation.

Every error carries the HTTP status it maps to and a sanitized message that is
safe to show to a client. The underlying detail (upstream bodies, parser
messages) stays in ``str(exc)`` for the logs only.
"""
from typing import Iterable, List, Optional


class DeckError(Exception):
    status_code = 500
    public_message = "Internal server error"


class ValidationError(DeckError):
    """Caller-supplied parameters outside the accepted domains."""

    status_code = 400

    def __init__(self, issues: Iterable[str]):
        self.issues: List[str] = [str(i).strip() for i in issues if str(i).strip()]
        if not self.issues:
            self.issues = ["Invalid request"]
        super().__init__(", ".join(self.issues))

    @property
    def public_message(self) -> str:
        # Validation messages are ours, not upstream text, so they go out verbatim.
        return str(self)


class GenerationError(DeckError):
    """The LLM collaborator failed or produced nothing usable."""

    status_code = 503
    public_message = "Service temporarily unavailable"

    def __init__(self, message: str, upstream: Optional[str] = None):
        self.upstream = upstream
        super().__init__(message)


class MalformedOutputError(GenerationError):
    status_code = 502
    public_message = "Failed to process AI response"


class ProviderOverloadedError(GenerationError):
    """Transient overload; the only generation failure that is retried."""


class ProviderUnavailableError(GenerationError):
    pass


class ProviderTimeoutError(GenerationError):
    status_code = 504
    public_message = "Request timeout - please try again"


class EnrichmentFailure(DeckError):
    """Image search failed. Always recovered inside ``deckgen.images``."""


class RenderError(DeckError):
    """The presentation document itself could not be created or saved."""
