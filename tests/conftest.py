from __future__ import annotations

import pytest

from deckgen.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        llm_provider="gemini",
        llm_api_key="test-key-1234567890",
        llm_backoff_seconds=0,
        image_request_delay=0,
    )
