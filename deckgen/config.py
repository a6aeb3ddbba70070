import os
from typing import Optional

from pydantic import BaseModel

DEFAULT_MODELS = {
    "gemini": "gemini-1.5-flash",
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-sonnet-latest",
}


class Settings(BaseModel):
    llm_provider: str = "gemini"
    llm_model: str = ""
    llm_api_key: Optional[str] = None
    openai_base: str = "https://api.openai.com/v1"
    llm_timeout: float = 60.0
    llm_max_attempts: int = 3
    llm_backoff_seconds: float = 1.0

    unsplash_access_key: Optional[str] = None
    image_request_delay: float = 0.5
    image_search_timeout: float = 5.0
    image_download_timeout: float = 10.0

    @property
    def model(self) -> str:
        return self.llm_model or DEFAULT_MODELS.get(self.llm_provider, "")

    @property
    def enrichment_enabled(self) -> bool:
        return bool(self.unsplash_access_key)

    @classmethod
    def from_env(cls) -> "Settings":
        provider = os.getenv("LLM_PROVIDER", "gemini").strip().lower()
        return cls(
            llm_provider=provider,
            llm_model=os.getenv("LLM_MODEL", ""),
            llm_api_key=os.getenv("LLM_API_KEY") or os.getenv("GEMINI_API_KEY"),
            openai_base=os.getenv("OPENAI_BASE", "https://api.openai.com/v1"),
            llm_max_attempts=int(os.getenv("LLM_MAX_ATTEMPTS", "3")),
            llm_backoff_seconds=float(os.getenv("LLM_BACKOFF_SECONDS", "1")),
            unsplash_access_key=os.getenv("UNSPLASH_ACCESS_KEY") or None,
            image_request_delay=float(os.getenv("IMAGE_REQUEST_DELAY", "0.5")),
        )
