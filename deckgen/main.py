import io
import logging
import os
import time
from datetime import datetime, timezone
from typing import AsyncIterator

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse

from .config import Settings
from .errors import DeckError
from .models import GenerateRequest
from .pipeline import generate
from .security import mask_api_key, safe_filename

PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

app = FastAPI(title="deckgen", version="1.0.0")

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger("deckgen")

_started = time.monotonic()


def get_settings() -> Settings:
    return Settings.from_env()


_boot_settings = get_settings()
if not _boot_settings.llm_api_key:
    logger.error("No LLM API key set (GEMINI_API_KEY or LLM_API_KEY); generation requests will fail.")
logger.info("LLM provider = %s, model = %s, key = %s",
            _boot_settings.llm_provider, _boot_settings.model, mask_api_key(_boot_settings.llm_api_key or ""))


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=60) as client:
        yield client


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, "timestamp": _now()})


@app.middleware("http")
async def time_requests(request: Request, call_next):
    start = time.monotonic()
    response = await call_next(request)
    logger.info("%s %s -> %d in %dms", request.method, request.url.path, response.status_code,
                (time.monotonic() - start) * 1000)
    return response


@app.exception_handler(DeckError)
async def deck_error_handler(request: Request, exc: DeckError):
    if exc.status_code >= 500:
        logger.error("Request failed: %s: %s", type(exc).__name__, exc)
    else:
        logger.info("Rejected request: %s", exc)
    return _error(exc.status_code, exc.public_message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.info("Invalid request body: %s", exc.errors())
    return _error(400, "Invalid request body")


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error")
    return _error(500, "Internal server error")


@app.get("/health")
def health():
    return {"status": "healthy", "timestamp": _now(), "uptime": time.monotonic() - _started}


@app.post("/generate-ppt")
async def generate_ppt(
    body: GenerateRequest,
    settings: Settings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    pptx_bytes = await generate(body, settings, client)

    return StreamingResponse(
        io.BytesIO(pptx_bytes),
        media_type=PPTX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{safe_filename(str(body.topic))}"'},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "5000")))
