from __future__ import annotations

import base64
import io
import json

import httpx
from PIL import Image as PILImage
from pptx import Presentation

GEMINI_HOST = "generativelanguage.googleapis.com"
UNSPLASH_HOST = "api.unsplash.com"


def png_bytes(width: int = 40, height: int = 20, color: str = "red") -> bytes:
    buf = io.BytesIO()
    PILImage.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


def data_url(blob: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(blob).decode('ascii')}"


def outline_text(slide_count: int, title: str = "Deck", **slide_extra) -> str:
    slides = [
        {"slideTitle": f"Slide {i}", "bulletPoints": [f"Point {i}a", f"Point {i}b"], **slide_extra}
        for i in range(1, slide_count + 1)
    ]
    return json.dumps({"title": title, "slides": slides})


def gemini_reply(text: str) -> httpx.Response:
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def open_deck(blob: bytes):
    return Presentation(io.BytesIO(blob))


def slide_texts(slide) -> list[str]:
    return [shape.text_frame.text for shape in slide.shapes if shape.has_text_frame and shape.text_frame.text]
