"""Test doubles shared across test modules."""

from __future__ import annotations

import io
from typing import List, Optional, Sequence, Tuple

import requests
from PIL import Image

from tools.genai_client import GeneratedImage


class FakeResponse:
    """Just enough of ``requests.Response`` for the HTTP adapters."""

    def __init__(self, payload, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")

    def json(self):
        return self._payload


def make_image(size: Tuple[int, int] = (64, 48), color: str = "navy", fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format=fmt)
    return buffer.getvalue()


class FakeGenerator:
    """Stands in for ``GeminiClient`` and records every prompt it receives."""

    def __init__(
        self,
        text: Optional[str] = None,
        image: Optional[GeneratedImage] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.text = text
        self.image = image
        self.error = error
        self.text_calls: List[str] = []
        self.image_calls: List[Sequence] = []

    def generate_text(self, prompt: str, images=None) -> Optional[str]:
        self.text_calls.append(prompt)
        if self.error:
            raise self.error
        return self.text

    def generate_image(self, parts) -> GeneratedImage:
        self.image_calls.append(list(parts))
        if self.error:
            raise self.error
        return self.image or GeneratedImage(data=None)
