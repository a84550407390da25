"""Thin wrapper around the Gemini SDK for text and image generation.

Agents depend on the small ``generate_text`` / ``generate_image`` surface so
tests can pass in fakes. SDK errors are not caught here: each agent decides
its own fallback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Union

import google.generativeai as genai

from fitpick_app.logging_config import get_logger, log_event
from tools.observability import instrument_call

LOGGER = get_logger(__name__)


@dataclass
class InlineImage:
    """Image bytes sent to the model alongside text."""

    data: bytes
    mime_type: str = "image/jpeg"

    def to_part(self) -> dict:
        return {"mime_type": self.mime_type, "data": self.data}


@dataclass
class GeneratedImage:
    data: Optional[bytes]
    mime_type: Optional[str] = None
    text: Optional[str] = None


PromptPart = Union[str, InlineImage]


def _to_contents(parts: Iterable[PromptPart]) -> List[Any]:
    contents: List[Any] = []
    for part in parts:
        if isinstance(part, InlineImage):
            contents.append(part.to_part())
        else:
            contents.append(str(part))
    return contents


def _candidate_parts(response: Any) -> List[Any]:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return []
    content = getattr(candidates[0], "content", None)
    return list(getattr(content, "parts", None) or [])


def _joined_text(parts: Sequence[Any]) -> Optional[str]:
    texts = [part.text for part in parts if getattr(part, "text", None)]
    joined = "\n".join(texts).strip()
    return joined or None


class GeminiClient:
    """Gemini text + image generation over ``google-generativeai``."""

    def __init__(
        self,
        model: str,
        image_model: str,
        api_key: Optional[str] = None,
        temperature: float = 0.4,
    ) -> None:
        if api_key:
            genai.configure(api_key=api_key)
        self.model_name = model
        self.image_model_name = image_model
        self.temperature = temperature
        self._text_model = genai.GenerativeModel(model_name=model)
        self._image_model = genai.GenerativeModel(model_name=image_model)

    @instrument_call("gemini_generate_text")
    def generate_text(
        self, prompt: str, images: Optional[Sequence[InlineImage]] = None
    ) -> Optional[str]:
        contents = [prompt, *_to_contents(images or [])]
        response = self._text_model.generate_content(
            contents, generation_config={"temperature": self.temperature}
        )
        return _joined_text(_candidate_parts(response))

    @instrument_call("gemini_generate_image")
    def generate_image(self, parts: Sequence[PromptPart]) -> GeneratedImage:
        response = self._image_model.generate_content(
            _to_contents(parts), generation_config={"candidate_count": 1}
        )
        candidate_parts = _candidate_parts(response)
        for part in candidate_parts:
            inline = getattr(part, "inline_data", None)
            if inline is not None and getattr(inline, "data", None):
                return GeneratedImage(data=inline.data, mime_type=inline.mime_type or "image/png")

        text = _joined_text(candidate_parts)
        log_event(LOGGER, logging.WARNING, "gemini_image_missing", has_text=bool(text))
        return GeneratedImage(data=None, text=text)


class GeminiLabelClassifier:
    """Image classifier that asks the text model for ranked labels."""

    def __init__(self, client: GeminiClient, prompt: str) -> None:
        self.client = client
        self.prompt = prompt

    def __call__(self, image: bytes) -> List[str]:
        text = self.client.generate_text(self.prompt, images=[InlineImage(image)])
        if not text:
            return []
        return [label.strip().lower() for label in text.split(",") if label.strip()]


__all__ = [
    "GeminiClient",
    "GeminiLabelClassifier",
    "GeneratedImage",
    "InlineImage",
    "PromptPart",
]
