"""Blob storage for closet photos, post images, selfies and generated looks."""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import quote, unquote
from uuid import uuid4

import requests

from fitpick_app.logging_config import get_logger, log_event

LOGGER = get_logger(__name__)


def clothes_path(smart: bool = False) -> str:
    prefix = "smart_" if smart else ""
    return f"clothes/{prefix}{uuid4()}.jpg"


def generated_look_path() -> str:
    return f"generated_looks/generated_{uuid4()}.jpg"


def post_path() -> str:
    return f"posts/{uuid4()}.jpg"


def selfie_path(email: str) -> str:
    return f"{email}/selfie.jpg"


def avatar_path(email: str) -> str:
    return f"{email}/avatar.png"


class MediaStore:
    """Persistence interface for binary media."""

    def put(self, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        raise NotImplementedError

    def get(self, url: str) -> bytes:
        raise NotImplementedError

    def delete(self, url: str) -> bool:
        raise NotImplementedError

    def owns(self, url: str) -> bool:
        raise NotImplementedError


class LocalMediaStore(MediaStore):
    """Filesystem-backed store that serves objects under ``base_url``."""

    def __init__(self, base_dir: str | Path = "data/media", base_url: str = "http://localhost:8080/media") -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts or not relative.parts:
            raise ValueError(f"Invalid media path '{path}'")
        return self.base_dir.joinpath(*relative.parts)

    def _path_from_url(self, url: str) -> str:
        if not self.owns(url):
            raise LookupError(f"URL is not served by this media store: {url}")
        return unquote(url[len(self.base_url) + 1 :])

    def owns(self, url: str) -> bool:
        return bool(url) and url.startswith(self.base_url + "/")

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{quote(path)}"

    def put(self, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        if not data:
            raise ValueError("Cannot store an empty object")
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        log_event(
            LOGGER,
            logging.INFO,
            "media_stored",
            folder=PurePosixPath(path).parts[0],
            size_bytes=len(data),
            content_type=content_type,
        )
        return self.url_for(path)

    def get(self, url: str) -> bytes:
        target = self._resolve(self._path_from_url(url))
        if not target.exists():
            raise LookupError(f"Media object not found: {url}")
        return target.read_bytes()

    def delete(self, url: str) -> bool:
        try:
            target = self._resolve(self._path_from_url(url))
        except (LookupError, ValueError):
            return False
        if not target.exists():
            return False
        target.unlink()
        log_event(LOGGER, logging.INFO, "media_deleted", folder=target.parent.name)
        return True


def fetch_image(url: str, store: Optional[MediaStore] = None, timeout_seconds: float = 10.0) -> bytes:
    """Read an image from the local store, or over HTTP for foreign URLs."""

    if not url:
        raise LookupError("No image URL provided")
    if store is not None and store.owns(url):
        return store.get(url)
    response = requests.get(url, timeout=timeout_seconds)
    response.raise_for_status()
    return response.content


__all__ = [
    "LocalMediaStore",
    "MediaStore",
    "avatar_path",
    "clothes_path",
    "fetch_image",
    "generated_look_path",
    "post_path",
    "selfie_path",
]
