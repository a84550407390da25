"""Pillow helpers for resizing and re-encoding uploaded images."""

from __future__ import annotations

import io
from typing import Tuple

from PIL import Image, UnidentifiedImageError

CLOTHES_QUALITY = 80
POST_QUALITY = 75
SELFIE_QUALITY = 20
AVATAR_QUALITY = 90
GARMENT_QUALITY = 80
LOOK_QUALITY = 80

AVATAR_SIZE = (1024, 1024)
GARMENT_SIZE = (512, 512)


def _open(data: bytes) -> Image.Image:
    if not data:
        raise ValueError("Image data is empty")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError("Image data could not be decoded") from exc
    return image


def _pil_to_bytes(image: Image.Image, fmt: str = "JPEG", quality: int = 90) -> bytes:
    if fmt == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buf = io.BytesIO()
    image.save(buf, format=fmt, quality=quality)
    return buf.getvalue()


def to_jpeg(data: bytes, quality: int = CLOTHES_QUALITY) -> bytes:
    return _pil_to_bytes(_open(data), "JPEG", quality)


def resize_to_fit(data: bytes, size: Tuple[int, int], quality: int = AVATAR_QUALITY) -> bytes:
    """Scale to fit inside ``size`` keeping the aspect ratio, as JPEG."""

    image = _open(data)
    ratio = min(size[0] / image.width, size[1] / image.height)
    target = (max(1, int(image.width * ratio)), max(1, int(image.height * ratio)))
    resized = image.resize(target, Image.LANCZOS)
    return _pil_to_bytes(resized, "JPEG", quality)


def image_size(data: bytes) -> Tuple[int, int]:
    return _open(data).size


__all__ = [
    "AVATAR_QUALITY",
    "AVATAR_SIZE",
    "CLOTHES_QUALITY",
    "GARMENT_QUALITY",
    "GARMENT_SIZE",
    "LOOK_QUALITY",
    "POST_QUALITY",
    "SELFIE_QUALITY",
    "image_size",
    "resize_to_fit",
    "to_jpeg",
]
