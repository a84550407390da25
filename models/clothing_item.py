"""Closet item, saved look and bulk-upload draft records."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from models.taxonomy import (
    DEFAULT_SIZE,
    DEFAULT_SUBCATEGORY,
    ClothingCategory,
    validate_category,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(value: str) -> str:
    """Emails double as user ids, so they are compared lower-cased."""

    cleaned = (value or "").strip().lower()
    if not cleaned or "@" not in cleaned:
        raise ValueError(f"A valid email is required, got '{value}'")
    return cleaned


@dataclass
class ClothingItem:
    """Represents one catalogued garment in a user's closet."""

    item_id: str
    owner_email: str
    image_url: str
    category: ClothingCategory
    subcategory: str = DEFAULT_SUBCATEGORY
    size: str = DEFAULT_SIZE
    created_at: datetime = field(default_factory=utcnow)
    measurements: Optional[Dict[str, float]] = None
    is_auto_measured: bool = False

    def __post_init__(self) -> None:
        self.owner_email = normalize_email(self.owner_email)
        self.category = validate_category(self.category)
        self.subcategory = (self.subcategory or "").strip() or DEFAULT_SUBCATEGORY
        self.size = (self.size or "").strip() or DEFAULT_SIZE
        if self.measurements is not None:
            self.measurements = {str(k): float(v) for k, v in self.measurements.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "owner_email": self.owner_email,
            "image_url": self.image_url,
            "category": self.category.value,
            "subcategory": self.subcategory,
            "size": self.size,
            "created_at": self.created_at.isoformat(),
            "measurements": self.measurements,
            "is_auto_measured": self.is_auto_measured,
        }


@dataclass
class SavedLook:
    """A try-on render the user chose to keep."""

    look_id: str
    owner_email: str
    image_url: str
    created_at: datetime = field(default_factory=utcnow)
    items_used: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.owner_email = normalize_email(self.owner_email)
        self.items_used = [str(item_id) for item_id in self.items_used]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "look_id": self.look_id,
            "owner_email": self.owner_email,
            "image_url": self.image_url,
            "created_at": self.created_at.isoformat(),
            "items_used": list(self.items_used),
        }


@dataclass
class DraftItem:
    """Client-side staging record for bulk uploads. Never persisted."""

    image: bytes
    draft_id: str = field(default_factory=lambda: uuid4().hex)
    category: ClothingCategory = ClothingCategory.TOP
    subcategory: str = ""
    size: str = ""
    is_validating: bool = False
    is_clothing: bool = False
    validation_message: str = ""

    def __post_init__(self) -> None:
        self.category = validate_category(self.category)


__all__ = ["ClothingItem", "DraftItem", "SavedLook", "normalize_email", "utcnow"]
