"""Social feed post record."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from models.clothing_item import normalize_email, utcnow


@dataclass
class SocialsPost:
    """A feed post. Like fields are derived from the like relation on read."""

    post_id: str
    author_email: str
    username: str
    caption: str
    image_url: str
    timestamp: datetime = field(default_factory=utcnow)
    tagged_items: List[str] = field(default_factory=list)
    likes: int = 0
    liked_by: List[str] = field(default_factory=list)
    liked_by_names: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.author_email = normalize_email(self.author_email)
        self.username = (self.username or "").strip() or "Anonymous"
        self.caption = self.caption or ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "post_id": self.post_id,
            "author_email": self.author_email,
            "username": self.username,
            "caption": self.caption,
            "image_url": self.image_url,
            "timestamp": self.timestamp.isoformat(),
            "tagged_items": list(self.tagged_items),
            "likes": self.likes,
            "liked_by": list(self.liked_by),
            "liked_by_names": list(self.liked_by_names),
        }


__all__ = ["SocialsPost"]
