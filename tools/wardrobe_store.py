"""Closet and saved-look storage abstractions with a SQLite implementation."""
from __future__ import annotations

import json
import sqlite3
from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from models.clothing_item import ClothingItem, SavedLook, normalize_email
from models.taxonomy import ClothingCategory, validate_category


def _to_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_text(raw: str) -> datetime:
    return datetime.fromisoformat(raw)


class WardrobeStore:
    """Persistence interface for closet items and saved looks."""

    def create_item(self, item: ClothingItem) -> ClothingItem:
        raise NotImplementedError

    def get_item(self, item_id: str) -> Optional[ClothingItem]:
        raise NotImplementedError

    def list_items_for_user(self, owner_email: str) -> List[ClothingItem]:
        raise NotImplementedError

    def filter_items(self, owner_email: str, category: "str | ClothingCategory | None" = None) -> List[ClothingItem]:
        raise NotImplementedError

    def update_item_size(self, item_id: str, size: str) -> Optional[ClothingItem]:
        raise NotImplementedError

    def delete_item(self, item_id: str) -> bool:
        raise NotImplementedError

    def subcategory_counts(self, owner_email: str) -> Dict[str, int]:
        raise NotImplementedError

    def category_counts(self, owner_email: str) -> Dict[str, int]:
        raise NotImplementedError

    def items_created_since(self, owner_email: str, since: datetime) -> int:
        raise NotImplementedError

    def create_look(self, look: SavedLook) -> SavedLook:
        raise NotImplementedError

    def get_look(self, look_id: str) -> Optional[SavedLook]:
        raise NotImplementedError

    def list_looks(self, owner_email: str) -> List[SavedLook]:
        raise NotImplementedError

    def delete_look(self, look_id: str) -> bool:
        raise NotImplementedError

    def items_used_since(self, owner_email: str, since: datetime) -> int:
        raise NotImplementedError


class SQLiteWardrobeStore(WardrobeStore):
    """Local SQLite-backed store for closet items and generated looks."""

    def __init__(self, database_path: str | Path = "data/fitpick.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS clothes (
                    item_id TEXT PRIMARY KEY,
                    owner_email TEXT NOT NULL,
                    image_url TEXT NOT NULL,
                    category TEXT NOT NULL,
                    subcategory TEXT NOT NULL,
                    size TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    measurements TEXT,
                    is_auto_measured INTEGER NOT NULL DEFAULT 0
                );
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_clothes_owner ON clothes (owner_email, created_at)"
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS generated_looks (
                    look_id TEXT PRIMARY KEY,
                    owner_email TEXT NOT NULL,
                    image_url TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    items_used TEXT NOT NULL
                );
                """
            )

    def create_item(self, item: ClothingItem) -> ClothingItem:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO clothes (
                    item_id, owner_email, image_url, category, subcategory, size,
                    created_at, measurements, is_auto_measured
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.item_id,
                    item.owner_email,
                    item.image_url,
                    item.category.value,
                    item.subcategory,
                    item.size,
                    _to_text(item.created_at),
                    json.dumps(item.measurements) if item.measurements is not None else None,
                    int(item.is_auto_measured),
                ),
            )
        return item

    def _row_to_item(self, row: sqlite3.Row) -> ClothingItem:
        return ClothingItem(
            item_id=row["item_id"],
            owner_email=row["owner_email"],
            image_url=row["image_url"],
            category=row["category"],
            subcategory=row["subcategory"],
            size=row["size"],
            created_at=_from_text(row["created_at"]),
            measurements=json.loads(row["measurements"]) if row["measurements"] else None,
            is_auto_measured=bool(row["is_auto_measured"]),
        )

    def get_item(self, item_id: str) -> Optional[ClothingItem]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM clothes WHERE item_id = ?", (item_id,)).fetchone()
            return self._row_to_item(row) if row else None

    def list_items_for_user(self, owner_email: str) -> List[ClothingItem]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM clothes WHERE owner_email = ? ORDER BY created_at DESC",
                (normalize_email(owner_email),),
            )
            return [self._row_to_item(row) for row in cursor.fetchall()]

    def filter_items(self, owner_email: str, category: "str | ClothingCategory | None" = None) -> List[ClothingItem]:
        items = self.list_items_for_user(owner_email)
        if category is None or str(category).strip().lower() in ("", "all"):
            return items
        category_key = validate_category(category)
        return [item for item in items if item.category is category_key]

    def update_item_size(self, item_id: str, size: str) -> Optional[ClothingItem]:
        current = self.get_item(item_id)
        if not current:
            return None
        validated = replace(current, size=size)
        return self.create_item(validated)

    def delete_item(self, item_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM clothes WHERE item_id = ?", (item_id,))
            return cursor.rowcount > 0

    def subcategory_counts(self, owner_email: str) -> Dict[str, int]:
        return dict(Counter(item.subcategory for item in self.list_items_for_user(owner_email)))

    def category_counts(self, owner_email: str) -> Dict[str, int]:
        return dict(Counter(item.category.value for item in self.list_items_for_user(owner_email)))

    def items_created_since(self, owner_email: str, since: datetime) -> int:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM clothes WHERE owner_email = ? AND created_at >= ?",
                (normalize_email(owner_email), _to_text(since)),
            ).fetchone()
            return int(row[0])

    def create_look(self, look: SavedLook) -> SavedLook:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO generated_looks (
                    look_id, owner_email, image_url, created_at, items_used
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    look.look_id,
                    look.owner_email,
                    look.image_url,
                    _to_text(look.created_at),
                    json.dumps(look.items_used),
                ),
            )
        return look

    def _row_to_look(self, row: sqlite3.Row) -> SavedLook:
        return SavedLook(
            look_id=row["look_id"],
            owner_email=row["owner_email"],
            image_url=row["image_url"],
            created_at=_from_text(row["created_at"]),
            items_used=json.loads(row["items_used"] or "[]"),
        )

    def get_look(self, look_id: str) -> Optional[SavedLook]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM generated_looks WHERE look_id = ?", (look_id,)
            ).fetchone()
            return self._row_to_look(row) if row else None

    def list_looks(self, owner_email: str) -> List[SavedLook]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM generated_looks WHERE owner_email = ? ORDER BY created_at DESC",
                (normalize_email(owner_email),),
            )
            return [self._row_to_look(row) for row in cursor.fetchall()]

    def delete_look(self, look_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM generated_looks WHERE look_id = ?", (look_id,))
            return cursor.rowcount > 0

    def items_used_since(self, owner_email: str, since: datetime) -> int:
        """Distinct closet items worn in looks saved since ``since``."""

        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT items_used FROM generated_looks WHERE owner_email = ? AND created_at >= ?",
                (normalize_email(owner_email), _to_text(since)),
            )
            used = set()
            for row in cursor.fetchall():
                used.update(json.loads(row["items_used"] or "[]"))
            return len(used)


__all__ = ["WardrobeStore", "SQLiteWardrobeStore"]
