"""User profiles, follow graph, posts and likes in SQLite.

Follows and likes are stored once, as (user, target) pairs. Follower lists,
like counts and the names shown under a post are always read back from those
relations, so there is no mirrored copy to drift out of sync.
"""
from __future__ import annotations

import json
import sqlite3
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from models.clothing_item import normalize_email, utcnow
from models.socials_post import SocialsPost
from models.user import User, coerce_measurements

PROFILE_FIELDS = {"username", "selfie_url", "bio", "gender", "avatar_url", "last_active"}


def _to_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


class SQLiteSocialStore:
    """Local SQLite-backed store for the social side of the app."""

    def __init__(self, database_path: str | Path = "data/fitpick.db") -> None:
        self.database_path = Path(database_path)
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    email TEXT PRIMARY KEY,
                    username TEXT NOT NULL DEFAULT '',
                    selfie_url TEXT NOT NULL DEFAULT '',
                    bio TEXT NOT NULL DEFAULT '',
                    gender TEXT NOT NULL DEFAULT 'Unspecified',
                    avatar_url TEXT,
                    measurements TEXT NOT NULL DEFAULT '{}',
                    fcm_token TEXT,
                    last_active TEXT
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS follows (
                    follower TEXT NOT NULL,
                    followee TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    PRIMARY KEY (follower, followee)
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS posts (
                    post_id TEXT PRIMARY KEY,
                    author_email TEXT NOT NULL,
                    username TEXT NOT NULL,
                    caption TEXT NOT NULL,
                    image_url TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    tagged_items TEXT NOT NULL DEFAULT '[]'
                );
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS post_likes (
                    post_id TEXT NOT NULL REFERENCES posts (post_id) ON DELETE CASCADE,
                    user_email TEXT NOT NULL,
                    liked_at TEXT NOT NULL,
                    PRIMARY KEY (post_id, user_email)
                );
                """
            )

    # Users

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            email=row["email"],
            username=row["username"],
            selfie_url=row["selfie_url"],
            bio=row["bio"],
            gender=row["gender"],
            avatar_url=row["avatar_url"],
            measurements=json.loads(row["measurements"] or "{}"),
            fcm_token=row["fcm_token"],
            last_active=datetime.fromisoformat(row["last_active"]) if row["last_active"] else None,
        )

    def get_user(self, email: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (normalize_email(email),)
            ).fetchone()
            return self._row_to_user(row) if row else None

    def _require_user(self, email: str) -> User:
        user = self.get_user(email)
        if user is None:
            raise LookupError(f"Unknown user: {email}")
        return user

    def upsert_user(self, email: str, **fields: Any) -> User:
        """Create the user when missing, then merge the given profile fields."""

        key = normalize_email(email)
        with self._connect() as conn:
            conn.execute("INSERT OR IGNORE INTO users (email) VALUES (?)", (key,))
        if fields:
            return self.update_profile(key, **fields)
        return self._require_user(key)

    def update_profile(self, email: str, **fields: Any) -> User:
        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported profile fields: {sorted(unknown)}")
        validated = replace(self._require_user(email), **fields)

        with self._connect() as conn:
            conn.execute(
                """
                UPDATE users
                SET username = ?, selfie_url = ?, bio = ?, gender = ?, avatar_url = ?, last_active = ?
                WHERE email = ?
                """,
                (
                    validated.username,
                    validated.selfie_url or "",
                    validated.bio or "",
                    validated.gender,
                    validated.avatar_url,
                    _to_text(validated.last_active) if validated.last_active else None,
                    validated.email,
                ),
            )
        return validated

    def update_measurements(self, email: str, values: Mapping[str, Any]) -> Dict[str, float]:
        """Merge numeric measurements into the stored map and return the result."""

        current = self._require_user(email)
        merged = {**current.measurements, **coerce_measurements(values)}
        with self._connect() as conn:
            conn.execute(
                "UPDATE users SET measurements = ? WHERE email = ?",
                (json.dumps(merged), current.email),
            )
        return merged

    def get_measurements(self, email: str) -> Dict[str, float]:
        return dict(self._require_user(email).measurements)

    def set_fcm_token(self, email: str, token: str) -> None:
        current = self._require_user(email)
        with self._connect() as conn:
            conn.execute("UPDATE users SET fcm_token = ? WHERE email = ?", (token, current.email))

    def search_users(self, query: str, limit: int = 20) -> List[User]:
        pattern = f"%{(query or '').strip().lower()}%"
        with self._connect() as conn:
            cursor = conn.execute(
                """
                SELECT * FROM users
                WHERE lower(username) LIKE ? OR email LIKE ?
                ORDER BY username, email
                LIMIT ?
                """,
                (pattern, pattern, limit),
            )
            return [self._row_to_user(row) for row in cursor.fetchall()]

    # Follows

    def follow(self, follower: str, followee: str) -> bool:
        """Record that ``follower`` follows ``followee``. Returns False if already following."""

        source = normalize_email(follower)
        target = normalize_email(followee)
        if source == target:
            raise ValueError("Users cannot follow themselves")
        self._require_user(target)
        with self._connect() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO follows (follower, followee, created_at) VALUES (?, ?, ?)",
                (source, target, _to_text(utcnow())),
            )
            return cursor.rowcount > 0

    def unfollow(self, follower: str, followee: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM follows WHERE follower = ? AND followee = ?",
                (normalize_email(follower), normalize_email(followee)),
            )
            return cursor.rowcount > 0

    def is_following(self, follower: str, followee: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM follows WHERE follower = ? AND followee = ?",
                (normalize_email(follower), normalize_email(followee)),
            ).fetchone()
            return row is not None

    def following(self, email: str) -> List[str]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT followee FROM follows WHERE follower = ? ORDER BY created_at, rowid",
                (normalize_email(email),),
            )
            return [row["followee"] for row in cursor.fetchall()]

    def followers(self, email: str) -> List[str]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT follower FROM follows WHERE followee = ? ORDER BY created_at, rowid",
                (normalize_email(email),),
            )
            return [row["follower"] for row in cursor.fetchall()]

    # Posts and likes

    def _likes_for(self, conn: sqlite3.Connection, post_id: str) -> List[sqlite3.Row]:
        return conn.execute(
            """
            SELECT pl.user_email AS email, u.username AS username
            FROM post_likes pl
            LEFT JOIN users u ON u.email = pl.user_email
            WHERE pl.post_id = ?
            ORDER BY pl.liked_at, pl.rowid
            """,
            (post_id,),
        ).fetchall()

    def _row_to_post(self, conn: sqlite3.Connection, row: sqlite3.Row) -> SocialsPost:
        likes = self._likes_for(conn, row["post_id"])
        return SocialsPost(
            post_id=row["post_id"],
            author_email=row["author_email"],
            username=row["username"],
            caption=row["caption"],
            image_url=row["image_url"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            tagged_items=json.loads(row["tagged_items"] or "[]"),
            likes=len(likes),
            liked_by=[like["email"] for like in likes],
            liked_by_names=[like["username"] or like["email"].split("@", 1)[0] for like in likes],
        )

    def create_post(self, post: SocialsPost) -> SocialsPost:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO posts (post_id, author_email, username, caption, image_url, timestamp, tagged_items)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    post.post_id,
                    post.author_email,
                    post.username,
                    post.caption,
                    post.image_url,
                    _to_text(post.timestamp),
                    json.dumps(post.tagged_items),
                ),
            )
        return self._require_post(post.post_id)

    def get_post(self, post_id: str) -> Optional[SocialsPost]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM posts WHERE post_id = ?", (post_id,)).fetchone()
            return self._row_to_post(conn, row) if row else None

    def _require_post(self, post_id: str) -> SocialsPost:
        post = self.get_post(post_id)
        if post is None:
            raise LookupError(f"Unknown post: {post_id}")
        return post

    def list_feed(self, limit: int = 50) -> List[SocialsPost]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM posts ORDER BY timestamp DESC LIMIT ?", (limit,)
            )
            return [self._row_to_post(conn, row) for row in cursor.fetchall()]

    def list_posts_by(self, author_email: str) -> List[SocialsPost]:
        with self._connect() as conn:
            cursor = conn.execute(
                "SELECT * FROM posts WHERE author_email = ? ORDER BY timestamp DESC",
                (normalize_email(author_email),),
            )
            return [self._row_to_post(conn, row) for row in cursor.fetchall()]

    def update_caption(self, post_id: str, author_email: str, caption: str) -> SocialsPost:
        post = self._require_post(post_id)
        if post.author_email != normalize_email(author_email):
            raise PermissionError("Only the author can edit this post")
        with self._connect() as conn:
            conn.execute("UPDATE posts SET caption = ? WHERE post_id = ?", (caption or "", post_id))
        return self._require_post(post_id)

    def delete_post(self, post_id: str, author_email: str) -> SocialsPost:
        """Delete a post and its likes; returns the removed post."""

        post = self._require_post(post_id)
        if post.author_email != normalize_email(author_email):
            raise PermissionError("Only the author can delete this post")
        with self._connect() as conn:
            conn.execute("DELETE FROM post_likes WHERE post_id = ?", (post_id,))
            conn.execute("DELETE FROM posts WHERE post_id = ?", (post_id,))
        return post

    def like(self, post_id: str, user_email: str) -> SocialsPost:
        self._require_post(post_id)
        with self._connect() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO post_likes (post_id, user_email, liked_at) VALUES (?, ?, ?)",
                (post_id, normalize_email(user_email), _to_text(utcnow())),
            )
        return self._require_post(post_id)

    def unlike(self, post_id: str, user_email: str) -> SocialsPost:
        self._require_post(post_id)
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM post_likes WHERE post_id = ? AND user_email = ?",
                (post_id, normalize_email(user_email)),
            )
        return self._require_post(post_id)

    def has_liked(self, post_id: str, user_email: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM post_likes WHERE post_id = ? AND user_email = ?",
                (post_id, normalize_email(user_email)),
            ).fetchone()
            return row is not None


__all__ = ["PROFILE_FIELDS", "SQLiteSocialStore"]
