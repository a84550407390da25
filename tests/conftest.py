"""Shared fixtures: temporary SQLite stores and a local media store."""

from __future__ import annotations

import pytest

from tools.media_store import LocalMediaStore
from tools.social_store import SQLiteSocialStore
from tools.wardrobe_store import SQLiteWardrobeStore


@pytest.fixture()
def wardrobe_store(tmp_path) -> SQLiteWardrobeStore:
    return SQLiteWardrobeStore(tmp_path / "fitpick.db")


@pytest.fixture()
def social_store(tmp_path) -> SQLiteSocialStore:
    return SQLiteSocialStore(tmp_path / "fitpick.db")


@pytest.fixture()
def media_store(tmp_path) -> LocalMediaStore:
    return LocalMediaStore(tmp_path / "media", "http://testserver/media")
