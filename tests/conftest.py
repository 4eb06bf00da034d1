"""
Pytest fixtures for Lumina tests. Uses a temporary SQLite DB for the ledger
and an in-memory catalog in place of the Audius API.
"""

from __future__ import annotations

import pytest

from lumina.catalog.models import Track, User
from lumina.core.exceptions import CatalogNotFoundError


def _make_track(
    track_id: str,
    artist_id: str,
    *,
    plays: int = 0,
    favorites: int = 0,
    reposts: int = 0,
    followers: int = 0,
    track_count: int = 0,
    verified: bool = False,
    genre: str | None = None,
    mood: str | None = None,
    name: str | None = None,
) -> Track:
    user = User(
        id=artist_id,
        handle=f"handle_{artist_id}",
        name=name or f"Artist {artist_id}",
        follower_count=followers,
        track_count=track_count,
        is_verified=verified,
    )
    return Track(
        id=track_id,
        title=f"Track {track_id}",
        user=user,
        genre=genre,
        mood=mood,
        play_count=plays,
        favorite_count=favorites,
        repost_count=reposts,
    )


class FakeCatalog:
    """
    In-memory CatalogSource. Trending pages are slices of `trending`;
    `trending_errors` maps an offset to the exception that page raises.
    Every call is recorded in `calls`.
    """

    def __init__(self, trending=None, tracks=None, users=None, user_tracks=None, trending_errors=None):
        self.trending = list(trending or [])
        self.tracks = dict(tracks or {})
        self.users = dict(users or {})
        self.user_tracks = dict(user_tracks or {})
        self.trending_errors = dict(trending_errors or {})
        self.calls: list[tuple] = []

    async def get_trending_tracks(self, limit: int = 20, offset: int = 0) -> list[Track]:
        self.calls.append(("get_trending_tracks", limit, offset))
        if offset in self.trending_errors:
            raise self.trending_errors[offset]
        return self.trending[offset : offset + limit]

    async def get_track(self, track_id: str) -> Track:
        self.calls.append(("get_track", track_id))
        if track_id not in self.tracks:
            raise CatalogNotFoundError("Audius API error: 404", status_code=404)
        return self.tracks[track_id]

    async def get_user(self, user_id: str) -> User:
        self.calls.append(("get_user", user_id))
        if user_id not in self.users:
            raise CatalogNotFoundError("Audius API error: 404", status_code=404)
        return self.users[user_id]

    async def get_user_tracks(self, user_id: str, limit: int = 20, offset: int = 0) -> list[Track]:
        self.calls.append(("get_user_tracks", user_id, limit, offset))
        if user_id not in self.users:
            raise CatalogNotFoundError("Audius API error: 404", status_code=404)
        return self.user_tracks.get(user_id, [])[offset : offset + limit]


@pytest.fixture
def make_track():
    """Factory for Track records with a minimal owning artist."""
    return _make_track


@pytest.fixture
def fake_catalog():
    return FakeCatalog()


@pytest.fixture
def ledger_db(tmp_path, monkeypatch):
    """
    Point the ledger at a temporary SQLite DB and init tables.
    Resets engine cache so each test gets a fresh DB. Unset URL vars so we use SQLite.
    """
    monkeypatch.delenv("LUMINA_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("LEDGER_DB_PATH", str(tmp_path / "ledger.db"))

    import lumina.ledger.store as store

    store.reset_engine_for_test()
    store.init_db()
    yield store
    store.reset_engine_for_test()


@pytest.fixture
def client(ledger_db, fake_catalog):
    """FastAPI TestClient with the catalog dependency bound to fake_catalog."""
    from fastapi.testclient import TestClient

    from lumina.api_server.discovery import get_catalog
    from lumina.api_server.server import app

    app.dependency_overrides[get_catalog] = lambda: fake_catalog
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_catalog():
    """Factory for FakeCatalog instances."""
    return FakeCatalog
