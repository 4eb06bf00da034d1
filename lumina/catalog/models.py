"""
Data models for streaming-catalog records.

Immutable snapshots of Audius users, tracks and playlists, normalized from the
REST payloads (snake_case keys, optional counters). Missing counters default
to 0 so downstream scoring never sees None.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _count(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def _token(value: Any) -> str | None:
    return value if isinstance(value, str) else None


@dataclass(frozen=True)
class User:
    """Catalog user (artist or listener)."""

    id: str
    handle: str
    name: str
    follower_count: int = 0
    followee_count: int = 0
    track_count: int = 0
    is_verified: bool = False
    bio: str | None = None
    profile_picture: dict[str, str] | None = None
    """Size label ("150x150", "480x480") to image URL."""
    cover_photo: dict[str, str] | None = None
    wallet: str = ""

    @classmethod
    def from_api(cls, raw: dict[str, Any]) -> "User":
        """Build from a single /users payload item."""
        return cls(
            id=str(raw["id"]),
            handle=raw.get("handle") or "",
            name=raw.get("name") or "",
            follower_count=_count(raw.get("follower_count")),
            followee_count=_count(raw.get("followee_count")),
            track_count=_count(raw.get("track_count")),
            is_verified=bool(raw.get("is_verified") or False),
            bio=raw.get("bio"),
            profile_picture=raw.get("profile_picture"),
            cover_photo=raw.get("cover_photo"),
            wallet=raw.get("wallet") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "handle": self.handle,
            "name": self.name,
            "bio": self.bio,
            "profile_picture": self.profile_picture,
            "cover_photo": self.cover_photo,
            "follower_count": self.follower_count,
            "followee_count": self.followee_count,
            "track_count": self.track_count,
            "is_verified": self.is_verified,
            "wallet": self.wallet,
        }


@dataclass(frozen=True)
class Track:
    """Catalog track with engagement counters and its owning artist."""

    id: str
    title: str
    user: User
    duration: int = 0
    genre: str | None = None
    mood: str | None = None
    play_count: int = 0
    favorite_count: int = 0
    repost_count: int = 0
    created_at: str = ""
    description: str | None = None
    artwork: dict[str, str] | None = None
    stream: str | None = None

    @classmethod
    def from_api(cls, raw: dict[str, Any], stream_url: str | None = None) -> "Track":
        """Build from a single /tracks payload item."""
        return cls(
            id=str(raw["id"]),
            title=raw.get("title") or "",
            user=User.from_api(raw.get("user") or {}),
            duration=_count(raw.get("duration")),
            genre=_token(raw.get("genre")),
            mood=_token(raw.get("mood")),
            play_count=_count(raw.get("play_count")),
            favorite_count=_count(raw.get("favorite_count")),
            repost_count=_count(raw.get("repost_count")),
            created_at=raw.get("created_at") or "",
            description=raw.get("description"),
            artwork=raw.get("artwork"),
            stream=stream_url,
        )

    @property
    def engagement_raw(self) -> int:
        """Weighted engagement: plays + 4*favorites + 3*reposts."""
        return self.play_count + self.favorite_count * 4 + self.repost_count * 3

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "artwork": self.artwork,
            "stream": self.stream,
            "duration": self.duration,
            "genre": self.genre,
            "mood": self.mood,
            "play_count": self.play_count,
            "favorite_count": self.favorite_count,
            "repost_count": self.repost_count,
            "user": self.user.to_dict(),
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class Playlist:
    id: str
    name: str
    owner: User
    track_count: int = 0
    repost_count: int = 0
    favorite_count: int = 0
    total_play_count: int = 0
    created_at: str = ""
    description: str | None = None
    artwork: dict[str, str] | None = None
    tracks: list[Track] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "artwork": self.artwork,
            "track_count": self.track_count,
            "repost_count": self.repost_count,
            "favorite_count": self.favorite_count,
            "total_play_count": self.total_play_count,
            "created_at": self.created_at,
            "owner": self.owner.to_dict(),
            "tracks": [t.to_dict() for t in self.tracks],
        }
