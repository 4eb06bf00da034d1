"""
Reward ledger models: action kinds, point table, and activity records.

A RewardActivity is one immutable, append-only entry in a wallet's ledger.
Each action kind uses a different subset of the optional fields:
FOLLOW_ARTIST (artist_id, artist_follower_count), BACK_ARTIST (artist_id,
note_length), LIKE_TRACK / COMMENT / STREAM_TRACK (track_id, artist_id).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class RewardAction(str, Enum):
    CREATE_PROFILE = "CREATE_PROFILE"
    FOLLOW_ARTIST = "FOLLOW_ARTIST"
    LIKE_TRACK = "LIKE_TRACK"
    COMMENT = "COMMENT"
    BACK_ARTIST = "BACK_ARTIST"
    STREAM_TRACK = "STREAM_TRACK"
    DAILY_LOGIN = "DAILY_LOGIN"
    REFER_FRIEND = "REFER_FRIEND"
    WEEKLY_TOP_LISTENER = "WEEKLY_TOP_LISTENER"


REWARD_POINTS: dict[RewardAction, int] = {
    RewardAction.CREATE_PROFILE: 100,
    RewardAction.FOLLOW_ARTIST: 10,
    RewardAction.LIKE_TRACK: 5,
    RewardAction.COMMENT: 15,
    RewardAction.BACK_ARTIST: 20,
    RewardAction.STREAM_TRACK: 2,
    RewardAction.DAILY_LOGIN: 20,
    RewardAction.REFER_FRIEND: 500,
    RewardAction.WEEKLY_TOP_LISTENER: 1000,
}

# Metadata keys accepted from web clients (camelCase) mapped to field names
_FIELD_ALIASES = {
    "trackId": "track_id",
    "artistId": "artist_id",
    "artistFollowerCount": "artist_follower_count",
    "noteLength": "note_length",
}
_TYPED_FIELDS = ("track_id", "artist_id", "artist_follower_count", "note_length")
_RESERVED_KEYS = {"action", "points", "timestamp"}


def finite_number(value: Any) -> float | None:
    """Return value as float when it is a finite int/float (bool excluded), else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def normalize_metadata(metadata: dict[str, Any] | None) -> dict[str, Any]:
    """Map camelCase aliases to snake_case field names; drop reserved keys."""
    out: dict[str, Any] = {}
    for key, value in (metadata or {}).items():
        if key in _RESERVED_KEYS:
            continue
        out[_FIELD_ALIASES.get(key, key)] = value
    return out


@dataclass(frozen=True)
class RewardActivity:
    """One reward-earning action recorded for a wallet."""

    action: str
    points: int
    timestamp: str
    """ISO 8601 UTC timestamp; first 10 characters are the calendar day."""
    track_id: str | None = None
    artist_id: str | None = None
    artist_follower_count: float | None = None
    """Artist's follower count at the time of a follow."""
    note_length: float | None = None
    """Length of the thesis note written when backing an artist."""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "RewardActivity | None":
        """
        Build from a stored or client-supplied dict.
        Returns None when action, points or timestamp are missing or mistyped.
        """
        if not isinstance(raw, dict):
            return None
        action = raw.get("action")
        points = raw.get("points")
        timestamp = raw.get("timestamp")
        if not isinstance(action, str) or finite_number(points) is None or not isinstance(timestamp, str):
            return None
        fields = normalize_metadata(raw)
        return cls(
            action=action,
            points=int(points),
            timestamp=timestamp,
            track_id=_optional_str(fields.get("track_id")),
            artist_id=_optional_str(fields.get("artist_id")),
            artist_follower_count=finite_number(fields.get("artist_follower_count")),
            note_length=finite_number(fields.get("note_length")),
            extra={k: v for k, v in fields.items() if k not in _TYPED_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "action": self.action,
            "points": self.points,
            "timestamp": self.timestamp,
        }
        for name in _TYPED_FIELDS:
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        out.update(self.extra)
        return out


@dataclass
class LedgerSnapshot:
    """A wallet's running point total and its activities, newest first."""

    total_points: int = 0
    activities: list[RewardActivity] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_points": self.total_points,
            "activities": [a.to_dict() for a in self.activities],
        }


@dataclass
class RewardsRecord:
    """One wallet's ledger as seen by cross-wallet scans."""

    wallet: str
    points: int
    activities: list[RewardActivity] = field(default_factory=list)


@dataclass(frozen=True)
class LeaderboardEntry:
    wallet: str
    points: int
    rank: int

    def to_dict(self) -> dict[str, Any]:
        return {"wallet": self.wallet, "points": self.points, "rank": self.rank}
