"""
Undervalued-artist signals from the trending catalog.

Groups a trending batch by artist, then scores each artist on attention
relative to audience size: strong engagement from a small follower base
ranks high. Deterministic and explainable; recomputed from scratch on every
call, nothing is cached or persisted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable

from lumina.catalog.client import CatalogSource
from lumina.catalog.models import Track
from lumina.lumina_logging import get_logger

logger = get_logger(__name__)

TRENDING_BATCH_SIZE = 100
DEFAULT_SIGNAL_LIMIT = 24

# Engagement weights for attention_raw
FAVORITE_WEIGHT = 4
REPOST_WEIGHT = 3
LOG_OFFSET = 10

# Tuning constants; preserve exactly
CONSISTENCY_BASE = 0.7
CONSISTENCY_DIVISOR = 8
CONSISTENCY_CAP = 1.5
SUPPLY_BASE = 1.15
SUPPLY_DIVISOR = 400
SUPPLY_MAX_DEDUCTION = 0.3
SUPPLY_FLOOR = 0.85
VERIFIED_ADJUSTMENT = 0.95


@dataclass
class ArtistSignal:
    """
    Per-artist accumulator and score for one trending batch.

    Engagement counters are summed across every trending appearance;
    follower_count and track_count keep the maximum seen.
    """

    artist_id: str
    handle: str
    name: str
    is_verified: bool
    follower_count: int
    track_count: int
    plays: int
    favorites: int
    reposts: int
    appearance_count: int = 1
    profile_picture: dict[str, str] | None = None
    signal_score: float = 0.0
    attention_per_follower: float = 0.0

    @classmethod
    def from_track(cls, track: Track) -> "ArtistSignal":
        user = track.user
        return cls(
            artist_id=user.id,
            handle=user.handle,
            name=user.name,
            is_verified=user.is_verified,
            follower_count=user.follower_count,
            track_count=user.track_count,
            plays=track.play_count,
            favorites=track.favorite_count,
            reposts=track.repost_count,
            profile_picture=user.profile_picture,
        )

    def absorb(self, track: Track) -> None:
        """Fold another trending appearance by the same artist into this accumulator."""
        self.plays += track.play_count
        self.favorites += track.favorite_count
        self.reposts += track.repost_count
        self.appearance_count += 1
        self.follower_count = max(self.follower_count, track.user.follower_count)
        self.track_count = max(self.track_count, track.user.track_count)

    @property
    def attention_raw(self) -> int:
        return self.plays + self.favorites * FAVORITE_WEIGHT + self.reposts * REPOST_WEIGHT

    def to_dict(self) -> dict[str, Any]:
        return {
            "artist_id": self.artist_id,
            "handle": self.handle,
            "name": self.name,
            "is_verified": self.is_verified,
            "profile_picture": self.profile_picture,
            "follower_count": self.follower_count,
            "track_count": self.track_count,
            "plays": self.plays,
            "favorites": self.favorites,
            "reposts": self.reposts,
            "appearance_count": self.appearance_count,
            "signal_score": self.signal_score,
            "attention_per_follower": self.attention_per_follower,
        }


def aggregate_artists(tracks: Iterable[Track]) -> dict[str, ArtistSignal]:
    """Group tracks by artist id, preserving first-seen order."""
    by_artist: dict[str, ArtistSignal] = {}
    for track in tracks:
        existing = by_artist.get(track.user.id)
        if existing is None:
            by_artist[track.user.id] = ArtistSignal.from_track(track)
        else:
            existing.absorb(track)
    return by_artist


def compute_signal_score(artist: ArtistSignal) -> tuple[float, float]:
    """
    Return (signal_score, attention_per_follower), each rounded to 2 decimals.

    attention_gap = log10(attention_raw + 10) / max(1, log10(followers + 10))
    signal_score = attention_gap * consistency * supply_penalty * verified_adjustment * 100
    """
    attention_raw = max(0, artist.attention_raw)
    followers = max(0, artist.follower_count)
    attention = math.log10(attention_raw + LOG_OFFSET)
    audience = math.log10(followers + LOG_OFFSET)
    attention_gap = attention / max(1.0, audience)

    # Reward artists that keep appearing in trending without a saturated catalog
    consistency = min(CONSISTENCY_CAP, CONSISTENCY_BASE + artist.appearance_count / CONSISTENCY_DIVISOR)
    supply_penalty = max(
        SUPPLY_FLOOR,
        SUPPLY_BASE - min(SUPPLY_MAX_DEDUCTION, max(0, artist.track_count) / SUPPLY_DIVISOR),
    )
    verified_adjustment = VERIFIED_ADJUSTMENT if artist.is_verified else 1.0

    signal_score = attention_gap * consistency * supply_penalty * verified_adjustment * 100
    attention_per_follower = (attention_raw / max(1, followers)) * 1000
    return round(signal_score, 2), round(attention_per_follower, 2)


def score_artist_signals(tracks: Iterable[Track], limit: int = DEFAULT_SIGNAL_LIMIT) -> list[ArtistSignal]:
    """
    Rank artists in a trending batch by signal_score (desc).

    Each artist appears at most once; ties keep first-seen order.
    """
    by_artist = aggregate_artists(tracks)
    for artist in by_artist.values():
        artist.signal_score, artist.attention_per_follower = compute_signal_score(artist)
    ranked = sorted(by_artist.values(), key=lambda a: a.signal_score, reverse=True)
    result = ranked[: max(0, limit)]
    logger.debug("signals_ranked", artists=len(by_artist), returned=len(result))
    return result


async def get_undervalued_artist_signals(
    catalog: CatalogSource,
    limit: int = DEFAULT_SIGNAL_LIMIT,
) -> list[ArtistSignal]:
    """
    Fetch one trending batch (100 tracks, offset 0) and return the top `limit` signals.

    Catalog failures propagate to the caller; there is no retry or partial result.
    """
    tracks = await catalog.get_trending_tracks(TRENDING_BATCH_SIZE, 0)
    return score_artist_signals(tracks, limit)
