"""
Personalized discovery rails.

Builds up to three ranked artist lists for a viewer from their reward
ledger and a 200-track trending pool:

- because_followed: artists adjacent to the most recently followed artist
- similar_likes: artists matching the genres/moods of liked or commented tracks
- rising_graph: small-audience artists with strong engagement per follower

A failed trending fetch aborts the computation. Track-detail and seed-artist
lookups are best-effort: a CatalogError there only removes that extra signal.
"""

from __future__ import annotations

import asyncio
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

from lumina.catalog.client import CatalogSource
from lumina.catalog.models import Track, User
from lumina.core.exceptions import CatalogError
from lumina.ledger.models import RewardAction, RewardActivity
from lumina.lumina_logging import get_logger

logger = get_logger(__name__)

RAIL_BECAUSE_FOLLOWED = "because_followed"
RAIL_SIMILAR_LIKES = "similar_likes"
RAIL_RISING_GRAPH = "rising_graph"

TRENDING_PAGE_SIZE = 100
TRENDING_PAGE_OFFSETS = (0, 100)
LIKED_TRACK_SAMPLE = 8
PREFERRED_GENRES = 3
PREFERRED_MOODS = 2
SEED_TRACKS_LIMIT = 20
SEED_GENRES = 3
RAIL_SIZE = 6
DEFAULT_SEED_NAME = "your follows"

# because_followed weights
SEED_GENRE_WEIGHT = 16
SEED_MOOD_WEIGHT = 4
VERIFIED_BONUS = 0.5
UNVERIFIED_BONUS = 1.5
# similar_likes weights
LIKES_GENRE_WEIGHT = 18
LIKES_MOOD_WEIGHT = 10
# rising_graph weights
RISING_GENRE_WEIGHT = 10
RISING_MOOD_WEIGHT = 6
FOLLOWER_BOOST_MAX = 20
FOLLOWER_BOOST_LOG_WEIGHT = 4


@dataclass
class PersonalizedRail:
    id: str
    title: str
    subtitle: str
    artists: list[User] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "artists": [a.to_dict() for a in self.artists],
        }


@dataclass
class ArtistStat:
    """Per-artist aggregate over the trending pool, with genre/mood sets."""

    user: User
    genres: set[str] = field(default_factory=set)
    moods: set[str] = field(default_factory=set)
    engagement_raw: int = 0
    follower_count: int = 0

    @property
    def engagement_per_follower(self) -> float:
        return self.engagement_raw / max(1, self.follower_count)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def normalize_token(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def to_title_case(token: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in token.split(" ") if part)


def top_tokens(tokens: Iterable[str], limit: int) -> list[str]:
    """Most frequent non-empty tokens; ties keep first-occurrence order."""
    counts = Counter(t for t in tokens if t)
    return [token for token, _ in counts.most_common(limit)]


def count_overlap(values: set[str], targets: set[str]) -> int:
    return len(values & targets)


def _unique_ids(ids: Iterable[str], limit: int) -> list[str]:
    out: list[str] = []
    for item in ids:
        if item in out:
            continue
        out.append(item)
        if len(out) >= limit:
            break
    return out


def _take_unused(users: Iterable[User], used: set[str], limit: int = RAIL_SIZE) -> list[User]:
    """First `limit` distinct users not already placed in an earlier rail."""
    out: list[User] = []
    seen: set[str] = set()
    for user in users:
        if user.id in used or user.id in seen:
            continue
        seen.add(user.id)
        out.append(user)
        if len(out) >= limit:
            break
    return out


def followed_artist_ids(activities: list[RewardActivity]) -> list[str]:
    return [
        a.artist_id
        for a in activities
        if a.action == RewardAction.FOLLOW_ARTIST.value and isinstance(a.artist_id, str)
    ]


def backed_artist_ids(activities: list[RewardActivity]) -> list[str]:
    return [
        a.artist_id
        for a in activities
        if a.action == RewardAction.BACK_ARTIST.value and isinstance(a.artist_id, str)
    ]


def liked_track_ids(activities: list[RewardActivity]) -> list[str]:
    return [
        a.track_id
        for a in activities
        if a.action in (RewardAction.LIKE_TRACK.value, RewardAction.COMMENT.value)
        and isinstance(a.track_id, str)
    ]


def build_artist_stats(tracks: Iterable[Track]) -> dict[str, ArtistStat]:
    """Aggregate engagement and genre/mood sets per artist; keep the best-followed user record."""
    by_artist: dict[str, ArtistStat] = {}
    for track in tracks:
        genre = normalize_token(track.genre)
        mood = normalize_token(track.mood)
        existing = by_artist.get(track.user.id)
        if existing is None:
            by_artist[track.user.id] = ArtistStat(
                user=track.user,
                genres={genre} if genre else set(),
                moods={mood} if mood else set(),
                engagement_raw=track.engagement_raw,
                follower_count=track.user.follower_count,
            )
            continue
        if genre:
            existing.genres.add(genre)
        if mood:
            existing.moods.add(mood)
        existing.engagement_raw += track.engagement_raw
        existing.follower_count = max(existing.follower_count, track.user.follower_count)
        if track.user.follower_count > existing.user.follower_count:
            existing.user = track.user
    return by_artist


def score_rising(stat: ArtistStat, preferred_genres: set[str], preferred_moods: set[str]) -> float:
    """Engagement per follower (x1000) plus taste overlap plus a boost for small audiences."""
    apf = stat.engagement_per_follower * 1000
    genre_boost = count_overlap(stat.genres, preferred_genres) * RISING_GENRE_WEIGHT
    mood_boost = count_overlap(stat.moods, preferred_moods) * RISING_MOOD_WEIGHT
    if stat.follower_count > 0:
        follower_boost = max(
            0.0, FOLLOWER_BOOST_MAX - math.log10(stat.follower_count + 10) * FOLLOWER_BOOST_LOG_WEIGHT
        )
    else:
        follower_boost = float(FOLLOWER_BOOST_MAX)
    return apf + genre_boost + mood_boost + follower_boost


def _rank(scored: Iterable[tuple[User, float]]) -> list[User]:
    return [user for user, _ in sorted(scored, key=lambda item: item[1], reverse=True)]


# -----------------------------------------------------------------------------
# Catalog fan-out
# -----------------------------------------------------------------------------


async def get_trending_pool(catalog: CatalogSource) -> list[Track]:
    """
    Fetch two trending pages in parallel. Partial success is enough; if no
    tracks come back the first failure is raised.
    """
    results = await asyncio.gather(
        *(catalog.get_trending_tracks(TRENDING_PAGE_SIZE, offset) for offset in TRENDING_PAGE_OFFSETS),
        return_exceptions=True,
    )
    tracks: list[Track] = []
    errors: list[BaseException] = []
    for result in results:
        if isinstance(result, BaseException):
            errors.append(result)
        else:
            tracks.extend(result)
    if not tracks:
        if errors:
            raise errors[0]
        raise CatalogError("Failed to load trending tracks for personalization")
    if errors:
        logger.warning("personalization_trending_partial", failed_pages=len(errors), tracks=len(tracks))
    return tracks


async def _fetch_track_or_none(catalog: CatalogSource, track_id: str) -> Track | None:
    try:
        return await catalog.get_track(track_id)
    except CatalogError as e:
        logger.debug("personalization_track_skipped", track_id=track_id, error=str(e))
        return None


async def _fetch_seed(catalog: CatalogSource, seed_id: str) -> tuple[User, list[Track]] | None:
    seed_user, seed_tracks = await asyncio.gather(
        catalog.get_user(seed_id),
        catalog.get_user_tracks(seed_id, SEED_TRACKS_LIMIT, 0),
        return_exceptions=True,
    )
    results = (seed_user, seed_tracks)
    for result in results:
        if isinstance(result, BaseException) and not isinstance(result, CatalogError):
            raise result
    for result in results:
        if isinstance(result, CatalogError):
            logger.debug("personalization_seed_skipped", artist_id=seed_id, error=str(result))
            return None
    return seed_user, seed_tracks


# -----------------------------------------------------------------------------
# Rails
# -----------------------------------------------------------------------------


async def get_personalized_discovery_rails(
    catalog: CatalogSource,
    activities: list[RewardActivity],
) -> list[PersonalizedRail]:
    """
    Return up to three rails in the order because_followed, similar_likes,
    rising_graph. Empty when the viewer has no follows and no liked or
    commented tracks; in that case no catalog call is made.
    """
    follow_ids = followed_artist_ids(activities)
    liked_ids = liked_track_ids(activities)
    if not follow_ids and not liked_ids:
        return []

    artist_stats = build_artist_stats(await get_trending_pool(catalog))
    interacted = set(follow_ids) | set(backed_artist_ids(activities))

    sample = _unique_ids(liked_ids, LIKED_TRACK_SAMPLE)
    details = await asyncio.gather(*(_fetch_track_or_none(catalog, tid) for tid in sample))
    liked_tracks = [t for t in details if t is not None]

    genre_order = top_tokens((normalize_token(t.genre) for t in liked_tracks), PREFERRED_GENRES)
    preferred_genres = set(genre_order)
    preferred_moods = set(top_tokens((normalize_token(t.mood) for t in liked_tracks), PREFERRED_MOODS))

    rails: list[PersonalizedRail] = []
    used: set[str] = set()

    if follow_ids:
        seed_id = follow_ids[0]
        seed_name = DEFAULT_SEED_NAME
        seed_genres = set(preferred_genres)
        seed = await _fetch_seed(catalog, seed_id)
        if seed is not None:
            seed_user, seed_tracks = seed
            seed_name = seed_user.name
            from_seed = top_tokens((normalize_token(t.genre) for t in seed_tracks), SEED_GENRES)
            if from_seed:
                seed_genres = set(from_seed)

        candidates = _rank(
            (
                stat.user,
                count_overlap(stat.genres, seed_genres) * SEED_GENRE_WEIGHT
                + count_overlap(stat.moods, preferred_moods) * SEED_MOOD_WEIGHT
                + stat.engagement_per_follower
                + (VERIFIED_BONUS if stat.user.is_verified else UNVERIFIED_BONUS),
            )
            for stat in artist_stats.values()
            if stat.user.id not in interacted
        )
        artists = _take_unused(candidates, used)
        used.update(a.id for a in artists)
        if artists:
            rails.append(
                PersonalizedRail(
                    id=RAIL_BECAUSE_FOLLOWED,
                    title=f"Because You Followed {seed_name}",
                    subtitle="Adjacent artists with overlapping listener behavior and attention patterns.",
                    artists=artists,
                )
            )

    if preferred_genres or preferred_moods:
        scored = [
            (
                stat.user,
                count_overlap(stat.genres, preferred_genres) * LIKES_GENRE_WEIGHT
                + count_overlap(stat.moods, preferred_moods) * LIKES_MOOD_WEIGHT
                + stat.engagement_per_follower,
            )
            for stat in artist_stats.values()
        ]
        artists = _take_unused(_rank(item for item in scored if item[1] > 0), used)
        used.update(a.id for a in artists)
        genre_label = " · ".join(to_title_case(g) for g in genre_order[:2])
        rails.append(
            PersonalizedRail(
                id=RAIL_SIMILAR_LIKES,
                title="Similar To Your Likes",
                subtitle=(
                    f"Calibrated from your recent listening actions around {genre_label}."
                    if genre_label
                    else "Calibrated from your recent likes and comments."
                ),
                artists=artists,
            )
        )

    rising = _rank(
        (stat.user, score_rising(stat, preferred_genres, preferred_moods))
        for stat in artist_stats.values()
        if stat.user.id not in interacted
    )
    rising_artists = _take_unused(rising, used)
    if rising_artists:
        rails.append(
            PersonalizedRail(
                id=RAIL_RISING_GRAPH,
                title="Rising In Your Graph",
                subtitle="Undervalued artists with strong engagement-per-follower momentum.",
                artists=rising_artists,
            )
        )

    result = [rail for rail in rails if rail.artists]
    logger.debug(
        "personalization_rails_built",
        follows=len(follow_ids),
        liked_tracks=len(liked_ids),
        liked_details=len(liked_tracks),
        trending_artists=len(artist_stats),
        rails=[r.id for r in result],
    )
    return result
