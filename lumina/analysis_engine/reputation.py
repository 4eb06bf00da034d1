"""
Supporter reputation from the interaction ledger.

Turns a wallet's reward activities into a 0-100 supporter score, a tier and
up to three badges, and builds per-artist community snapshots by scanning
every wallet's ledger. Pure functions over ledger snapshots; no I/O.

Score = early adoption (<=25) + conviction (<=24) + consistency (<=18)
        + social (<=16) + loyalty (<=17), clamped to [0, 100].
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from lumina.ledger.models import RewardAction, RewardActivity, RewardsRecord
from lumina.lumina_logging import get_logger, short_wallet

logger = get_logger(__name__)

TIER_NEWCOMER = "Newcomer"
TIER_RISING = "Rising"
TIER_SCOUT = "Scout"
TIER_LEGEND = "Legend"

# (min score, tier), checked in order
TIER_THRESHOLDS = (
    (80, TIER_LEGEND),
    (60, TIER_SCOUT),
    (40, TIER_RISING),
)

EARLY_FOLLOWER_LIMIT = 5000
MAX_BADGES = 3
SCORE_MIN = 0
SCORE_MAX = 100

EARLY_CAP = 25
EARLY_WEIGHT = 8
LATE_FOLLOW_WEIGHT = 2
CONVICTION_CAP = 24
BACK_WEIGHT = 6
THESIS_DIVISOR = 30
CONSISTENCY_CAP = 18
ACTIVE_DAY_WEIGHT = 2
SOCIAL_CAP = 16
COMMENT_WEIGHT = 3
UNIQUE_ARTIST_WEIGHT = 2
LOYALTY_CAP = 17
LOYALTY_POINTS_DIVISOR = 70

COMMUNITY_LIST_LIMIT = 6
FOLLOW_ENGAGEMENT = 3
BACK_ENGAGEMENT = 5
LIKE_ENGAGEMENT = 2
COMMENT_ENGAGEMENT = 3
OVERLAP_BONUS = 2

TRACK_ACTIONS = (RewardAction.LIKE_TRACK.value, RewardAction.COMMENT.value)


@dataclass(frozen=True)
class SupporterBadge:
    id: str
    label: str
    icon: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "label": self.label, "icon": self.icon}


# Catalog order is badge priority
BADGE_DEFINITIONS: dict[str, SupporterBadge] = {
    "early_backer": SupporterBadge("early_backer", "Early Backer", "solar:rocket-bold-duotone"),
    "conviction_writer": SupporterBadge("conviction_writer", "Conviction Writer", "solar:pen-new-square-bold-duotone"),
    "social_catalyst": SupporterBadge("social_catalyst", "Social Catalyst", "solar:chat-round-dots-bold-duotone"),
    "taste_curator": SupporterBadge("taste_curator", "Taste Curator", "solar:heart-bold-duotone"),
    "loyal_listener": SupporterBadge("loyal_listener", "Loyal Listener", "solar:music-note-bold-duotone"),
    "scene_scout": SupporterBadge("scene_scout", "Scene Scout", "solar:star-bold-duotone"),
}


@dataclass
class SupporterMetrics:
    follow_count: int = 0
    early_follow_count: int = 0
    back_count: int = 0
    average_thesis_length: int = 0
    comment_count: int = 0
    like_count: int = 0
    active_days: int = 0
    unique_artists: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "follow_count": self.follow_count,
            "early_follow_count": self.early_follow_count,
            "back_count": self.back_count,
            "average_thesis_length": self.average_thesis_length,
            "comment_count": self.comment_count,
            "like_count": self.like_count,
            "active_days": self.active_days,
            "unique_artists": self.unique_artists,
        }


@dataclass
class SupporterProfile:
    """Gamified summary of a wallet's engagement. Recomputed on demand, never stored."""

    score: int
    tier: str
    metrics: SupporterMetrics
    badges: list[SupporterBadge] = field(default_factory=list)

    @property
    def top_badge(self) -> SupporterBadge | None:
        return self.badges[0] if self.badges else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "tier": self.tier,
            "metrics": self.metrics.to_dict(),
            "badges": [b.to_dict() for b in self.badges],
        }


@dataclass
class ArtistCommunityEntry:
    wallet: str
    supporter_score: int
    timestamp: str | None = None
    top_badge: SupporterBadge | None = None
    engagement_score: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet": self.wallet,
            "timestamp": self.timestamp,
            "supporter_score": self.supporter_score,
            "top_badge": self.top_badge.to_dict() if self.top_badge else None,
            "engagement_score": self.engagement_score,
        }


@dataclass
class ArtistCommunitySnapshot:
    recent_followers: list[ArtistCommunityEntry] = field(default_factory=list)
    recent_backers: list[ArtistCommunityEntry] = field(default_factory=list)
    shared_fans: list[ArtistCommunityEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "recent_followers": [e.to_dict() for e in self.recent_followers],
            "recent_backers": [e.to_dict() for e in self.recent_backers],
            "shared_fans": [e.to_dict() for e in self.shared_fans],
        }


@dataclass
class RankedSupporter:
    """Leaderboard row: wallet rank by points plus its supporter profile."""

    wallet: str
    points: int
    rank: int
    supporter: SupporterProfile

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet": self.wallet,
            "points": self.points,
            "rank": self.rank,
            "supporter": self.supporter.to_dict(),
        }


# -----------------------------------------------------------------------------
# Supporter profile
# -----------------------------------------------------------------------------


def _day_key(timestamp: str) -> str:
    return timestamp[:10]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _tier_for(score: int) -> str:
    for threshold, tier in TIER_THRESHOLDS:
        if score >= threshold:
            return tier
    return TIER_NEWCOMER


def _count_artists(activities: Iterable[RewardActivity]) -> int:
    return len({a.artist_id for a in activities if isinstance(a.artist_id, str) and a.artist_id})


def compute_supporter_profile(total_points: float, activities: list[RewardActivity]) -> SupporterProfile:
    """
    Compute a wallet's supporter score, tier, metrics and badges.

    Early follows are follows recorded while the artist had at most 5000
    followers. Missing optional fields count as absent, never as zero values.
    """
    follows = [a for a in activities if a.action == RewardAction.FOLLOW_ARTIST.value]
    backs = [a for a in activities if a.action == RewardAction.BACK_ARTIST.value]
    comments = [a for a in activities if a.action == RewardAction.COMMENT.value]
    likes = [a for a in activities if a.action == RewardAction.LIKE_TRACK.value]

    early_follow_count = sum(
        1
        for a in follows
        if a.artist_follower_count is not None and a.artist_follower_count <= EARLY_FOLLOWER_LIMIT
    )

    thesis_lengths = [a.note_length for a in backs if a.note_length is not None]
    average_thesis_length = (
        _round_half_up(sum(thesis_lengths) / len(thesis_lengths)) if thesis_lengths else 0
    )

    active_days = len({_day_key(a.timestamp) for a in activities})
    unique_artists = _count_artists(activities)

    early_score = min(
        EARLY_CAP,
        early_follow_count * EARLY_WEIGHT + max(0, len(follows) - early_follow_count) * LATE_FOLLOW_WEIGHT,
    )
    conviction_score = min(CONVICTION_CAP, len(backs) * BACK_WEIGHT + average_thesis_length // THESIS_DIVISOR)
    consistency_score = min(CONSISTENCY_CAP, active_days * ACTIVE_DAY_WEIGHT)
    social_score = min(SOCIAL_CAP, len(comments) * COMMENT_WEIGHT + unique_artists * UNIQUE_ARTIST_WEIGHT)
    loyalty_score = min(LOYALTY_CAP, math.floor((total_points or 0) / LOYALTY_POINTS_DIVISOR))

    total = early_score + conviction_score + consistency_score + social_score + loyalty_score
    score = int(max(SCORE_MIN, min(SCORE_MAX, total)))

    earned = {
        "early_backer": early_follow_count >= 2,
        "conviction_writer": len(backs) >= 2 and average_thesis_length >= 70,
        "social_catalyst": len(comments) >= 3,
        "taste_curator": len(likes) >= 8,
        "loyal_listener": active_days >= 7,
        "scene_scout": unique_artists >= 5,
    }
    badges = [badge for badge_id, badge in BADGE_DEFINITIONS.items() if earned[badge_id]]

    return SupporterProfile(
        score=score,
        tier=_tier_for(score),
        metrics=SupporterMetrics(
            follow_count=len(follows),
            early_follow_count=early_follow_count,
            back_count=len(backs),
            average_thesis_length=average_thesis_length,
            comment_count=len(comments),
            like_count=len(likes),
            active_days=active_days,
            unique_artists=unique_artists,
        ),
        badges=badges[:MAX_BADGES],
    )


def rank_supporters(records: list[RewardsRecord], limit: int = 10) -> list[RankedSupporter]:
    """Leaderboard: wallets by points (desc, ties in record order), each with its supporter profile."""
    ordered = sorted(records, key=lambda r: r.points, reverse=True)[: max(0, limit)]
    return [
        RankedSupporter(
            wallet=record.wallet,
            points=record.points,
            rank=i + 1,
            supporter=compute_supporter_profile(record.points, record.activities),
        )
        for i, record in enumerate(ordered)
    ]


# -----------------------------------------------------------------------------
# Artist community snapshot
# -----------------------------------------------------------------------------


def _summarize_wallet(record: RewardsRecord | None) -> tuple[int, SupporterBadge | None]:
    if record is None:
        return 0, None
    profile = compute_supporter_profile(record.points, record.activities)
    return profile.score, profile.top_badge


def _is_artist_action(activity: RewardActivity, action: RewardAction, artist_id: str) -> bool:
    return activity.action == action.value and activity.artist_id == artist_id


def _is_track_interaction(activity: RewardActivity, track_set: set[str]) -> bool:
    return (
        activity.action in TRACK_ACTIONS
        and isinstance(activity.track_id, str)
        and activity.track_id in track_set
    )


def _recent_entries(
    latest: dict[str, str],
    records_by_wallet: dict[str, RewardsRecord],
) -> list[ArtistCommunityEntry]:
    ranked = sorted(latest.items(), key=lambda item: item[1], reverse=True)[:COMMUNITY_LIST_LIMIT]
    entries = []
    for wallet, timestamp in ranked:
        score, badge = _summarize_wallet(records_by_wallet.get(wallet))
        entries.append(
            ArtistCommunityEntry(wallet=wallet, timestamp=timestamp, supporter_score=score, top_badge=badge)
        )
    return entries


def compute_artist_community_snapshot(
    records: list[RewardsRecord],
    artist_id: str,
    track_ids: list[str],
    viewer_wallet: str | None = None,
) -> ArtistCommunitySnapshot:
    """
    Build recent followers, recent backers and shared fans for one artist.

    Recent lists keep each wallet's latest follow/back timestamp for the
    artist. Shared fans exclude the viewer and score other wallets by
    engagement with the artist and its tracks plus overlap with the viewer's
    own interactions; wallets scoring 0 are dropped. Each list holds at most 6.
    """
    track_set = {tid for tid in track_ids if tid}

    records_by_wallet: dict[str, RewardsRecord] = {}
    for record in records:
        records_by_wallet.setdefault(record.wallet, record)

    viewer = records_by_wallet.get(viewer_wallet) if viewer_wallet else None
    viewer_backed_artist = bool(
        viewer and any(_is_artist_action(a, RewardAction.BACK_ARTIST, artist_id) for a in viewer.activities)
    )
    viewer_track_interactions: set[str] = set()
    if viewer is not None:
        viewer_track_interactions = {
            a.track_id for a in viewer.activities if _is_track_interaction(a, track_set)
        }

    recent_followers: dict[str, str] = {}
    recent_backers: dict[str, str] = {}
    shared_fans: list[ArtistCommunityEntry] = []

    for record in records:
        for activity in record.activities:
            if _is_artist_action(activity, RewardAction.FOLLOW_ARTIST, artist_id):
                current = recent_followers.get(record.wallet)
                if current is None or current < activity.timestamp:
                    recent_followers[record.wallet] = activity.timestamp
            if _is_artist_action(activity, RewardAction.BACK_ARTIST, artist_id):
                current = recent_backers.get(record.wallet)
                if current is None or current < activity.timestamp:
                    recent_backers[record.wallet] = activity.timestamp

        if viewer_wallet and record.wallet == viewer_wallet:
            continue

        engagement_score = 0
        overlap_score = 0
        for activity in record.activities:
            if _is_artist_action(activity, RewardAction.FOLLOW_ARTIST, artist_id):
                engagement_score += FOLLOW_ENGAGEMENT
            if _is_artist_action(activity, RewardAction.BACK_ARTIST, artist_id):
                engagement_score += BACK_ENGAGEMENT
                if viewer_backed_artist:
                    overlap_score += OVERLAP_BONUS
            if _is_track_interaction(activity, track_set):
                is_comment = activity.action == RewardAction.COMMENT.value
                engagement_score += COMMENT_ENGAGEMENT if is_comment else LIKE_ENGAGEMENT
                if activity.track_id in viewer_track_interactions:
                    overlap_score += OVERLAP_BONUS

        shared_score = engagement_score + overlap_score
        if shared_score <= 0:
            continue
        score, badge = _summarize_wallet(record)
        shared_fans.append(
            ArtistCommunityEntry(
                wallet=record.wallet,
                supporter_score=score,
                top_badge=badge,
                engagement_score=shared_score,
            )
        )

    ranked_fans = sorted(shared_fans, key=lambda e: e.engagement_score or 0, reverse=True)
    snapshot = ArtistCommunitySnapshot(
        recent_followers=_recent_entries(recent_followers, records_by_wallet),
        recent_backers=_recent_entries(recent_backers, records_by_wallet),
        shared_fans=ranked_fans[:COMMUNITY_LIST_LIMIT],
    )
    logger.debug(
        "community_snapshot_built",
        artist_id=artist_id,
        viewer=short_wallet(viewer_wallet) if viewer_wallet else None,
        followers=len(recent_followers),
        backers=len(recent_backers),
        shared_fans=len(shared_fans),
    )
    return snapshot
