"""
Analysis engine package — artist signals, supporter reputation, personalization.

Consumes catalog records and ledger snapshots and produces rankings, scores
and discovery rails. Pure query functions; no writes, no events.
"""

from lumina.analysis_engine.signals import (
    ArtistSignal,
    get_undervalued_artist_signals,
    score_artist_signals,
)
from lumina.analysis_engine.reputation import (
    ArtistCommunityEntry,
    ArtistCommunitySnapshot,
    RankedSupporter,
    SupporterBadge,
    SupporterMetrics,
    SupporterProfile,
    compute_artist_community_snapshot,
    compute_supporter_profile,
    rank_supporters,
)
from lumina.analysis_engine.personalization import (
    PersonalizedRail,
    get_personalized_discovery_rails,
)

__all__ = [
    "ArtistSignal",
    "get_undervalued_artist_signals",
    "score_artist_signals",
    "ArtistCommunityEntry",
    "ArtistCommunitySnapshot",
    "RankedSupporter",
    "SupporterBadge",
    "SupporterMetrics",
    "SupporterProfile",
    "compute_artist_community_snapshot",
    "compute_supporter_profile",
    "rank_supporters",
    "PersonalizedRail",
    "get_personalized_discovery_rails",
]
