"""
Tests for supporter reputation: profile score, tiers, badges, community snapshots, ranking.
"""

from __future__ import annotations

import pytest

from lumina.ledger.models import REWARD_POINTS, RewardAction, RewardActivity, RewardsRecord

DAY_1 = "2025-03-01T10:00:00.000Z"


def _act(action: RewardAction, timestamp: str = DAY_1, **fields) -> RewardActivity:
    return RewardActivity(action=action.value, points=REWARD_POINTS[action], timestamp=timestamp, **fields)


def _day(n: int) -> str:
    return f"2025-03-{n:02d}T10:00:00.000Z"


def test_empty_ledger_is_newcomer():
    """No activities and no points: score 0, Newcomer, no badges."""
    from lumina.analysis_engine.reputation import compute_supporter_profile

    profile = compute_supporter_profile(0, [])
    assert profile.score == 0
    assert profile.tier == "Newcomer"
    assert profile.badges == []
    assert profile.top_badge is None
    assert profile.metrics.active_days == 0


def test_two_early_follows_without_artist_ids():
    """Two follows of small artists on one day: early 16 + consistency 2 = 18."""
    from lumina.analysis_engine.reputation import compute_supporter_profile

    activities = [
        _act(RewardAction.FOLLOW_ARTIST, artist_follower_count=1000),
        _act(RewardAction.FOLLOW_ARTIST, artist_follower_count=3000),
    ]
    profile = compute_supporter_profile(0, activities)
    assert profile.score == 18
    assert profile.tier == "Newcomer"
    assert [b.label for b in profile.badges] == ["Early Backer"]
    assert profile.metrics.early_follow_count == 2
    assert profile.metrics.unique_artists == 0


def test_distinct_artists_add_social_score():
    """The same follows with artist ids add 2 per unique artist."""
    from lumina.analysis_engine.reputation import compute_supporter_profile

    activities = [
        _act(RewardAction.FOLLOW_ARTIST, artist_id="a1", artist_follower_count=1000),
        _act(RewardAction.FOLLOW_ARTIST, artist_id="a2", artist_follower_count=3000),
    ]
    profile = compute_supporter_profile(0, activities)
    assert profile.metrics.unique_artists == 2
    assert profile.score == 22


def test_follow_without_follower_count_is_not_early():
    """Missing follower count means not early; exactly 5000 still counts as early."""
    from lumina.analysis_engine.reputation import compute_supporter_profile

    late = compute_supporter_profile(0, [_act(RewardAction.FOLLOW_ARTIST)])
    assert late.metrics.early_follow_count == 0
    assert late.score == 2 + 2

    boundary = compute_supporter_profile(0, [_act(RewardAction.FOLLOW_ARTIST, artist_follower_count=5000)])
    assert boundary.metrics.early_follow_count == 1
    assert boundary.score == 8 + 2


def test_average_thesis_length_rounds_half_up():
    """Average note length 70.5 rounds to 71 and earns Conviction Writer."""
    from lumina.analysis_engine.reputation import compute_supporter_profile

    activities = [
        _act(RewardAction.BACK_ARTIST, note_length=80),
        _act(RewardAction.BACK_ARTIST, note_length=61),
    ]
    profile = compute_supporter_profile(0, activities)
    assert profile.metrics.average_thesis_length == 71
    # conviction = 2*6 + 71 // 30 = 14, consistency = 2
    assert profile.score == 16
    assert [b.id for b in profile.badges] == ["conviction_writer"]


def test_backs_without_notes_average_zero():
    from lumina.analysis_engine.reputation import compute_supporter_profile

    profile = compute_supporter_profile(0, [_act(RewardAction.BACK_ARTIST)])
    assert profile.metrics.back_count == 1
    assert profile.metrics.average_thesis_length == 0


def test_active_days_use_calendar_day_prefix():
    from lumina.analysis_engine.reputation import compute_supporter_profile

    activities = [
        _act(RewardAction.DAILY_LOGIN, timestamp="2025-03-01T00:00:01.000Z"),
        _act(RewardAction.DAILY_LOGIN, timestamp="2025-03-01T23:59:59.000Z"),
        _act(RewardAction.DAILY_LOGIN, timestamp="2025-03-02T08:00:00.000Z"),
    ]
    assert compute_supporter_profile(0, activities).metrics.active_days == 2


def test_badges_capped_at_three_in_priority_order():
    """A wallet earning four badges keeps the first three in catalog order."""
    from lumina.analysis_engine.reputation import compute_supporter_profile

    activities = (
        [_act(RewardAction.FOLLOW_ARTIST, artist_follower_count=100) for _ in range(2)]
        + [_act(RewardAction.BACK_ARTIST, note_length=100) for _ in range(2)]
        + [_act(RewardAction.COMMENT, track_id=f"t{i}") for i in range(3)]
        + [_act(RewardAction.LIKE_TRACK, track_id=f"t{i}") for i in range(8)]
    )
    profile = compute_supporter_profile(0, activities)
    assert [b.id for b in profile.badges] == ["early_backer", "conviction_writer", "social_catalyst"]
    assert profile.top_badge.label == "Early Backer"


def test_maximal_wallet_is_legend_and_clamped():
    """Every sub-score at its cap sums to exactly 100."""
    from lumina.analysis_engine.reputation import compute_supporter_profile

    activities = (
        [_act(RewardAction.FOLLOW_ARTIST, timestamp=_day(i), artist_id=f"a{i}", artist_follower_count=10) for i in range(1, 6)]
        + [_act(RewardAction.BACK_ARTIST, timestamp=_day(i), note_length=120) for i in range(1, 6)]
        + [_act(RewardAction.COMMENT, timestamp=_day(i)) for i in range(1, 10)]
    )
    profile = compute_supporter_profile(100000, activities)
    assert profile.score == 100
    assert profile.tier == "Legend"
    assert len(profile.badges) == 3


@pytest.mark.parametrize(
    "score,tier",
    [(0, "Newcomer"), (39, "Newcomer"), (40, "Rising"), (59, "Rising"), (60, "Scout"), (79, "Scout"), (80, "Legend"), (100, "Legend")],
)
def test_tier_thresholds(score, tier):
    from lumina.analysis_engine.reputation import _tier_for

    assert _tier_for(score) == tier


def test_loyalty_from_total_points():
    """floor(points / 70) capped at 17."""
    from lumina.analysis_engine.reputation import compute_supporter_profile

    assert compute_supporter_profile(139, []).score == 1
    assert compute_supporter_profile(140, []).score == 2
    assert compute_supporter_profile(10**6, []).score == 17


def test_adding_a_back_never_lowers_score():
    from lumina.analysis_engine.reputation import compute_supporter_profile

    activities = [
        _act(RewardAction.FOLLOW_ARTIST, artist_id="a1", artist_follower_count=200),
        _act(RewardAction.BACK_ARTIST, artist_id="a1", note_length=45),
    ]
    previous = compute_supporter_profile(30, activities).score
    for i in range(6):
        activities.append(_act(RewardAction.BACK_ARTIST, artist_id="a1", note_length=10 * i))
        score = compute_supporter_profile(30 + 20 * (i + 1), activities).score
        assert score >= previous
        assert score <= 100
        previous = score


# -----------------------------------------------------------------------------
# Artist community snapshot
# -----------------------------------------------------------------------------


def _community_records() -> list[RewardsRecord]:
    w1 = [
        _act(RewardAction.LIKE_TRACK, timestamp=_day(3), track_id="T1", artist_id="A"),
        _act(RewardAction.BACK_ARTIST, timestamp=_day(3), artist_id="A", note_length=40),
        _act(RewardAction.FOLLOW_ARTIST, timestamp=_day(1), artist_id="A", artist_follower_count=900),
    ]
    w2 = [
        _act(RewardAction.COMMENT, timestamp=_day(4), track_id="T2", artist_id="A"),
        _act(RewardAction.FOLLOW_ARTIST, timestamp=_day(4), artist_id="A", artist_follower_count=950),
        _act(RewardAction.FOLLOW_ARTIST, timestamp=_day(2), artist_id="A", artist_follower_count=920),
    ]
    w3 = [_act(RewardAction.FOLLOW_ARTIST, timestamp=_day(5), artist_id="B", artist_follower_count=10)]
    viewer = [
        _act(RewardAction.BACK_ARTIST, timestamp=_day(5), artist_id="A", note_length=90),
        _act(RewardAction.LIKE_TRACK, timestamp=_day(5), track_id="T1", artist_id="A"),
    ]
    return [
        RewardsRecord(wallet="w1", points=30, activities=w1),
        RewardsRecord(wallet="w2", points=35, activities=w2),
        RewardsRecord(wallet="w3", points=10, activities=w3),
        RewardsRecord(wallet="viewer", points=25, activities=viewer),
    ]


def test_recent_followers_and_backers_latest_first():
    """Each wallet appears once with its latest timestamp; newest first."""
    from lumina.analysis_engine.reputation import compute_artist_community_snapshot

    snapshot = compute_artist_community_snapshot(_community_records(), "A", ["T1", "T2"], "viewer")
    followers = [(e.wallet, e.timestamp) for e in snapshot.recent_followers]
    assert followers == [("w2", _day(4)), ("w1", _day(1))]
    backers = [(e.wallet, e.timestamp) for e in snapshot.recent_backers]
    assert backers == [("viewer", _day(5)), ("w1", _day(3))]


def test_shared_fans_exclude_viewer_and_score_overlap():
    """w1: follow 3 + back 5 + like 2 + overlap 2*2 = 14; w2: 3 + 3 + comment 3 = 9; w3 dropped."""
    from lumina.analysis_engine.reputation import compute_artist_community_snapshot

    snapshot = compute_artist_community_snapshot(_community_records(), "A", ["T1", "T2"], "viewer")
    fans = [(e.wallet, e.engagement_score) for e in snapshot.shared_fans]
    assert fans == [("w1", 14), ("w2", 9)]
    assert all(e.wallet != "viewer" for e in snapshot.shared_fans)


def test_shared_fans_without_viewer_have_no_overlap():
    from lumina.analysis_engine.reputation import compute_artist_community_snapshot

    snapshot = compute_artist_community_snapshot(_community_records(), "A", ["T1", "T2"])
    fans = {e.wallet: e.engagement_score for e in snapshot.shared_fans}
    assert fans == {"w1": 10, "w2": 9, "viewer": 7}


def test_entries_carry_supporter_score_and_badge():
    from lumina.analysis_engine.reputation import compute_artist_community_snapshot, compute_supporter_profile

    records = _community_records()
    snapshot = compute_artist_community_snapshot(records, "A", [], "viewer")
    w1_entry = next(e for e in snapshot.recent_followers if e.wallet == "w1")
    expected = compute_supporter_profile(records[0].points, records[0].activities)
    assert w1_entry.supporter_score == expected.score
    assert w1_entry.top_badge == expected.top_badge


def test_community_lists_capped_at_six():
    from lumina.analysis_engine.reputation import compute_artist_community_snapshot

    records = [
        RewardsRecord(
            wallet=f"w{i}",
            points=10,
            activities=[_act(RewardAction.FOLLOW_ARTIST, timestamp=_day(i), artist_id="A")],
        )
        for i in range(1, 10)
    ]
    snapshot = compute_artist_community_snapshot(records, "A", [])
    assert [e.wallet for e in snapshot.recent_followers] == ["w9", "w8", "w7", "w6", "w5", "w4"]
    assert len(snapshot.shared_fans) == 6
    assert snapshot.recent_backers == []


def test_unknown_artist_gives_empty_snapshot():
    from lumina.analysis_engine.reputation import compute_artist_community_snapshot

    snapshot = compute_artist_community_snapshot(_community_records(), "nobody", [], "viewer")
    assert snapshot.to_dict() == {"recent_followers": [], "recent_backers": [], "shared_fans": []}


def test_rank_supporters_orders_by_points():
    """Points desc, ties keep record order, ranks are 1-based."""
    from lumina.analysis_engine.reputation import rank_supporters

    records = [
        RewardsRecord(wallet="a", points=50),
        RewardsRecord(wallet="b", points=200),
        RewardsRecord(wallet="c", points=50),
    ]
    ranked = rank_supporters(records)
    assert [(r.wallet, r.rank) for r in ranked] == [("b", 1), ("a", 2), ("c", 3)]
    assert ranked[0].supporter.score == 2
    assert len(rank_supporters(records, limit=2)) == 2
