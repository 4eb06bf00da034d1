"""
Interaction ledger — per-wallet append-only record of reward-earning actions.
"""

from lumina.ledger.models import (
    REWARD_POINTS,
    LeaderboardEntry,
    LedgerSnapshot,
    RewardAction,
    RewardActivity,
    RewardsRecord,
)
from lumina.ledger.store import (
    clear_ledger,
    get_leaderboard,
    get_recent_activity,
    init_db,
    read_all_ledgers,
    read_ledger,
    record_activity,
)

__all__ = [
    "REWARD_POINTS",
    "LeaderboardEntry",
    "LedgerSnapshot",
    "RewardAction",
    "RewardActivity",
    "RewardsRecord",
    "clear_ledger",
    "get_leaderboard",
    "get_recent_activity",
    "init_db",
    "read_all_ledgers",
    "read_ledger",
    "record_activity",
]
