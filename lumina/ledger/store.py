"""
Interaction ledger — SQLAlchemy-backed append-only reward activity store.

One running point total per wallet plus an append-only list of activities.
Activities are never edited individually; clear_ledger() bulk-clears a wallet.
Uses LUMINA_DB_URL / DATABASE_URL when set (e.g. PostgreSQL); otherwise falls
back to SQLite at LEDGER_DB_PATH.
"""

from __future__ import annotations

import json
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from sqlalchemy import Column, Float, Integer, String, Text, create_engine, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from lumina.config.env import get_database_url
from lumina.core.exceptions import InvalidActivityError, LedgerError
from lumina.ledger.models import (
    REWARD_POINTS,
    LeaderboardEntry,
    LedgerSnapshot,
    RewardAction,
    RewardActivity,
    RewardsRecord,
    finite_number,
    normalize_metadata,
)
from lumina.lumina_logging import bind_wallet, get_logger, short_wallet

logger = get_logger(__name__)

Base = declarative_base()

# -----------------------------------------------------------------------------
# SQLAlchemy models
# -----------------------------------------------------------------------------


class WalletLedger(Base):
    """Running point total per wallet. Row exists once the wallet earned anything."""

    __tablename__ = "wallet_ledgers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    wallet = Column(String(64), unique=True, nullable=False, index=True)
    total_points = Column(Integer, nullable=False, default=0)
    updated_at = Column(String(40), nullable=True)  # ISO 8601 of last append


class ActivityRow(Base):
    """Append-only reward activity. Insert order (id) is the ledger order."""

    __tablename__ = "reward_activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    wallet = Column(String(64), nullable=False, index=True)
    action = Column(String(32), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    timestamp = Column(String(40), nullable=False)
    track_id = Column(String(128), nullable=True, index=True)
    artist_id = Column(String(128), nullable=True, index=True)
    artist_follower_count = Column(Float, nullable=True)
    note_length = Column(Float, nullable=True)
    extra = Column(Text, nullable=True)  # JSON object of any other metadata

    def to_activity(self) -> RewardActivity:
        extra: dict[str, Any] = {}
        if self.extra:
            try:
                loaded = json.loads(self.extra)
                extra = loaded if isinstance(loaded, dict) else {}
            except ValueError:
                extra = {}
        return RewardActivity(
            action=self.action,
            points=self.points,
            timestamp=self.timestamp,
            track_id=self.track_id,
            artist_id=self.artist_id,
            artist_follower_count=self.artist_follower_count,
            note_length=self.note_length,
            extra=extra,
        )


# -----------------------------------------------------------------------------
# Engine and session
# -----------------------------------------------------------------------------

_engine = None
_SessionLocal: sessionmaker | None = None


def _get_engine():
    """Create or return cached engine."""
    global _engine
    if _engine is None:
        url = get_database_url()
        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        _engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        logger.info("ledger_engine", url=url.split("?")[0].split("//")[-1])
    return _engine


def _get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
    return _SessionLocal


def reset_engine_for_test() -> None:
    """Drop the cached engine and session factory so the next call re-reads the DB URL."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Context manager for a single session. Commits on success, rolls back on error."""
    factory = _get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create ledger tables if they do not exist. Safe to call on every startup."""
    try:
        Base.metadata.create_all(bind=_get_engine())
        logger.info("ledger_init_db", url=get_database_url().split("?")[0].split("//")[-1])
    except SQLAlchemyError as e:
        logger.exception("ledger_init_db_failed", error=str(e))
        raise LedgerError(f"Could not initialise ledger: {e}") from e


# -----------------------------------------------------------------------------
# Validation
# -----------------------------------------------------------------------------


def _validate_wallet(wallet: str) -> str:
    """Validate a Solana wallet address (base58 public key). Returns the stripped wallet."""
    wallet = (wallet or "").strip()
    if not wallet:
        raise InvalidActivityError("wallet must be non-empty")
    try:
        from solders.pubkey import Pubkey

        Pubkey.from_string(wallet)
    except Exception as e:
        raise InvalidActivityError(f"Invalid Solana wallet: {e}") from e
    return wallet


def _parse_action(action: RewardAction | str) -> RewardAction:
    try:
        return RewardAction(action)
    except ValueError as e:
        raise InvalidActivityError(f"Unknown reward action: {action!r}") from e


def _utc_now_iso() -> str:
    """Current UTC time as ISO 8601 with milliseconds and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _activity_fields(wallet: str, action: RewardAction, metadata: dict[str, Any], timestamp: str) -> dict[str, Any]:
    """Validated column values for one ActivityRow."""
    fields = normalize_metadata(metadata)
    for key in ("track_id", "artist_id"):
        value = fields.get(key)
        if value is not None and not isinstance(value, str):
            raise InvalidActivityError(f"{key} must be a string")
    for key in ("artist_follower_count", "note_length"):
        value = fields.get(key)
        if value is not None and finite_number(value) is None:
            raise InvalidActivityError(f"{key} must be a finite number")
    extra = {
        k: v
        for k, v in fields.items()
        if k not in ("track_id", "artist_id", "artist_follower_count", "note_length")
    }
    try:
        extra_json = json.dumps(extra) if extra else None
    except (TypeError, ValueError) as e:
        raise InvalidActivityError(f"metadata is not JSON-serializable: {e}") from e
    return {
        "wallet": wallet,
        "action": action.value,
        "points": REWARD_POINTS[action],
        "timestamp": timestamp,
        "track_id": fields.get("track_id"),
        "artist_id": fields.get("artist_id"),
        "artist_follower_count": finite_number(fields.get("artist_follower_count")),
        "note_length": finite_number(fields.get("note_length")),
        "extra": extra_json,
    }


def _append_activity(session: Session, fields: dict[str, Any]) -> int:
    """
    Insert the activity and add its points to the running total in one transaction.
    The total is incremented in SQL so concurrent appends for a wallet cannot lose points.
    """
    wallet, points, timestamp = fields["wallet"], fields["points"], fields["timestamp"]
    session.add(ActivityRow(**fields))
    session.flush()
    result = session.execute(
        update(WalletLedger)
        .where(WalletLedger.wallet == wallet)
        .values(total_points=WalletLedger.total_points + points, updated_at=timestamp)
    )
    if result.rowcount == 0:
        # First activity for this wallet; a concurrent first insert raises IntegrityError
        session.add(WalletLedger(wallet=wallet, total_points=points, updated_at=timestamp))
        session.flush()
    total = session.execute(
        select(WalletLedger.total_points).where(WalletLedger.wallet == wallet)
    ).scalar_one()
    return int(total)


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------


def record_activity(
    wallet: str,
    action: RewardAction | str,
    metadata: dict[str, Any] | None = None,
    *,
    timestamp: str | None = None,
) -> int:
    """
    Append one reward activity for wallet and add its points to the running total.

    metadata may use snake_case or camelCase keys (trackId, artistId,
    artistFollowerCount, noteLength); other keys are kept as extra metadata.
    Returns the wallet's new total points. Raises InvalidActivityError.
    """
    wallet = _validate_wallet(wallet)
    kind = _parse_action(action)
    fields = _activity_fields(wallet, kind, metadata or {}, timestamp or _utc_now_iso())
    try:
        try:
            with _session_scope() as session:
                total = _append_activity(session, fields)
        except IntegrityError:
            # Lost the race to create the wallet's ledger row; the row exists now
            logger.debug("ledger_create_race_retry", wallet=short_wallet(wallet))
            with _session_scope() as session:
                total = _append_activity(session, fields)
    except SQLAlchemyError as e:
        logger.exception("ledger_record_failed", wallet=short_wallet(wallet), error=str(e))
        raise LedgerError(f"Could not record activity: {e}") from e
    bind_wallet(wallet, __name__).info(
        "ledger_activity_recorded",
        action=kind.value,
        points=fields["points"],
        total_points=total,
    )
    return total


def read_ledger(wallet: str) -> LedgerSnapshot:
    """Return the wallet's total points and activities (newest first). Empty if unknown."""
    wallet = (wallet or "").strip()
    if not wallet:
        return LedgerSnapshot()
    with _session_scope() as session:
        ledger = session.query(WalletLedger).filter(WalletLedger.wallet == wallet).first()
        if ledger is None:
            return LedgerSnapshot()
        rows = (
            session.query(ActivityRow)
            .filter(ActivityRow.wallet == wallet)
            .order_by(ActivityRow.id.desc())
            .all()
        )
        return LedgerSnapshot(
            total_points=int(ledger.total_points or 0),
            activities=[r.to_activity() for r in rows],
        )


def get_recent_activity(wallet: str, limit: int = 10) -> list[RewardActivity]:
    return read_ledger(wallet).activities[: max(0, limit)]


def read_all_ledgers() -> list[RewardsRecord]:
    """Return one RewardsRecord per wallet with a ledger, in first-seen order."""
    with _session_scope() as session:
        ledgers = session.query(WalletLedger).order_by(WalletLedger.id).all()
        rows = session.query(ActivityRow).order_by(ActivityRow.id.desc()).all()
        by_wallet: dict[str, list[RewardActivity]] = defaultdict(list)
        for row in rows:
            by_wallet[row.wallet].append(row.to_activity())
        return [
            RewardsRecord(
                wallet=ledger.wallet,
                points=int(ledger.total_points or 0),
                activities=by_wallet.get(ledger.wallet, []),
            )
            for ledger in ledgers
        ]


def get_leaderboard(limit: int = 10) -> list[LeaderboardEntry]:
    """Wallets ranked by total points (desc); ties keep first-seen order. Rank is 1-based."""
    with _session_scope() as session:
        ledgers = (
            session.query(WalletLedger)
            .order_by(WalletLedger.total_points.desc(), WalletLedger.id)
            .limit(max(0, limit))
            .all()
        )
        return [
            LeaderboardEntry(wallet=ledger.wallet, points=int(ledger.total_points or 0), rank=i + 1)
            for i, ledger in enumerate(ledgers)
        ]


def clear_ledger(wallet: str) -> bool:
    """Delete all activities and the running total for wallet. Returns True if anything was removed."""
    wallet = (wallet or "").strip()
    with _session_scope() as session:
        removed = session.query(ActivityRow).filter(ActivityRow.wallet == wallet).delete()
        removed += session.query(WalletLedger).filter(WalletLedger.wallet == wallet).delete()
    logger.info("ledger_cleared", wallet=short_wallet(wallet), removed=removed)
    return removed > 0
