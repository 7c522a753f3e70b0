"""
Snapshot store — read/write access to daily_compliance_snapshots.

Public API
----------
date_key(moment)                          -> date           (UTC calendar day)
key_lock(worker_id, day)                  -> context manager (same-key writers queue up)
get_or_create_snapshot(db, worker_id, day) -> DailyComplianceSnapshot
get_previous_snapshot(db, worker_id, day)  -> DailyComplianceSnapshot | None
save_snapshot(db, snapshot, ...)           -> DailyComplianceSnapshot  (flush only)

Concurrency
-----------
The metrics update is a read-modify-write cycle, so two events for the same
(worker, day) must not interleave. Inside one process `key_lock` queues
them; across processes the existing row is read `FOR UPDATE` (a no-op on
SQLite) and a brand-new row is protected by the
`uq_compliance_snapshot_worker_date` constraint. Different keys never
share a lock. The previous-day read takes no lock at all.

Nothing here commits. The compliance engine owns the transaction.
"""
from __future__ import annotations

import json
import threading
from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterator, Optional

from sqlalchemy.orm import Session

from app.models.compliance_snapshot import DailyComplianceSnapshot, RiskLevel
from app.services.metrics import DailyMetrics


# ---------------------------------------------------------------------------
# Day keys
# ---------------------------------------------------------------------------

def date_key(moment: Optional[datetime] = None) -> date:
    """UTC calendar day of `moment` (now if omitted). Naive datetimes are UTC."""
    if moment is None:
        return datetime.now(tz=timezone.utc).date()
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(timezone.utc).date()


# ---------------------------------------------------------------------------
# Per-key locks
# ---------------------------------------------------------------------------

class KeyedLock:
    """A lock per key, created on demand and dropped when nobody holds or waits on it."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Any, threading.Lock] = {}
        self._users: dict[Any, int] = {}

    @contextmanager
    def hold(self, key: Any) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if self._users[key] == 0:
                    del self._users[key]
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


_snapshot_locks = KeyedLock()


def key_lock(worker_id: int, day: date):
    return _snapshot_locks.hold((worker_id, day))


# ---------------------------------------------------------------------------
# Reads / writes
# ---------------------------------------------------------------------------

def get_or_create_snapshot(db: Session, worker_id: int, day: date) -> DailyComplianceSnapshot:
    """Existing snapshot for the key (row-locked), or a new zeroed one added to the session."""
    snapshot = (
        db.query(DailyComplianceSnapshot)
        .filter(
            DailyComplianceSnapshot.worker_id == worker_id,
            DailyComplianceSnapshot.snapshot_date == day,
        )
        .with_for_update()
        .first()
    )
    if snapshot is not None:
        return snapshot

    snapshot = DailyComplianceSnapshot(
        worker_id=worker_id,
        snapshot_date=day,
        metrics=DailyMetrics().to_json(),
        compliance_score=0,
        risk_level=RiskLevel.high,
        streak_count=0,
        streak_seeded=False,
    )
    db.add(snapshot)
    return snapshot


def get_previous_snapshot(
    db: Session, worker_id: int, day: date
) -> Optional[DailyComplianceSnapshot]:
    return (
        db.query(DailyComplianceSnapshot)
        .filter(
            DailyComplianceSnapshot.worker_id == worker_id,
            DailyComplianceSnapshot.snapshot_date == day - timedelta(days=1),
        )
        .first()
    )


def save_snapshot(
    db: Session,
    snapshot: DailyComplianceSnapshot,
    *,
    metrics: DailyMetrics,
    compliance_score: int,
    risk_level: RiskLevel,
    streak_count: int,
    streak_seeded: bool,
    event_type: str,
    event_metadata: dict[str, Any],
    occurred_at: datetime,
) -> DailyComplianceSnapshot:
    """Write the merged state onto the row and flush. Caller commits."""
    snapshot.metrics = metrics.to_json()
    snapshot.compliance_score = compliance_score
    snapshot.risk_level = risk_level
    snapshot.streak_count = streak_count
    snapshot.streak_seeded = streak_seeded
    snapshot.last_event_type = event_type
    snapshot.last_event_metadata = json.dumps(event_metadata, default=str)
    snapshot.last_event_at = occurred_at
    db.flush()
    return snapshot


def snapshot_metrics(snapshot: DailyComplianceSnapshot) -> DailyMetrics:
    return DailyMetrics.from_json(snapshot.metrics)
