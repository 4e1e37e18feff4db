import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import timedelta

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from apps.api.app.core.config import settings
from apps.api.app.core.time import utc_now
from apps.api.app.models.cycle_lease import CycleLease

logger = logging.getLogger("cycle_lock")

CYCLE_LOCK_KEY = "drawdown_monitor.cycle"

_process_lock = threading.Lock()


class CycleInProgressError(RuntimeError):
    pass


def get_cycle_lease(db: Session):
    return db.execute(
        select(CycleLease).where(CycleLease.key == CYCLE_LOCK_KEY)
    ).scalar_one_or_none()


def _ensure_lease_row(db: Session):
    if get_cycle_lease(db) is not None:
        return
    db.add(CycleLease(key=CYCLE_LOCK_KEY, held=False))
    try:
        db.commit()
    except IntegrityError:
        # created concurrently by another worker
        db.rollback()


def acquire_cycle_lease(db: Session, *, holder: str, now=None, lease_seconds=None) -> bool:
    """
    Take the cross-process lease with a single conditional UPDATE. A lease
    whose ``expires_at`` has passed belongs to a crashed worker and can be
    taken over.
    """
    now = now or utc_now()
    lease = int(lease_seconds if lease_seconds is not None else settings.MONITOR_CYCLE_LEASE_SECONDS)
    _ensure_lease_row(db)

    result = db.execute(
        update(CycleLease)
        .where(
            CycleLease.key == CYCLE_LOCK_KEY,
            or_(
                CycleLease.held.is_(False),
                CycleLease.expires_at.is_(None),
                CycleLease.expires_at < now,
            ),
        )
        .values(
            held=True,
            holder=holder,
            acquired_at=now,
            expires_at=now + timedelta(seconds=lease),
            updated_at=now,
        )
    )
    db.commit()
    acquired = int(result.rowcount or 0) == 1
    if not acquired:
        logger.info("Cycle lease %s is held by another worker", CYCLE_LOCK_KEY)
    return acquired


def renew_cycle_lease(db: Session, *, holder: str, now=None, lease_seconds=None) -> bool:
    """Push ``expires_at`` forward. False means the lease was lost to another worker."""
    now = now or utc_now()
    lease = int(lease_seconds if lease_seconds is not None else settings.MONITOR_CYCLE_LEASE_SECONDS)
    result = db.execute(
        update(CycleLease)
        .where(
            CycleLease.key == CYCLE_LOCK_KEY,
            CycleLease.holder == holder,
            CycleLease.held.is_(True),
        )
        .values(expires_at=now + timedelta(seconds=lease), updated_at=now)
    )
    db.commit()
    renewed = int(result.rowcount or 0) == 1
    if not renewed:
        logger.warning("Cycle lease %s is no longer held by %s", CYCLE_LOCK_KEY, holder)
    return renewed


def release_cycle_lease(db: Session, *, holder: str):
    db.execute(
        update(CycleLease)
        .where(
            CycleLease.key == CYCLE_LOCK_KEY,
            CycleLease.holder == holder,
        )
        .values(held=False, holder=None, expires_at=None, updated_at=utc_now())
    )
    db.commit()


@contextmanager
def cycle_guard(session_factory, now=None):
    if not _process_lock.acquire(blocking=False):
        raise CycleInProgressError("A drawdown monitoring cycle is already running")
    try:
        holder = str(uuid.uuid4())
        db = session_factory()
        try:
            acquired = acquire_cycle_lease(db, holder=holder, now=now)
        finally:
            db.close()
        if not acquired:
            raise CycleInProgressError("A drawdown monitoring cycle is already running")

        try:
            yield holder
        finally:
            db = session_factory()
            try:
                release_cycle_lease(db, holder=holder)
            except Exception:
                logger.exception("Could not release cycle lease %s", holder)
            finally:
                db.close()
    finally:
        _process_lock.release()
