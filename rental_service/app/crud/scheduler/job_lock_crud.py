import logging
from datetime import datetime, timedelta

from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models.system.scheduler_locks import SchedulerLock

logger = logging.getLogger(__name__)


def acquire_job_lock(db: Session, job_name: str, holder: str, now: datetime, ttl: timedelta) -> bool:
    """Take the named lock until ``now + ttl``.

    Succeeds when the lock is free, expired, or already held by ``holder``.
    """
    locked_until = now + ttl

    result = db.execute(
        update(SchedulerLock)
        .where(
            SchedulerLock.job_name == job_name,
            or_(
                SchedulerLock.locked_until.is_(None),
                SchedulerLock.locked_until < now,
                SchedulerLock.locked_by == holder,
            ),
        )
        .values(locked_by=holder, locked_until=locked_until)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        db.commit()
        return True

    if db.query(SchedulerLock.job_name).filter(SchedulerLock.job_name == job_name).first():
        db.rollback()
        logger.info("Job %s is locked by another instance", job_name)
        return False

    db.add(SchedulerLock(job_name=job_name, locked_by=holder, locked_until=locked_until))
    try:
        db.commit()
        return True
    except IntegrityError:
        # another instance created the row first
        db.rollback()
        return False


def release_job_lock(db: Session, job_name: str, holder: str):
    db.execute(
        update(SchedulerLock)
        .where(SchedulerLock.job_name == job_name, SchedulerLock.locked_by == holder)
        .values(locked_by=None, locked_until=None)
        .execution_options(synchronize_session=False)
    )
    db.commit()
