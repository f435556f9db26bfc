# -*- coding: utf-8 -*-
"""
Generation status ledger: one persisted row per billing period (month, year).

The row is the single source of truth for "was this period already billed".
A run claims the period with ``begin_run`` (a conditional UPDATE carrying a
run token, so two live runs cannot scan the same period at once), and releases
it with ``complete_run`` on success or ``mark_failed`` on error. A run that
dies without releasing leaves ``is_complete=False`` and a stale token; the
period becomes claimable again once the lease expires.
"""
import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tutorcenter.config import settings
from tutorcenter.models.generation_status import GenerationStatus

logger = logging.getLogger(__name__)


def _period_query(db: Session, month: int, year: int):
    return db.query(GenerationStatus).filter(
        GenerationStatus.month == month,
        GenerationStatus.year == year
    )


def get_status(db: Session, month: int, year: int):
    return _period_query(db, month, year).first()


def list_statuses(db: Session, limit: int = 24):
    return db.query(GenerationStatus).order_by(
        GenerationStatus.year.desc(),
        GenerationStatus.month.desc()
    ).limit(limit).all()


def _ensure_row(db: Session, month: int, year: int, generated_by: str = "system"):
    """Creates the ledger row for the period if it does not exist yet."""
    if get_status(db, month, year) is not None:
        return
    try:
        with db.begin_nested():
            db.add(GenerationStatus(
                year=year,
                month=month,
                generated_at=datetime.utcnow(),
                generated_by=generated_by,
                count=0,
                is_complete=False
            ))
    except IntegrityError:
        # Another run inserted the same period first, its row is reused
        logger.debug(f"Ledger row for {month}/{year} created concurrently")


def begin_run(db: Session, month: int, year: int, generated_by: str = "system",
              force: bool = False, lease_minutes: int = None):
    """
    Marks the period as in progress and returns the run token.

    Returns None when another run holds a live lease on the period, or when
    the period is already complete and ``force`` is not set.
    """
    if lease_minutes is None:
        lease_minutes = settings.GENERATION_LEASE_MINUTES

    _ensure_row(db, month, year, generated_by)

    now = datetime.utcnow()
    run_token = uuid.uuid4().hex
    lease_expired = now - timedelta(minutes=lease_minutes)

    query = _period_query(db, month, year).filter(
        or_(GenerationStatus.run_token.is_(None), GenerationStatus.generated_at < lease_expired)
    )
    if not force:
        query = query.filter(GenerationStatus.is_complete == False)

    claimed = query.update({
        GenerationStatus.is_complete: False,
        GenerationStatus.generated_at: now,
        GenerationStatus.generated_by: generated_by,
        GenerationStatus.count: 0,
        GenerationStatus.run_token: run_token,
    }, synchronize_session=False)
    db.commit()

    if not claimed:
        logger.info(f"Generation for {month}/{year} not claimed (complete or held by another run)")
        return None
    return run_token


def complete_run(db: Session, month: int, year: int, count: int, run_token: str = None):
    """
    Marks the period complete with the number of payments produced.
    Returns False if the run lost its lease in the meantime.
    """
    _ensure_row(db, month, year)

    query = _period_query(db, month, year)
    if run_token is not None:
        query = query.filter(GenerationStatus.run_token == run_token)

    updated = query.update({
        GenerationStatus.is_complete: True,
        GenerationStatus.count: count,
        GenerationStatus.run_token: None,
    }, synchronize_session=False)
    db.commit()

    if not updated:
        logger.warning(f"Run {run_token} lost its lease on {month}/{year} before completing")
        return False
    return True


def mark_failed(db: Session, month: int, year: int, run_token: str = None):
    """
    Best effort: leaves the period incomplete and releases the lease so the
    recovery scan picks it up. Errors here are logged and never raised, the
    error that caused the failure is the one reported to the caller.

    Only the run holding ``run_token`` releases the lease. Without a token (the
    run failed before claiming the period) the row is created if missing and
    otherwise left alone, since another run may hold it.
    """
    try:
        db.rollback()
        _ensure_row(db, month, year)
        if run_token is not None:
            released = _period_query(db, month, year).filter(
                GenerationStatus.run_token == run_token
            ).update({
                GenerationStatus.is_complete: False,
                GenerationStatus.run_token: None,
            }, synchronize_session=False)
            if not released:
                logger.warning(f"Run {run_token} no longer holds {month}/{year}, lease left to its holder")
        db.commit()
    except Exception as e:
        logger.error(f"Could not mark generation for {month}/{year} as failed: {e}")
        try:
            db.rollback()
        except Exception:
            logger.debug("Rollback after failed ledger update also failed", exc_info=True)
