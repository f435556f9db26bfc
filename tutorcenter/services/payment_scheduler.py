# -*- coding: utf-8 -*-
"""
Periodic "is the current month billed?" check.

The check is request driven: the HTTP middleware asks ``GenerationCheckState``
whether an interval has elapsed since the last check and, if so, runs
``run_scheduled_check`` in the background after the response is sent.
"""
import logging
import threading
import time
from datetime import date

from sqlalchemy.orm import Session

from tutorcenter.config import settings
from tutorcenter.services import generation_ledger
from tutorcenter.services.payment_generator import generate_monthly_payments

logger = logging.getLogger(__name__)


class GenerationCheckState:
    """Owns the time of the last check. One instance per application."""

    def __init__(self, interval_seconds=None, enabled=None, clock=time.monotonic):
        self.interval_seconds = (settings.GENERATION_CHECK_INTERVAL_SECONDS
                                 if interval_seconds is None else interval_seconds)
        self.enabled = settings.AUTO_GENERATION_ENABLED if enabled is None else enabled
        self.clock = clock
        self.last_check_time = None
        self._lock = threading.Lock()

    def should_check(self):
        """True (and the slot is taken) when a check is due."""
        if not self.enabled:
            return False
        with self._lock:
            now = self.clock()
            if self.last_check_time is not None and now - self.last_check_time < self.interval_seconds:
                return False
            self.last_check_time = now
            return True

    def reset(self):
        with self._lock:
            self.last_check_time = None


def check_current_month(db: Session, today: date = None):
    today = today or date.today()
    month, year = today.month, today.year

    status = generation_ledger.get_status(db, month, year)
    if status is None or not status.is_complete:
        logger.info(f"Starting payment generation for {month}/{year}")
        result = generate_monthly_payments(db, month, year)
        return {
            "success": result.success,
            "message": f"Auto-generated payments for {month}/{year}",
            "result": result.model_dump()
        }

    return {
        "success": True,
        "message": f"Payments already generated for {month}/{year}",
        "status": {
            "month": status.month,
            "year": status.year,
            "count": status.count,
            "is_complete": status.is_complete,
            "generated_at": status.generated_at.isoformat() if status.generated_at else None
        }
    }


def run_scheduled_check(session_factory, state: GenerationCheckState = None):
    """Background entry point: opens its own session, never raises."""
    if state is not None and not state.should_check():
        return None

    db = None
    try:
        db = session_factory()
        result = check_current_month(db)
        logger.info(f"Scheduled payment check: {result['message']}")
        return result
    except Exception as e:
        logger.error(f"Scheduled payment check failed: {e}", exc_info=True)
        return None
    finally:
        if db is not None:
            db.close()
