# -*- coding: utf-8 -*-
"""
Recovery of missed or interrupted payment generation runs.
"""
import logging
from datetime import date

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from tutorcenter.config import settings
from tutorcenter.schemas.generation import PeriodStatus
from tutorcenter.services import generation_ledger
from tutorcenter.services.payment_generator import generate_monthly_payments

logger = logging.getLogger(__name__)


def recent_periods(window_size: int = 3, today: date = None):
    """(month, year) pairs from the current period backwards, newest first."""
    today = today or date.today()
    first_of_month = today.replace(day=1)
    periods = []
    for i in range(window_size):
        period = first_of_month - relativedelta(months=i)
        periods.append((period.month, period.year))
    return periods


def scan_recent_periods(db: Session, window_size: int = None, today: date = None):
    if window_size is None:
        window_size = settings.RECOVERY_WINDOW_MONTHS

    statuses = []
    for month, year in recent_periods(window_size, today):
        status = generation_ledger.get_status(db, month, year)
        statuses.append(PeriodStatus(
            month=month,
            year=year,
            generated=status is not None,
            complete=bool(status and status.is_complete),
            count=status.count if status else 0
        ))
    return statuses


def find_missing_periods(db: Session, window_size: int = None, today: date = None):
    return [p for p in scan_recent_periods(db, window_size, today) if not p.complete]


def trigger_recovery(db: Session, month: int, year: int, force: bool = False, generated_by: str = "recovery"):
    logger.info(f"Recovery requested for {month}/{year} (force={force})")
    return generate_monthly_payments(db, month, year, force=force, generated_by=generated_by)


def recover_missing_periods(db: Session, window_size: int = None, today: date = None):
    """Runs the generator for every incomplete period of the window, oldest first."""
    results = []
    for period in reversed(find_missing_periods(db, window_size, today)):
        result = trigger_recovery(db, period.month, period.year)
        if not result.success:
            logger.error(f"Recovery of {period.month}/{period.year} failed: {result.error}")
        results.append((period, result))
    return results
