# -*- coding: utf-8 -*-
"""
Monthly fee rules. Pure functions, no database access.
"""
import calendar
import math
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from tutorcenter.models.payment import PaymentStatus
from tutorcenter.schemas.fee_adjustment import (CustomAdjustment, DiscountAdjustment,
                                                WaiverAdjustment)


def compute_fee(monthly_fee, fee_adjustment=None):
    """
    Amount owed for one month of a class, after the enrollment's adjustment.

    - no adjustment: the class fee
    - discount: class fee minus ``value`` percent
    - waiver: zero
    - custom: ``value`` as an absolute amount
    """
    if fee_adjustment is None:
        return monthly_fee
    if isinstance(fee_adjustment, DiscountAdjustment):
        return monthly_fee * (1 - fee_adjustment.value / 100)
    if isinstance(fee_adjustment, WaiverAdjustment):
        return 0
    if isinstance(fee_adjustment, CustomAdjustment):
        return fee_adjustment.value
    raise TypeError(f"Unsupported fee adjustment: {fee_adjustment!r}")


def payment_status_for(amount):
    return PaymentStatus.WAIVED if amount == 0 else PaymentStatus.PENDING


def _round_half_up(value):
    return float(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_prorated_amount(monthly_fee, enrollment_date, month, year):
    """
    Weekly-bucket proration for an enrollment starting inside the billing month.

    The month is split into ceil(days / 7) weeks. Joining in the first week
    pays the full fee; joining later pays for the remaining weeks only, rounded
    to the nearest whole amount (halves round up).
    """
    if isinstance(enrollment_date, datetime):
        enrollment_date = enrollment_date.date()

    days_in_month = calendar.monthrange(year, month)[1]
    start_of_month = date(year, month, 1)
    end_of_month = date(year, month, days_in_month)

    if enrollment_date < start_of_month:
        return monthly_fee
    if enrollment_date > end_of_month:
        return 0

    weeks_in_month = math.ceil(days_in_month / 7)
    enrollment_week = math.ceil(enrollment_date.day / 7)

    # First week is always full price
    if enrollment_week == 1:
        return monthly_fee

    remaining_weeks = weeks_in_month - enrollment_week + 1
    weekly_rate = monthly_fee / weeks_in_month
    return _round_half_up(remaining_weeks * weekly_rate)
