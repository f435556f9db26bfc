# -*- coding: utf-8 -*-
"""
Monthly payment generation.

One run bills every active enrollment for one period (month, year). It is
safe to call repeatedly: a period already marked complete in the ledger
returns immediately, and inside a run each enrollment is checked against the
existing payments before a new one is built.
"""
import logging
from datetime import date

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tutorcenter.config import settings
from tutorcenter.models.enrollment import Enrollment, EnrollmentStatus
from tutorcenter.models.payment import Payment
from tutorcenter.models.student import Student
from tutorcenter.models.tutor_class import TutorClass
from tutorcenter.schemas.generation import GenerationResult
from tutorcenter.services import generation_ledger
from tutorcenter.services.fee_calculator import (compute_fee, compute_prorated_amount,
                                                 payment_status_for)

logger = logging.getLogger(__name__)


def payment_exists(db: Session, student_sid: str, class_id: str, month: int, year: int) -> bool:
    return db.query(Payment.id).filter(
        Payment.student_sid == student_sid,
        Payment.class_id == class_id,
        Payment.academic_year == year,
        Payment.month == month
    ).first() is not None


def due_date_for(month: int, year: int) -> date:
    return date(year, month, settings.PAYMENT_DUE_DAY)


def _base_fee(tutor_class, enrollment, month, year, prorate):
    if not prorate or enrollment.enrollment_date is None:
        return tutor_class.monthly_fee
    return compute_prorated_amount(tutor_class.monthly_fee, enrollment.enrollment_date, month, year)


def _fee_adjustment_of(enrollment):
    """The enrollment's adjustment, or None when the stored one does not validate."""
    try:
        return enrollment.fee_adjustment
    except ValidationError as e:
        logger.warning(
            f"Enrollment {enrollment.id}: invalid fee adjustment "
            f"({enrollment.fee_adjustment_type}={enrollment.fee_adjustment_value}) ignored, "
            f"billing the class fee. {e.error_count()} validation error(s)"
        )
        return None


def build_payment(enrollment, tutor_class, student, month: int, year: int, prorate: bool = False) -> Payment:
    amount = compute_fee(_base_fee(tutor_class, enrollment, month, year, prorate), _fee_adjustment_of(enrollment))
    return Payment(
        student_sid=student.sid,
        student_name=student.name,
        student_email=student.email,
        class_id=tutor_class.class_id,
        class_name=tutor_class.name,
        academic_year=year,
        month=month,
        amount=amount,
        due_date=due_date_for(month, year),
        status=payment_status_for(amount).value,
        payment_method=student.payment_method,
        invoice_sent=False,
        reminders_sent=0
    )


def insert_unordered(db: Session, payments) -> int:
    """
    Inserts each payment in its own savepoint so a duplicate key or constraint
    error on one row leaves the others in place. Returns how many were inserted.
    """
    inserted = 0
    for payment in payments:
        try:
            with db.begin_nested():
                db.add(payment)
            inserted += 1
        except IntegrityError as e:
            logger.warning(
                f"Payment for {payment.student_sid}/{payment.class_id} "
                f"{payment.month}/{payment.academic_year} not inserted: {e.orig}"
            )
    db.commit()
    return inserted


def generate_monthly_payments(db: Session, month: int, year: int, force: bool = False,
                              prorate: bool = None, generated_by: str = "system") -> GenerationResult:
    """
    Generates the payments of every active enrollment for ``month``/``year``.

    Never raises: every failure is reported as ``success=False`` with the error
    message, after the period was left incomplete in the ledger.
    """
    if not isinstance(month, int) or not 1 <= month <= 12 or not isinstance(year, int) or year <= 0:
        return GenerationResult(success=False, error=f"Invalid billing period: {month}/{year}")

    if prorate is None:
        prorate = settings.PAYMENT_PRORATION_ENABLED

    run_token = None
    try:
        # 1. Period already billed
        existing = generation_ledger.get_status(db, month, year)
        if existing and existing.is_complete and not force:
            return GenerationResult(
                success=True,
                message=f"Payments were already generated for {month}/{year}",
                new_count=0,
                skip_count=existing.count
            )
        previous_count = existing.count if existing and existing.is_complete else 0

        # 2. Claim the period
        run_token = generation_ledger.begin_run(db, month, year, generated_by=generated_by, force=force)
        if run_token is None:
            current = generation_ledger.get_status(db, month, year)
            if current and current.is_complete and not force:
                return GenerationResult(
                    success=True,
                    message=f"Payments were already generated for {month}/{year}",
                    new_count=0,
                    skip_count=current.count
                )
            return GenerationResult(
                success=False,
                error=f"Payment generation for {month}/{year} is already in progress"
            )

        logger.info(f"Starting payment generation for {month}/{year} (run {run_token})")

        # 3. Active enrollments
        enrollments = db.query(Enrollment).filter(
            Enrollment.status == EnrollmentStatus.ACTIVE.value
        ).order_by(Enrollment.id).all()
        logger.info(f"Found {len(enrollments)} active enrollments.")

        batch = []
        skip_count = 0

        # 4. One payment per enrollment
        for enrollment in enrollments:
            if payment_exists(db, enrollment.student_sid, enrollment.class_id, month, year):
                skip_count += 1
                continue

            tutor_class = db.query(TutorClass).filter(TutorClass.class_id == enrollment.class_id).first()
            if not tutor_class:
                logger.warning(f"Enrollment {enrollment.id}: class {enrollment.class_id} not found. Skipping.")
                continue

            student = db.query(Student).filter(Student.sid == enrollment.student_sid).first()
            if not student:
                logger.warning(f"Enrollment {enrollment.id}: student {enrollment.student_sid} not found. Skipping.")
                continue

            payment = build_payment(enrollment, tutor_class, student, month, year, prorate=prorate)
            batch.append(payment)
            logger.info(f"-> GENERATED: {student.name} | {tutor_class.name} | Due: {payment.due_date} | {payment.amount}")

        # 5. Unordered insert
        new_count = insert_unordered(db, batch) if batch else 0
        skip_count += len(batch) - new_count

        # 6. Close the run
        message = f"Generated {new_count} new payment records, skipped {skip_count} existing records"
        if not generation_ledger.complete_run(db, month, year, previous_count + new_count, run_token=run_token):
            logger.error(
                f"Run {run_token} lost its lease on {month}/{year}: {new_count} payments inserted, "
                f"the period was not marked complete by this run"
            )
            message += " (generation lease lost, period not marked complete by this run)"

        logger.info(f"SUCCESS: {new_count} new payments for {month}/{year}, {skip_count} skipped.")
        return GenerationResult(
            success=True,
            message=message,
            new_count=new_count,
            skip_count=skip_count
        )

    except Exception as e:
        logger.error(f"Error generating monthly payments for {month}/{year}: {e}", exc_info=True)
        generation_ledger.mark_failed(db, month, year, run_token=run_token)
        return GenerationResult(success=False, error=str(e))
