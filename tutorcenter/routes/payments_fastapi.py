# -*- coding: utf-8 -*-
"""
FastAPI routes for payments: listing, manual creation, updates and the
monthly generation trigger.
"""
import logging
import math
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tutorcenter import auth
from tutorcenter.database import get_db
from tutorcenter.models.payment import Payment, PaymentStatus
from tutorcenter.models.tutor_class import TutorClass
from tutorcenter.schemas.generation import GenerationRequest, GenerationResult
from tutorcenter.schemas.payment import (PaymentCreate, PaymentPaginated, PaymentRead,
                                         PaymentUpdate, ProrationPreview)
from tutorcenter.services.fee_calculator import compute_prorated_amount
from tutorcenter.services.payment_generator import generate_monthly_payments, payment_exists

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Payments"],
    responses={404: {"description": "Not found"}},
)


@router.get("", response_model=PaymentPaginated)
def read_payments(
    student_id: Optional[str] = None,
    class_id: Optional[str] = None,
    status: Optional[str] = None,
    month: Optional[int] = None,
    year: Optional[int] = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """
    Lists payments with filters, ordered by due date.
    """
    page = max(page, 1)
    limit = max(limit, 1)

    query = db.query(Payment)
    if student_id:
        query = query.filter(Payment.student_sid == student_id)
    if class_id:
        query = query.filter(Payment.class_id == class_id)
    if status:
        query = query.filter(Payment.status == status)
    if month:
        query = query.filter(Payment.month == month)
    if year:
        query = query.filter(Payment.academic_year == year)

    # Count BEFORE limit/offset
    total = query.count()

    payments = query.order_by(Payment.due_date.asc(), Payment.id.asc())\
                    .offset((page - 1) * limit).limit(limit).all()

    return {
        "payments": payments,
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit)
        }
    }


@router.post("", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
def create_payment(payment: PaymentCreate, db: Session = Depends(get_db)):
    if payment_exists(db, payment.student_sid, payment.class_id, payment.month, payment.academic_year):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Payment record already exists for this student, class, month and year"
        )

    data = payment.model_dump()
    data["status"] = payment.status.value
    db_payment = Payment(**data)
    try:
        db.add(db_payment)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Payment record already exists for this student, class, month and year"
        )
    db.refresh(db_payment)
    return db_payment


@router.post("/generate", response_model=GenerationResult)
def generate_payments(
    request: GenerationRequest,
    db: Session = Depends(get_db),
    current_user: dict = Depends(auth.get_admin_or_manager)
):
    """
    Generates the monthly payments of a period. Safe to retry: a period that
    is already complete is not billed twice.
    """
    if request.check_current_month:
        today = date.today()
        month, year = today.month, today.year
    else:
        if not request.month or not request.year:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Month and year are required for batch payment generation"
            )
        month, year = request.month, request.year

    logger.info(f"Generation of {month}/{year} requested by {current_user['username']}")
    return generate_monthly_payments(
        db, month, year,
        force=request.force,
        prorate=request.prorate,
        generated_by=current_user["username"]
    )


@router.get("/proration", response_model=ProrationPreview)
def preview_proration(class_id: str, enrollment_date: date, month: int, year: int, db: Session = Depends(get_db)):
    """
    Prorated first-month amount for an enrollment starting on ``enrollment_date``.
    """
    if not 1 <= month <= 12 or year <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid month or year")

    tutor_class = db.query(TutorClass).filter(TutorClass.class_id == class_id).first()
    if not tutor_class:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")

    return {
        "class_id": tutor_class.class_id,
        "monthly_fee": tutor_class.monthly_fee,
        "enrollment_date": enrollment_date,
        "month": month,
        "year": year,
        "amount": compute_prorated_amount(tutor_class.monthly_fee, enrollment_date, month, year)
    }


@router.patch("/{payment_id}", response_model=PaymentRead)
def update_payment(payment_id: int, payment_update: PaymentUpdate, db: Session = Depends(get_db)):
    """
    Updates status, invoice tracking, notes or amount of a payment.
    """
    db_payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if db_payment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")

    update_data = payment_update.model_dump(exclude_unset=True)

    new_status = update_data.pop("status", None)
    if new_status is not None:
        db_payment.status = new_status.value
        if new_status == PaymentStatus.PAID:
            db_payment.paid_date = update_data.pop("paid_date", None) or date.today()

    if update_data.pop("invoice_sent", None):
        db_payment.invoice_sent = True
        db_payment.invoice_sent_date = update_data.pop("invoice_sent_date", None) or date.today()

    for key, value in update_data.items():
        if value is not None:
            setattr(db_payment, key, value)

    db.commit()
    db.refresh(db_payment)
    return db_payment
