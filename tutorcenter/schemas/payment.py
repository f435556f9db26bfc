# -*- coding: utf-8 -*-
"""
Pydantic schemas for the Payment entity.
"""

from pydantic import BaseModel, Field, EmailStr
from typing import Optional, List
from datetime import date, datetime

from tutorcenter.models.payment import PaymentStatus
from tutorcenter.models.student import PAYMENT_METHODS

PAYMENT_METHOD_PATTERN = "^(" + "|".join(PAYMENT_METHODS) + ")$"


# Base schema for Payment
class PaymentBase(BaseModel):
    student_sid: str = Field(..., max_length=50)
    student_name: str = Field(..., max_length=100)
    student_email: EmailStr
    class_id: str = Field(..., max_length=50)
    class_name: str = Field(..., max_length=100)
    academic_year: int = Field(..., gt=0)
    month: int = Field(..., ge=1, le=12)
    amount: float = Field(..., ge=0)
    due_date: date
    status: PaymentStatus = PaymentStatus.PENDING
    payment_method: str = Field(..., pattern=PAYMENT_METHOD_PATTERN)
    notes: Optional[str] = None

# Schema for creating a single Payment by hand
class PaymentCreate(PaymentBase):
    pass

# Schema for updating a Payment (status, invoice tracking, notes)
class PaymentUpdate(BaseModel):
    status: Optional[PaymentStatus] = None
    paid_date: Optional[date] = None
    receipt_number: Optional[str] = Field(None, max_length=50)
    invoice_sent: Optional[bool] = None
    invoice_sent_date: Optional[date] = None
    invoice_number: Optional[str] = Field(None, max_length=50)
    amount: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None

# Schema for reading/returning a Payment
class PaymentRead(PaymentBase):
    id: int
    status: str
    paid_date: Optional[date] = None
    receipt_number: Optional[str] = None
    invoice_sent: bool = False
    invoice_sent_date: Optional[date] = None
    invoice_number: Optional[str] = None
    reminders_sent: int = 0
    last_reminder_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int

class PaymentPaginated(BaseModel):
    payments: List[PaymentRead]
    pagination: Pagination

    class Config:
        from_attributes = True

class ProrationPreview(BaseModel):
    class_id: str
    monthly_fee: float
    enrollment_date: date
    month: int
    year: int
    amount: float
