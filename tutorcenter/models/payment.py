# tutorcenter/models/payment.py
import enum
from sqlalchemy import (Column, Integer, String, Date, DateTime, Float, Boolean, Text,
                        UniqueConstraint, CheckConstraint, Index)
from tutorcenter.database import Base
from datetime import datetime


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    WAIVED = "waived"


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        # One bill per student, class and billing period
        UniqueConstraint("student_sid", "class_id", "academic_year", "month", name="uq_payment_period"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_payment_month"),
        CheckConstraint("amount >= 0", name="ck_payment_amount"),
        Index("ix_payments_year_month", "academic_year", "month"),
    )

    id = Column(Integer, primary_key=True, index=True)

    student_sid = Column(String(50), nullable=False, index=True)
    student_name = Column(String(100), nullable=False)
    student_email = Column(String(100), nullable=False)
    class_id = Column(String(50), nullable=False, index=True)
    class_name = Column(String(100), nullable=False)

    academic_year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)  # 1-12
    amount = Column(Float, nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    payment_method = Column(String(20), nullable=False)

    paid_date = Column(Date, nullable=True)
    receipt_number = Column(String(50), nullable=True)

    invoice_sent = Column(Boolean, default=False, nullable=False)
    invoice_sent_date = Column(Date, nullable=True)
    invoice_number = Column(String(50), nullable=True)

    reminders_sent = Column(Integer, default=0, nullable=False)
    last_reminder_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
