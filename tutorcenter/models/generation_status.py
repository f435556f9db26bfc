# -*- coding: utf-8 -*-
"""
SQLAlchemy model for the payment generation ledger: one row per billing period.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, UniqueConstraint, CheckConstraint
from tutorcenter.database import Base
from datetime import datetime


class GenerationStatus(Base):
    __tablename__ = 'payment_generation_status'
    __table_args__ = (
        UniqueConstraint('year', 'month', name='uq_generation_period'),
        CheckConstraint('month >= 1 AND month <= 12', name='ck_generation_month'),
    )

    id = Column(Integer, primary_key=True, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)

    generated_at = Column(DateTime, default=datetime.utcnow)
    generated_by = Column(String(50), default='system', nullable=False)
    count = Column(Integer, default=0, nullable=False)

    # False while a run is in progress or after it was interrupted
    is_complete = Column(Boolean, default=False, nullable=False)
    # Token of the run currently holding the period, None when free
    run_token = Column(String(64), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
