# -*- coding: utf-8 -*-
"""
SQLAlchemy model for a tutoring class.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime
from tutorcenter.database import Base
from datetime import datetime


class TutorClass(Base):
    __tablename__ = 'classes'
    __table_args__ = {'extend_existing': True}

    id = Column(Integer, primary_key=True, index=True)
    class_id = Column(String(50), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    center_id = Column(Integer, nullable=False)
    grade = Column(Integer, nullable=False)
    subject = Column(String(100), nullable=False)
    schedule = Column(String(255), nullable=False)

    # Base fee billed every month before any enrollment adjustment
    monthly_fee = Column(Float, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
