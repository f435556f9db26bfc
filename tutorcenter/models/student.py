from sqlalchemy import Column, Integer, String, DateTime
from tutorcenter.database import Base
from datetime import datetime


PAYMENT_METHODS = ("Cash", "Invoice")


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    sid = Column(String(50), unique=True, index=True, nullable=False)

    name = Column(String(100), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    contact_number = Column(String(20), nullable=False)
    payment_method = Column(String(20), nullable=False, default=PAYMENT_METHODS[0])

    parent_name = Column(String(100), nullable=True)
    parent_email = Column(String(100), nullable=True, index=True)
    parent_contact_number = Column(String(20), nullable=True)

    joined_date = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
