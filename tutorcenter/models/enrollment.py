# tutorcenter/models/enrollment.py
import enum
from sqlalchemy import Column, Integer, String, Float, DateTime, UniqueConstraint
from datetime import datetime
from tutorcenter.database import Base
from tutorcenter.schemas.fee_adjustment import parse_fee_adjustment


class EnrollmentStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    WITHDRAWN = "withdrawn"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_sid", "class_id", name="uq_enrollment_student_class"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Snapshots of the student and class at registration time
    student_sid = Column(String(50), nullable=False, index=True)
    student_name = Column(String(100), nullable=False)
    class_id = Column(String(50), nullable=False, index=True)
    class_name = Column(String(100), nullable=False)

    enrollment_date = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    status = Column(String(20), nullable=False, default=EnrollmentStatus.ACTIVE.value, index=True)
    end_date = Column(DateTime, nullable=True)

    # 'discount' | 'waiver' | 'custom'
    fee_adjustment_type = Column(String(20), nullable=True)
    fee_adjustment_value = Column(Float, nullable=True)
    fee_adjustment_reason = Column(String(255), nullable=True)

    notes = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def fee_adjustment(self):
        """Typed fee adjustment (or None) built from the flat columns."""
        if not self.fee_adjustment_type:
            return None
        return parse_fee_adjustment({
            "kind": self.fee_adjustment_type,
            "value": self.fee_adjustment_value if self.fee_adjustment_value is not None else 0,
            "reason": self.fee_adjustment_reason,
        })
