import os

# Must be set before the application modules read their configuration
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTO_GENERATION_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tutorcenter.auth import create_access_token
from tutorcenter.database import Base, enable_sqlite_savepoints, get_db
from tutorcenter.models.enrollment import Enrollment
from tutorcenter.models.generation_status import GenerationStatus
from tutorcenter.models.payment import Payment
from tutorcenter.models.student import Student
from tutorcenter.models.tutor_class import TutorClass
from tutorcenter.services.payment_scheduler import GenerationCheckState

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_savepoints(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Seeder:
    """Creates students, classes and enrollments with sensible defaults."""

    def __init__(self, db):
        self.db = db

    def student(self, sid, name=None, payment_method="Cash", **kwargs):
        student = Student(
            sid=sid,
            name=name or f"Student {sid}",
            email=kwargs.pop("email", f"{sid.lower()}@example.com"),
            contact_number=kwargs.pop("contact_number", "0771234567"),
            payment_method=payment_method,
            **kwargs
        )
        self.db.add(student)
        self.db.commit()
        return student

    def tutor_class(self, class_id, monthly_fee=100.0, name=None, **kwargs):
        tutor_class = TutorClass(
            class_id=class_id,
            name=name or f"Class {class_id}",
            center_id=kwargs.pop("center_id", 1),
            grade=kwargs.pop("grade", 10),
            subject=kwargs.pop("subject", "Mathematics"),
            schedule=kwargs.pop("schedule", "Mon 16:00-18:00"),
            monthly_fee=monthly_fee,
            **kwargs
        )
        self.db.add(tutor_class)
        self.db.commit()
        return tutor_class

    def enrollment(self, student_sid, class_id, status="active", adjustment=None,
                   enrollment_date=None, **kwargs):
        enrollment = Enrollment(
            student_sid=student_sid,
            student_name=f"Student {student_sid}",
            class_id=class_id,
            class_name=f"Class {class_id}",
            enrollment_date=enrollment_date or datetime(2024, 1, 1),
            status=status,
            **kwargs
        )
        if adjustment:
            enrollment.fee_adjustment_type = adjustment[0]
            enrollment.fee_adjustment_value = adjustment[1]
        self.db.add(enrollment)
        self.db.commit()
        return enrollment

    def enrolled_student(self, sid, class_id, monthly_fee=100.0, **kwargs):
        """Student + class + active enrollment in one call."""
        self.student(sid)
        if not self.db.query(TutorClass).filter(TutorClass.class_id == class_id).first():
            self.tutor_class(class_id, monthly_fee=monthly_fee)
        return self.enrollment(sid, class_id, **kwargs)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def seed(db):
    return Seeder(db)


@pytest.fixture
def count_payments(db):
    def _count(**filters):
        query = db.query(Payment).filter_by(**filters)
        return query.count()
    return _count


@pytest.fixture
def ledger_row(db):
    def _row(month, year):
        row = db.query(GenerationStatus).filter_by(month=month, year=year).first()
        if row is not None:
            db.refresh(row)
        return row
    return _row


@pytest.fixture
def client(db):
    from main import app

    # Requests run one at a time on the test session, so the in-memory
    # database only ever sees one transaction
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.state.session_factory = lambda: db
    app.state.generation_check_state = GenerationCheckState(enabled=False)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "admin", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def staff_headers():
    token = create_access_token({"sub": "reception", "role": "staff"})
    return {"Authorization": f"Bearer {token}"}
