"""
Student profile. At most one per email; created on first approval of an application
with that email and never re-created.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import JSON, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, Uuid

from app.core.enums import StudentStatus
from app.db.session import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Auto-generated STU00001; identification only, never used for joins
    student_code = Column(String(20), nullable=False, unique=True)
    application_id = Column(Uuid, ForeignKey("applications.id", ondelete="SET NULL"), nullable=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    department = Column(String(255), nullable=True)
    program = Column(String(255), nullable=True)
    term = Column(Integer, nullable=False, default=1)
    subject_ids = Column(JSON, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=StudentStatus.ACTIVE.value)
    gpa = Column(Float, nullable=True)
    enrollment_date = Column(Date, default=date.today, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
