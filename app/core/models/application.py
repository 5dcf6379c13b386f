"""
Admission application: submitted by a prospective student. Identity fields are immutable;
status, reviewer and rejection reason change only through the provisioning engine.
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Float, String, Text, Uuid

from app.core.enums import ApplicationStatus
from app.db.session import Base


class Application(Base):
    __tablename__ = "applications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # Human-readable number: APP000001, APP000002, ...
    application_number = Column(String(20), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=False)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    department = Column(String(255), nullable=True)
    program = Column(String(255), nullable=False)
    previous_education = Column(String(255), nullable=True)
    percentage = Column(Float, nullable=True)
    status = Column(String(20), nullable=False, default=ApplicationStatus.PENDING.value)
    # Reviewing account; set iff status != Pending
    reviewer_id = Column(Uuid, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    # Set iff status == Rejected
    rejection_reason = Column(Text, nullable=True)
    applied_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
