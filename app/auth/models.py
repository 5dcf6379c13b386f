import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text, Uuid

from app.core.enums import AccountRole
from app.db.session import Base


class Account(Base):
    """Login identity. Email is unique across every role; profile links depend on role."""

    __tablename__ = "accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    # admin | student | faculty
    role = Column(String(20), nullable=False, default=AccountRole.STUDENT.value)
    is_approved = Column(Boolean, nullable=False, default=False)
    must_change_password = Column(Boolean, nullable=False, default=False)
    application_id = Column(Uuid, ForeignKey("applications.id", ondelete="SET NULL"), nullable=True)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="SET NULL"), nullable=True)
    # Faculty profiles live outside this service; plain reference only
    faculty_id = Column(Uuid, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
