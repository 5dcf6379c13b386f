from app.core.models.application import Application
from app.core.models.student import Student
from app.core.models.audit_log import AuditLog

__all__ = [
    "Application",
    "Student",
    "AuditLog",
]
