"""In-memory collaborators for exercising the provisioning engine without a database."""

import asyncio
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from app.auth.models import Account
from app.auth.security import hash_password
from app.core.enums import ApplicationStatus
from app.core.exceptions import DuplicateRecordError
from app.core.models import Application, Student
from app.notifications.base import DeliveryResult


def make_application(email: str = "a@x.com", status: str = ApplicationStatus.PENDING.value, **overrides) -> Application:
    fields = dict(
        id=uuid.uuid4(),
        application_number="APP000001",
        name="Asha Verma",
        email=email,
        phone="+911234567890",
        date_of_birth=date(2005, 4, 12),
        gender="Female",
        address="12 Park Street",
        department="Engineering",
        program="B.Tech Computer Science",
        status=status,
        applied_at=datetime.utcnow(),
    )
    fields.update(overrides)
    return Application(**fields)


class InMemoryApplicationRegistry:
    def __init__(self, *applications: Application) -> None:
        self.rows: Dict[UUID, Application] = {a.id: a for a in applications}
        self.saves = 0

    async def find_by_id(self, application_id: UUID) -> Optional[Application]:
        await asyncio.sleep(0)
        return self.rows.get(application_id)

    async def save(self, application: Application) -> Application:
        await asyncio.sleep(0)
        self.rows[application.id] = application
        self.saves += 1
        return application


class InMemoryStudentRegistry:
    def __init__(self) -> None:
        self.rows: List[Student] = []

    async def find_by_email(self, email: str) -> Optional[Student]:
        await asyncio.sleep(0)
        email = email.strip().lower()
        return next((s for s in self.rows if s.email == email), None)

    async def create(self, fields: Dict[str, Any]) -> Student:
        await asyncio.sleep(0)
        if any(s.email == fields["email"] or s.student_code == fields["student_code"] for s in self.rows):
            raise DuplicateRecordError("Student already exists")
        student = Student(id=uuid.uuid4(), **fields)
        self.rows.append(student)
        return student

    async def count(self) -> int:
        await asyncio.sleep(0)
        return len(self.rows)

    def add_existing(self, email: str, student_code: str) -> Student:
        student = Student(id=uuid.uuid4(), email=email, student_code=student_code, name="Existing", term=1)
        self.rows.append(student)
        return student


class InMemoryAccountStore:
    def __init__(self) -> None:
        self.rows: List[Account] = []
        self.plaintext: Dict[str, str] = {}

    async def find_by_email(self, email: str) -> Optional[Account]:
        await asyncio.sleep(0)
        email = email.strip().lower()
        return next((a for a in self.rows if a.email == email), None)

    async def create(self, fields: Dict[str, Any], password: str) -> Account:
        await asyncio.sleep(0)
        if any(a.email == fields["email"] for a in self.rows):
            raise DuplicateRecordError("Account already exists")
        account = Account(id=uuid.uuid4(), password_hash=hash_password(password), **fields)
        self.rows.append(account)
        self.plaintext[account.email] = password
        return account

    async def save(self, account: Account, password: Optional[str] = None) -> Account:
        await asyncio.sleep(0)
        if password is not None:
            account.password_hash = hash_password(password)
            self.plaintext[account.email] = password
        return account

    def add_existing(self, email: str, role: str, password: str = "Existing123") -> Account:
        account = Account(
            id=uuid.uuid4(),
            email=email,
            role=role,
            password_hash=hash_password(password),
            is_approved=False,
            must_change_password=False,
        )
        self.rows.append(account)
        self.plaintext[email] = password
        return account


class InMemoryAuditTrail:
    def __init__(self) -> None:
        self.entries: List[Tuple[str, UUID, str, Dict[str, Any]]] = []

    async def record(self, entity_type: str, entity_id: UUID, action: str, **kwargs) -> None:
        self.entries.append((entity_type, entity_id, action, kwargs))

    @property
    def actions(self) -> List[str]:
        return [e[2] for e in self.entries]


class RecordingNotifier:
    def __init__(self, success: bool = True, error: str = "SMTP error: connection refused") -> None:
        self.success = success
        self.error = error
        self.approvals: List[Tuple[str, str, str, str]] = []
        self.rejections: List[Tuple[str, str, Optional[str]]] = []

    def _result(self) -> DeliveryResult:
        if self.success:
            return DeliveryResult(success=True, message_id="<test@local>")
        return DeliveryResult.failed(self.error)

    async def send_approval(self, email: str, name: str, student_code: str, temp_password: str) -> DeliveryResult:
        self.approvals.append((email, name, student_code, temp_password))
        return self._result()

    async def send_rejection(self, email: str, name: str, reason: Optional[str]) -> DeliveryResult:
        self.rejections.append((email, name, reason))
        return self._result()


class HangingNotifier(RecordingNotifier):
    async def send_approval(self, email: str, name: str, student_code: str, temp_password: str) -> DeliveryResult:
        self.approvals.append((email, name, student_code, temp_password))
        await asyncio.sleep(3600)
        return self._result()


class RaisingNotifier(RecordingNotifier):
    async def send_approval(self, email: str, name: str, student_code: str, temp_password: str) -> DeliveryResult:
        raise RuntimeError("transport exploded")

    async def send_rejection(self, email: str, name: str, reason: Optional[str]) -> DeliveryResult:
        raise RuntimeError("transport exploded")
