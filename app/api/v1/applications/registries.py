"""
Storage collaborators for the provisioning engine.

The engine only sees the Protocols below. The SQL implementations commit every write on
its own (no transaction spans engine steps) and translate database failures:
unique-constraint violations become DuplicateRecordError, anything else InternalError
with the driver exception chained.
"""

from typing import Any, Dict, Optional, Protocol
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import Account
from app.auth.security import hash_password
from app.core.exceptions import DuplicateRecordError, InternalError
from app.core.models import Application, Student

from . import audit_service


class ApplicationRegistry(Protocol):
    async def find_by_id(self, application_id: UUID) -> Optional[Application]:
        ...

    async def save(self, application: Application) -> Application:
        ...


class StudentRegistry(Protocol):
    async def find_by_email(self, email: str) -> Optional[Student]:
        ...

    async def create(self, fields: Dict[str, Any]) -> Student:
        ...

    async def count(self) -> int:
        ...


class AccountStore(Protocol):
    """Password is accepted as plaintext and hashed by the store."""

    async def find_by_email(self, email: str) -> Optional[Account]:
        ...

    async def create(self, fields: Dict[str, Any], password: str) -> Account:
        ...

    async def save(self, account: Account, password: Optional[str] = None) -> Account:
        ...


class AuditTrail(Protocol):
    async def record(
        self,
        entity_type: str,
        entity_id: UUID,
        action: str,
        *,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        performed_by: Optional[UUID] = None,
        remarks: Optional[str] = None,
    ) -> None:
        ...


# ----- SQLAlchemy implementations -----

class _SqlRepository:
    entity_name = "record"

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _scalar(self, stmt):
        try:
            return (await self.db.execute(stmt)).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise InternalError(f"Could not read {self.entity_name}") from e

    async def _commit(self, obj):
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise DuplicateRecordError(f"{self.entity_name.capitalize()} already exists") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise InternalError(f"Could not save {self.entity_name}") from e
        await self.db.refresh(obj)
        return obj


class SqlApplicationRegistry(_SqlRepository):
    entity_name = "application"

    async def find_by_id(self, application_id: UUID) -> Optional[Application]:
        return await self._scalar(select(Application).where(Application.id == application_id))

    async def save(self, application: Application) -> Application:
        self.db.add(application)
        return await self._commit(application)


class SqlStudentRegistry(_SqlRepository):
    entity_name = "student"

    async def find_by_email(self, email: str) -> Optional[Student]:
        return await self._scalar(select(Student).where(Student.email == email.strip().lower()))

    async def create(self, fields: Dict[str, Any]) -> Student:
        student = Student(**fields)
        self.db.add(student)
        return await self._commit(student)

    async def count(self) -> int:
        return await self._scalar(select(func.count(Student.id))) or 0


class SqlAccountStore(_SqlRepository):
    entity_name = "account"

    async def find_by_email(self, email: str) -> Optional[Account]:
        return await self._scalar(select(Account).where(Account.email == email.strip().lower()))

    async def find_by_id(self, account_id: UUID) -> Optional[Account]:
        return await self._scalar(select(Account).where(Account.id == account_id))

    async def create(self, fields: Dict[str, Any], password: str) -> Account:
        account = Account(**fields, password_hash=hash_password(password))
        self.db.add(account)
        return await self._commit(account)

    async def save(self, account: Account, password: Optional[str] = None) -> Account:
        if password is not None:
            account.password_hash = hash_password(password)
        self.db.add(account)
        return await self._commit(account)


class SqlAuditTrail(_SqlRepository):
    entity_name = "audit entry"

    async def record(
        self,
        entity_type: str,
        entity_id: UUID,
        action: str,
        *,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        performed_by: Optional[UUID] = None,
        remarks: Optional[str] = None,
    ) -> None:
        await audit_service.log_audit(
            self.db,
            entity_type,
            entity_id,
            action,
            from_status=from_status,
            to_status=to_status,
            performed_by=performed_by,
            remarks=remarks,
        )
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise InternalError("Could not write audit entry") from e
