"""
Application decisioning: turns an approved application into a Student and a login Account.

Transitions (anything else is a Conflict and writes nothing):
    Pending  --approve--> Approved
    Pending  --reject---> Rejected
    Approved --approve--> Approved   only while no Account exists for the email (recovery)

Each write is committed on its own, so a crash can leave the application, student and
account out of step. Re-running approve converges: existing students are reused, missing
accounts are created, and nothing is duplicated. Notification runs after all writes and
its outcome is returned as data.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Optional, Tuple
from uuid import UUID

from app.auth.models import Account
from app.auth.security import generate_temporary_password
from app.core.enums import AccountRole, ApplicationStatus, Decision, StudentStatus
from app.core.exceptions import (
    ConflictError,
    DuplicateRecordError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from app.core.locks import KeyedLock
from app.core.models import Application, Student
from app.notifications.base import DeliveryResult, Notifier

from .registries import AccountStore, ApplicationRegistry, AuditTrail, StudentRegistry

logger = logging.getLogger(__name__)

STUDENT_CODE_PREFIX = "STU"
MAX_STUDENT_CODE_ATTEMPTS = 20

ALREADY_REJECTED = "Application has already been rejected"
ALREADY_REVIEWED = "Application has already been reviewed"
ALREADY_PROVISIONED = "Application has already been approved and user account exists"

_TRANSITIONS: Dict[Tuple[ApplicationStatus, Decision], ApplicationStatus] = {
    (ApplicationStatus.PENDING, Decision.APPROVE): ApplicationStatus.APPROVED,
    (ApplicationStatus.PENDING, Decision.REJECT): ApplicationStatus.REJECTED,
    (ApplicationStatus.APPROVED, Decision.APPROVE): ApplicationStatus.APPROVED,
}

_REFUSALS: Dict[Tuple[ApplicationStatus, Decision], str] = {
    (ApplicationStatus.APPROVED, Decision.REJECT): ALREADY_REVIEWED,
    (ApplicationStatus.REJECTED, Decision.APPROVE): ALREADY_REJECTED,
    (ApplicationStatus.REJECTED, Decision.REJECT): ALREADY_REVIEWED,
}


def next_status(current: str, decision: Decision) -> ApplicationStatus:
    """Look up the transition table; raise ConflictError for any pair not in it."""
    state = ApplicationStatus(current)
    try:
        return _TRANSITIONS[(state, decision)]
    except KeyError:
        raise ConflictError(
            _REFUSALS.get((state, decision), f"Cannot {decision.value} an application that is {state.value}")
        )


def format_student_code(sequence: int) -> str:
    return f"{STUDENT_CODE_PREFIX}{sequence:05d}"


@dataclass
class ApprovalOverrides:
    """Admin corrections to the applicant's stated department/program."""

    department: Optional[str] = None
    program: Optional[str] = None


@dataclass
class ProvisionResult:
    application: Application
    student: Optional[Student]
    email_sent: bool
    email_error: Optional[str] = None
    # Only filled by resend_credentials
    temp_password: Optional[str] = None
    message: str = ""


def _clean_overrides(overrides: Optional[ApprovalOverrides]) -> ApprovalOverrides:
    if overrides is None:
        return ApprovalOverrides()
    cleaned = ApprovalOverrides()
    for field_name in ("department", "program"):
        value = getattr(overrides, field_name)
        if value is None:
            continue
        value = value.strip()
        if not value:
            raise ValidationError(f"{field_name} override cannot be blank")
        setattr(cleaned, field_name, value)
    return cleaned


class ProvisioningEngine:
    def __init__(
        self,
        applications: ApplicationRegistry,
        students: StudentRegistry,
        accounts: AccountStore,
        notifier: Notifier,
        *,
        audit: Optional[AuditTrail] = None,
        locks: Optional[KeyedLock] = None,
        email_timeout: float = 15.0,
        return_temp_password_on_resend: bool = True,
        password_factory: Callable[[], str] = generate_temporary_password,
    ) -> None:
        self.applications = applications
        self.students = students
        self.accounts = accounts
        self.notifier = notifier
        self.audit = audit
        self.locks = locks or KeyedLock()
        self.email_timeout = email_timeout
        self.return_temp_password_on_resend = return_temp_password_on_resend
        self.password_factory = password_factory

    # ----- Entry points -----

    async def decide(
        self,
        application_id: UUID,
        decision,
        reviewer_id: UUID,
        overrides: Optional[ApprovalOverrides] = None,
        reason: Optional[str] = None,
    ):
        """Dispatch an approve/reject decision. Approve returns ProvisionResult, reject the Application."""
        try:
            decision = Decision(decision)
        except ValueError:
            raise ValidationError(f"Unknown decision: {decision!r}")
        if decision is Decision.APPROVE:
            if reason is not None:
                raise ValidationError("A rejection reason cannot accompany an approval")
            return await self.approve(application_id, reviewer_id, overrides)
        if overrides is not None:
            raise ValidationError("Department/program overrides only apply to approvals")
        return await self.reject(application_id, reviewer_id, reason)

    async def approve(
        self,
        application_id: UUID,
        reviewer_id: UUID,
        overrides: Optional[ApprovalOverrides] = None,
    ) -> ProvisionResult:
        overrides = _clean_overrides(overrides)
        application = await self._load(application_id)

        async with self.locks.hold(_lock_key(application)):
            # Re-read: a concurrent decision may have finished while we waited
            application = await self._load(application_id)
            next_status(application.status, Decision.APPROVE)

            if application.status == ApplicationStatus.APPROVED.value:
                if await self.accounts.find_by_email(application.email) is not None:
                    raise ConflictError(ALREADY_PROVISIONED)
                logger.warning(
                    "Application %s is Approved but has no account; retrying provisioning",
                    application.application_number,
                )
            else:
                await self._mark_approved(application, reviewer_id, overrides)

            student = await self._ensure_student(application, reviewer_id)
            # A failed insert rolls the session back and expires loaded rows; reload before reuse
            application = await self._load(application_id)
            account, temp_password = await self._ensure_account(application, student, reviewer_id)
            application = await self._load(application_id)
            student = await self.students.find_by_email(application.email)

        if temp_password is None:
            return ProvisionResult(
                application=application,
                student=student,
                email_sent=False,
                message=f"Application approved. User already exists with role: {account.role}. No email sent.",
            )

        delivery = await self._notify(
            self.notifier.send_approval,
            application.email,
            application.name,
            student.student_code,
            temp_password,
        )
        if delivery.success:
            message = "Application approved, student created, and email sent successfully"
        else:
            message = "Application approved and student created, but email sending failed"
        return ProvisionResult(
            application=application,
            student=student,
            email_sent=delivery.success,
            email_error=delivery.error,
            message=message,
        )

    async def reject(self, application_id: UUID, reviewer_id: UUID, reason: Optional[str]) -> Application:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")
        application = await self._load(application_id)

        async with self.locks.hold(_lock_key(application)):
            application = await self._load(application_id)
            target = next_status(application.status, Decision.REJECT)
            from_status = application.status
            application.status = target.value
            application.reviewer_id = reviewer_id
            application.reviewed_at = _now()
            application.rejection_reason = reason
            application = await self.applications.save(application)
            await self._audit(
                "application",
                application.id,
                "application_rejected",
                from_status=from_status,
                to_status=target.value,
                performed_by=reviewer_id,
                remarks=reason,
            )

        await self._notify(self.notifier.send_rejection, application.email, application.name, reason)
        return application

    async def resend_credentials(self, application_id: UUID, requested_by: Optional[UUID] = None) -> ProvisionResult:
        """Issue a new temporary password for an approved application's student account."""
        application = await self._load(application_id)

        async with self.locks.hold(_lock_key(application)):
            application = await self._load(application_id)
            if application.status != ApplicationStatus.APPROVED.value:
                raise ConflictError("Credentials can only be re-issued for approved applications")
            student = await self.students.find_by_email(application.email)
            if student is None:
                raise NotFoundError("Student not found")
            account = await self.accounts.find_by_email(application.email)
            if account is None:
                raise NotFoundError("Account not found")
            if account.role != AccountRole.STUDENT.value:
                raise ConflictError(
                    f"Account for this email has role {account.role}; credentials are only re-issued for students"
                )
            temp_password = self.password_factory()
            account.must_change_password = True
            await self.accounts.save(account, password=temp_password)
            await self._audit("account", account.id, "credentials_reissued", performed_by=requested_by)

        delivery = await self._notify(
            self.notifier.send_approval,
            application.email,
            application.name,
            student.student_code,
            temp_password,
        )
        return ProvisionResult(
            application=application,
            student=student,
            email_sent=delivery.success,
            email_error=delivery.error,
            temp_password=temp_password if self.return_temp_password_on_resend else None,
            message="Email resent successfully" if delivery.success else "New password issued, but email sending failed",
        )

    # ----- Steps -----

    async def _load(self, application_id: UUID) -> Application:
        application = await self.applications.find_by_id(application_id)
        if application is None:
            raise NotFoundError("Application not found")
        return application

    async def _mark_approved(
        self, application: Application, reviewer_id: UUID, overrides: ApprovalOverrides
    ) -> None:
        from_status = application.status
        application.status = ApplicationStatus.APPROVED.value
        application.reviewer_id = reviewer_id
        application.reviewed_at = _now()
        application.rejection_reason = None
        if overrides.department:
            application.department = overrides.department
        if overrides.program:
            application.program = overrides.program
        await self.applications.save(application)
        await self._audit(
            "application",
            application.id,
            "application_approved",
            from_status=from_status,
            to_status=ApplicationStatus.APPROVED.value,
            performed_by=reviewer_id,
        )

    async def _ensure_student(self, application: Application, reviewer_id: UUID) -> Student:
        number = application.application_number
        student = await self.students.find_by_email(application.email)
        if student is not None:
            logger.info("Student %s already exists for application %s", student.student_code, number)
            return student

        # Plain values only: a failed insert expires the application row
        fields = {
            "application_id": application.id,
            "name": application.name,
            "email": application.email,
            "phone": application.phone,
            "date_of_birth": application.date_of_birth,
            "gender": application.gender,
            "address": application.address,
            "department": application.department,
            "program": application.program,
            "term": 1,
            "subject_ids": [],
            "status": StudentStatus.ACTIVE.value,
        }
        sequence = await self.students.count() + 1
        for _ in range(MAX_STUDENT_CODE_ATTEMPTS):
            student_code = format_student_code(sequence)
            try:
                student = await self.students.create({**fields, "student_code": student_code})
            except DuplicateRecordError:
                # Either the email was taken by a concurrent approval or the code was
                existing = await self.students.find_by_email(fields["email"])
                if existing is not None:
                    return existing
                sequence += 1
                continue
            logger.info("Student %s created for application %s", student_code, number)
            await self._audit(
                "student",
                student.id,
                "student_created",
                to_status=StudentStatus.ACTIVE.value,
                performed_by=reviewer_id,
            )
            return student
        raise InternalError("Could not allocate a unique student identifier")

    async def _ensure_account(
        self, application: Application, student: Student, reviewer_id: UUID
    ) -> Tuple[Account, Optional[str]]:
        """Returns the account and the temporary password to email (None: leave credentials alone)."""
        # Plain values only: a failed insert expires the application and student rows
        email, application_id, number = application.email, application.id, application.application_number
        student_id = student.id
        account = await self.accounts.find_by_email(email)
        if account is None:
            temp_password = self.password_factory()
            try:
                account = await self.accounts.create(
                    {
                        "email": email,
                        "role": AccountRole.STUDENT.value,
                        "is_approved": True,
                        "must_change_password": True,
                        "application_id": application_id,
                        "student_id": student_id,
                    },
                    password=temp_password,
                )
            except DuplicateRecordError:
                account = await self.accounts.find_by_email(email)
                if account is None:
                    raise
                logger.warning("Account for application %s was created concurrently", number)
            else:
                logger.info("Account created for application %s", number)
                await self._audit("account", account.id, "account_created", performed_by=reviewer_id)
                return account, temp_password

        if account.role == AccountRole.STUDENT.value:
            temp_password = self.password_factory()
            account.must_change_password = True
            account.is_approved = True
            account.student_id = student_id
            account.application_id = application_id
            account = await self.accounts.save(account, password=temp_password)
            logger.info("Existing student account for application %s reset", number)
            await self._audit("account", account.id, "credentials_reset", performed_by=reviewer_id)
            return account, temp_password

        account.is_approved = True
        account = await self.accounts.save(account)
        logger.warning(
            "Application %s shares its email with an existing %s account; credentials left unchanged",
            number,
            account.role,
        )
        await self._audit(
            "account", account.id, "account_approved", performed_by=reviewer_id, remarks=f"role={account.role}"
        )
        return account, None

    async def _notify(self, send: Callable[..., Awaitable[DeliveryResult]], *args) -> DeliveryResult:
        """Run a notifier call under the timeout; any failure comes back as a failed DeliveryResult."""
        try:
            result = await asyncio.wait_for(send(*args), timeout=self.email_timeout)
        except asyncio.TimeoutError:
            logger.warning("Notification timed out after %ss", self.email_timeout)
            return DeliveryResult.failed(f"Email delivery timed out after {self.email_timeout}s")
        except Exception as e:
            logger.exception("Notifier raised instead of returning a result")
            return DeliveryResult.failed(str(e) or e.__class__.__name__)
        if not result.success:
            logger.warning("Email delivery failed: %s", result.error)
        return result

    async def _audit(self, entity_type: str, entity_id: UUID, action: str, **kwargs) -> None:
        if self.audit is not None:
            await self.audit.record(entity_type, entity_id, action, **kwargs)


def _lock_key(application: Application) -> str:
    return (application.email or "").strip().lower()


def _now() -> datetime:
    return datetime.now(timezone.utc)
