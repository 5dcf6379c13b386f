"""
Admission applications: submission, listing, statistics and removal.
Approve/reject/resend go through the provisioning engine (provisioning.py).
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ApplicationStatus
from app.core.exceptions import ConflictError, InternalError
from app.core.models import Application

from . import audit_service
from .schemas import ApplicationCreate, ApplicationResponse, ApplicationStats, ApplicationSubmitted

logger = logging.getLogger(__name__)

MAX_NUMBER_ATTEMPTS = 20


def _format_application_number(sequence: int) -> str:
    return f"APP{sequence:06d}"


def _to_response(a: Application) -> ApplicationResponse:
    return ApplicationResponse.model_validate(a)


async def get_application(db: AsyncSession, application_id: UUID) -> Optional[Application]:
    return (await db.execute(
        select(Application).where(Application.id == application_id)
    )).scalar_one_or_none()


async def submit_application(db: AsyncSession, payload: ApplicationCreate) -> ApplicationSubmitted:
    """Create a Pending application. One application per email."""
    email = payload.email.strip().lower()
    existing = (await db.execute(
        select(Application.id).where(Application.email == email)
    )).scalar_one_or_none()
    if existing:
        raise ConflictError("Application already submitted with this email")

    sequence = (await db.execute(select(func.count(Application.id)))).scalar_one() + 1
    for _ in range(MAX_NUMBER_ATTEMPTS):
        application = Application(
            application_number=_format_application_number(sequence),
            name=payload.name,
            email=email,
            phone=payload.phone,
            date_of_birth=payload.date_of_birth,
            gender=payload.gender.value,
            address=payload.address,
            department=payload.department.strip() if payload.department else None,
            program=payload.program,
            previous_education=payload.previous_education,
            percentage=payload.percentage,
            status=ApplicationStatus.PENDING.value,
        )
        db.add(application)
        try:
            await db.flush()
        except IntegrityError:
            # application_number taken by a concurrent submission
            await db.rollback()
            sequence += 1
            continue
        await audit_service.log_audit(
            db,
            "application",
            application.id,
            "application_submitted",
            to_status=ApplicationStatus.PENDING.value,
        )
        await db.commit()
        logger.info("Application %s submitted", application.application_number)
        return ApplicationSubmitted(
            message="Application submitted successfully! You will receive an email with login credentials once approved.",
            application_number=application.application_number,
            email=application.email,
        )
    raise InternalError("Could not allocate an application number")


async def list_applications(
    db: AsyncSession,
    status_filter: Optional[str] = None,
) -> List[ApplicationResponse]:
    """List applications newest first, optionally filtered by status."""
    q = select(Application)
    if status_filter:
        q = q.where(Application.status == status_filter)
    q = q.order_by(Application.created_at.desc())
    rows = (await db.execute(q)).scalars().all()
    return [_to_response(a) for a in rows]


async def get_application_stats(db: AsyncSession) -> ApplicationStats:
    result = await db.execute(
        select(Application.status, func.count(Application.id)).group_by(Application.status)
    )
    counts = {row[0]: row[1] for row in result.all()}
    return ApplicationStats(
        total=sum(counts.values()),
        pending=counts.get(ApplicationStatus.PENDING.value, 0),
        approved=counts.get(ApplicationStatus.APPROVED.value, 0),
        rejected=counts.get(ApplicationStatus.REJECTED.value, 0),
    )


async def delete_application(db: AsyncSession, application_id: UUID, deleted_by: UUID) -> bool:
    """Explicit administrative removal. Student/account records are left in place."""
    application = await get_application(db, application_id)
    if not application:
        return False
    await audit_service.log_audit(
        db,
        "application",
        application.id,
        "application_deleted",
        from_status=application.status,
        performed_by=deleted_by,
    )
    await db.delete(application)
    await db.commit()
    return True
