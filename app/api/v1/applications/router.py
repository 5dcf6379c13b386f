from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser
from app.core.enums import AccountRole, ApplicationStatus
from app.core.exceptions import InternalError, ServiceError
from app.db.session import get_db

from .dependencies import get_provisioning_engine
from .provisioning import ApprovalOverrides, ProvisioningEngine, ProvisionResult
from .schemas import (
    ApplicationApprove,
    ApplicationCreate,
    ApplicationReject,
    ApplicationResponse,
    ApplicationStats,
    ApplicationSubmitted,
    ProvisionResponse,
    RejectionResponse,
    StudentResponse,
)
from . import service

router = APIRouter(prefix="/api/v1/applications", tags=["applications"])

require_admin = require_roles(AccountRole.ADMIN.value)


def _http_error(e: ServiceError) -> HTTPException:
    if isinstance(e, InternalError):
        return HTTPException(status_code=e.status_code, detail="Internal server error")
    return HTTPException(status_code=e.status_code, detail=e.message)


def _provision_response(result: ProvisionResult) -> ProvisionResponse:
    return ProvisionResponse(
        message=result.message,
        application=ApplicationResponse.model_validate(result.application),
        student=StudentResponse.model_validate(result.student) if result.student else None,
        email_sent=result.email_sent,
        email_error=result.email_error,
        temp_password=result.temp_password,
    )


@router.post(
    "",
    response_model=ApplicationSubmitted,
    status_code=status.HTTP_201_CREATED,
)
async def submit_application(
    payload: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
) -> ApplicationSubmitted:
    """Public admission form. No account is created until an admin approves."""
    try:
        return await service.submit_application(db, payload)
    except ServiceError as e:
        raise _http_error(e)


@router.get(
    "",
    response_model=List[ApplicationResponse],
    dependencies=[Depends(require_admin)],
)
async def list_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status", description="Filter by status: Pending, Approved, Rejected"),
    db: AsyncSession = Depends(get_db),
) -> List[ApplicationResponse]:
    return await service.list_applications(
        db,
        status_filter=status_filter.value if status_filter else None,
    )


@router.get(
    "/stats",
    response_model=ApplicationStats,
    dependencies=[Depends(require_admin)],
)
async def application_stats(db: AsyncSession = Depends(get_db)) -> ApplicationStats:
    return await service.get_application_stats(db)


@router.get(
    "/{application_id}",
    response_model=ApplicationResponse,
    dependencies=[Depends(require_admin)],
)
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    application = await service.get_application(db, application_id)
    if not application:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    return ApplicationResponse.model_validate(application)


@router.delete(
    "/{application_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
) -> None:
    deleted = await service.delete_application(db, application_id, deleted_by=current_user.id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")


@router.put(
    "/{application_id}/approve",
    response_model=ProvisionResponse,
)
async def approve_application(
    application_id: UUID,
    payload: Optional[ApplicationApprove] = None,
    engine: ProvisioningEngine = Depends(get_provisioning_engine),
    current_user: CurrentUser = Depends(require_admin),
) -> ProvisionResponse:
    """
    Approve an application: creates the student record and login account and emails a temporary password.
    Retrying on an Approved application without an account completes the provisioning.
    Email failure does not undo the approval; see email_sent / email_error.
    """
    overrides = None
    if payload is not None:
        overrides = ApprovalOverrides(department=payload.department, program=payload.program)
    try:
        result = await engine.approve(application_id, current_user.id, overrides)
    except ServiceError as e:
        raise _http_error(e)
    return _provision_response(result)


@router.put(
    "/{application_id}/reject",
    response_model=RejectionResponse,
)
async def reject_application(
    application_id: UUID,
    payload: ApplicationReject,
    engine: ProvisioningEngine = Depends(get_provisioning_engine),
    current_user: CurrentUser = Depends(require_admin),
) -> RejectionResponse:
    """Reject a Pending application. The rejection email is best-effort."""
    try:
        application = await engine.reject(application_id, current_user.id, payload.reason)
    except ServiceError as e:
        raise _http_error(e)
    return RejectionResponse(
        message="Application rejected",
        application=ApplicationResponse.model_validate(application),
    )


@router.post(
    "/{application_id}/resend-email",
    response_model=ProvisionResponse,
)
async def resend_credentials(
    application_id: UUID,
    engine: ProvisioningEngine = Depends(get_provisioning_engine),
    current_user: CurrentUser = Depends(require_admin),
) -> ProvisionResponse:
    """Issue a new temporary password and email it. The password is also returned as a delivery fallback."""
    try:
        result = await engine.resend_credentials(application_id, requested_by=current_user.id)
    except ServiceError as e:
        raise _http_error(e)
    return _provision_response(result)
