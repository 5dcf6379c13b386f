import logging

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import Account
from app.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    SetPasswordRequest,
    UserInfo,
)
from app.auth.security import create_access_token, hash_password, verify_password
from app.core.enums import AccountRole
from app.core.exceptions import ServiceError

logger = logging.getLogger(__name__)


async def get_account_by_email(db: AsyncSession, email: str):
    return (await db.execute(
        select(Account).where(Account.email == email.strip().lower())
    )).scalar_one_or_none()


def account_to_user_info(account: Account) -> UserInfo:
    return UserInfo(
        id=account.id,
        email=account.email,
        role=account.role,
        is_approved=account.is_approved,
        must_change_password=account.must_change_password,
        student_id=account.student_id,
        faculty_id=account.faculty_id,
    )


async def login_user(db: AsyncSession, payload: LoginRequest) -> LoginResponse:
    account = await get_account_by_email(db, payload.email)
    if not account or not verify_password(payload.password, account.password_hash):
        raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)
    if payload.role is not None and account.role != payload.role.value:
        raise ServiceError("Invalid credentials", status.HTTP_401_UNAUTHORIZED)
    if account.role == AccountRole.STUDENT.value and not account.is_approved:
        raise ServiceError("Your application is pending admin approval", status.HTTP_403_FORBIDDEN)

    access_token = create_access_token(
        subject={"sub": str(account.id), "role": account.role},
    )
    return LoginResponse(access_token=access_token, user=account_to_user_info(account))


async def change_password(db: AsyncSession, account_id, payload: ChangePasswordRequest) -> None:
    account = await db.get(Account, account_id)
    if not account:
        raise ServiceError("Account not found", status.HTTP_404_NOT_FOUND)
    if not verify_password(payload.current_password, account.password_hash):
        raise ServiceError("Current password is incorrect", status.HTTP_400_BAD_REQUEST)
    account.password_hash = hash_password(payload.new_password)
    account.must_change_password = False
    await db.commit()
    logger.info("Password changed for account %s", account.id)


async def admin_set_password(db: AsyncSession, payload: SetPasswordRequest) -> None:
    account = await get_account_by_email(db, payload.email)
    if not account:
        raise ServiceError("User not found", status.HTTP_404_NOT_FOUND)
    account.password_hash = hash_password(payload.password)
    account.must_change_password = True
    await db.commit()
    logger.info("Password set by admin for account %s", account.id)
