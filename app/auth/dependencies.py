from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import Account
from app.auth.schemas import CurrentUser
from app.core.config import settings
from app.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


def _invalid_token() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _account_id_from_token(token: str) -> Optional[UUID]:
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    try:
        return UUID(str(claims.get("sub")))
    except ValueError:
        return None


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the token's account. Role comes from the stored account, not the token claim."""
    account_id = _account_id_from_token(token)
    account = await db.get(Account, account_id) if account_id else None
    if not account:
        raise _invalid_token()

    return CurrentUser(
        id=account.id,
        email=account.email,
        role=account.role,
        must_change_password=account.must_change_password,
    )
