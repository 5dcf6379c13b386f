"""
Seed script to create the first admin account.

Run once with env set:
  ADMIN_EMAIL=admin@university.edu
  ADMIN_PASSWORD=YourSecurePassword

Creates the admin account if missing, otherwise resets its role and password.
"""
import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import Account
from app.auth.security import hash_password
from app.auth.services import get_account_by_email
from app.core.config import settings
from app.core.enums import AccountRole
from app.core.logging import configure_logging
from app.db.session import AsyncSessionLocal, init_models

logger = logging.getLogger(__name__)


async def seed_admin(db: AsyncSession, email: str, password: str) -> Account:
    account = await get_account_by_email(db, email)
    if not account:
        account = Account(
            email=email.strip().lower(),
            password_hash=hash_password(password),
            role=AccountRole.ADMIN.value,
            is_approved=True,
        )
        db.add(account)
        logger.info("Created admin account: %s", account.email)
    else:
        account.role = AccountRole.ADMIN.value
        account.password_hash = hash_password(password)
        account.is_approved = True
        logger.info("Updated existing account to admin: %s", account.email)
    await db.commit()
    await db.refresh(account)
    return account


async def main() -> None:
    configure_logging()
    if not settings.admin_email or not settings.admin_password:
        logger.error("ADMIN_EMAIL and ADMIN_PASSWORD must be set")
        return
    await init_models()
    async with AsyncSessionLocal() as db:
        try:
            await seed_admin(db, settings.admin_email, settings.admin_password)
        except Exception:
            await db.rollback()
            raise


if __name__ == "__main__":
    asyncio.run(main())
