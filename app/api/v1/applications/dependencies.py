from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.locks import provisioning_locks
from app.db.session import get_db
from app.notifications import Notifier, get_notifier

from .provisioning import ProvisioningEngine
from .registries import SqlAccountStore, SqlApplicationRegistry, SqlAuditTrail, SqlStudentRegistry


def get_provisioning_engine(
    db: AsyncSession = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
) -> ProvisioningEngine:
    """Engine bound to the request's session; locks are shared process-wide."""
    return ProvisioningEngine(
        SqlApplicationRegistry(db),
        SqlStudentRegistry(db),
        SqlAccountStore(db),
        notifier,
        audit=SqlAuditTrail(db),
        locks=provisioning_locks,
        email_timeout=settings.email_timeout_seconds,
        return_temp_password_on_resend=settings.resend_returns_temp_password,
    )
