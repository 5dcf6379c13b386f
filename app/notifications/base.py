"""
Notifier contract used by the provisioning engine. Implementations report delivery
outcome as a DeliveryResult and never raise.
"""

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class DeliveryResult:
    success: bool
    error: Optional[str] = None
    message_id: Optional[str] = None

    @classmethod
    def failed(cls, error: str) -> "DeliveryResult":
        return cls(success=False, error=error)


class Notifier(Protocol):
    async def send_approval(
        self, email: str, name: str, student_code: str, temp_password: str
    ) -> DeliveryResult:
        ...

    async def send_rejection(self, email: str, name: str, reason: Optional[str]) -> DeliveryResult:
        ...
