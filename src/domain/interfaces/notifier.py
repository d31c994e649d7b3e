"""Port to outbound notification delivery.

Delivery is fire-and-forget from the protocol's point of view: every method
returns whether the message was handed off and must not raise. Retrying is
the implementation's concern.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from src.domain.entities.recovery_record import RecoveryPurpose
from src.domain.entities.user import Role


class INotifier(ABC):
    @abstractmethod
    async def send_verification_code(
        self,
        email: str,
        code: str,
        purpose: RecoveryPurpose,
        expires_at: datetime,
        name: Optional[str] = None,
        language: str = "en",
    ) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def send_invitation(
        self,
        email: str,
        invitation_url: str,
        role: Role,
        expires_at: datetime,
        inviter_name: Optional[str] = None,
        language: str = "en",
    ) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def send_admin_reset_link(
        self,
        email: str,
        reset_url: str,
        expires_at: datetime,
        name: Optional[str] = None,
        language: str = "en",
    ) -> bool:
        raise NotImplementedError
