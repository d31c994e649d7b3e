"""Append-only security audit trail."""

from typing import Any, Dict, Optional

import structlog

from src.domain.entities.audit_entry import AuditEntry
from src.domain.interfaces.repositories import IAuditRepository
from src.utils.clock import Clock, utcnow

logger = structlog.get_logger(__name__)


class AuditRecorder:
    """Writes audit entries without ever failing the calling operation.

    A failed write is degraded logging, not a reason to undo a password
    reset or an account creation that already committed, so storage errors
    are logged and ``None`` is returned.
    """

    def __init__(self, audit_repository: IAuditRepository, clock: Clock = utcnow):
        self._audit_repository = audit_repository
        self._clock = clock

    async def record(
        self,
        entity_type: str,
        entity_id: Any,
        action: str,
        *,
        actor_user_id: Optional[int] = None,
        actor_email: Optional[str] = None,
        field: Optional[str] = None,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> Optional[AuditEntry]:
        entry = AuditEntry(
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
            actor_user_id=actor_user_id,
            actor_email=actor_email,
            field=field,
            old_value=old_value,
            new_value=new_value,
            details=metadata,
            ip_address=ip_address,
            created_at=self._clock(),
        )
        try:
            stored = await self._audit_repository.add(entry)
        except Exception as exc:
            logger.error(
                "audit_write_failed",
                entity_type=entity_type,
                entity_id=str(entity_id),
                action=action,
                error=str(exc),
            )
            return None

        logger.info(
            "audit_recorded",
            entity_type=entity_type,
            entity_id=str(entity_id),
            action=action,
        )
        return stored
