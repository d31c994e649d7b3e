from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.core.exceptions import DatabaseError
from src.domain.entities.audit_entry import AuditEntry
from src.domain.interfaces.repositories import IAuditRepository

logger = get_logger(__name__)


class AuditRepository(IAuditRepository):
    """Insert-only store for audit entries."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def add(self, entry: AuditEntry) -> AuditEntry:
        self.db_session.add(entry)
        try:
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error(
                "Error writing audit entry",
                entity_type=entry.entity_type,
                action=entry.action,
                error=str(e),
            )
            raise DatabaseError("Failed to write audit entry") from e
        await self.db_session.refresh(entry)
        return entry
