from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.core.exceptions import DatabaseError
from src.domain.entities.invitation import Invitation
from src.domain.entities.recovery_record import RecoveryRecord
from src.domain.interfaces.repositories import IInvitationRepository
from src.domain.value_objects.email import Email

logger = get_logger(__name__)


class InvitationRepository(IInvitationRepository):
    """SQLModel persistence for invitations."""

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_by_token(self, token: str) -> Optional[Invitation]:
        if not token:
            return None
        statement = (
            select(Invitation)
            .where(Invitation.token == token)
            .execution_options(populate_existing=True)
        )
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def get_pending_for_email(self, email: str, now: datetime) -> Optional[Invitation]:
        statement = (
            select(Invitation)
            .where(
                Invitation.email == email,
                Invitation.accepted_at.is_(None),
                Invitation.expires_at > now,
            )
            .order_by(Invitation.created_at.desc())
        )
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def create(self, invitation: Invitation) -> Invitation:
        self.db_session.add(invitation)
        try:
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error(
                "Error creating invitation",
                email=Email.mask(invitation.email),
                error=str(e),
            )
            raise DatabaseError("Failed to create invitation") from e
        await self.db_session.refresh(invitation)
        logger.info("Invitation created", invitation_id=invitation.id, role=invitation.role.value)
        return invitation

    async def mark_accepted(self, invitation_id: int, now: datetime) -> bool:
        statement = (
            update(Invitation)
            .where(Invitation.id == invitation_id, Invitation.accepted_at.is_(None))
            .values(accepted_at=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db_session.execute(statement)
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error("Error marking invitation accepted", invitation_id=invitation_id, error=str(e))
            raise DatabaseError("Failed to mark invitation accepted") from e
        return result.rowcount == 1

    async def delete(self, invitation_id: int) -> bool:
        detach = (
            update(RecoveryRecord)
            .where(RecoveryRecord.invitation_id == invitation_id)
            .values(invitation_id=None)
            .execution_options(synchronize_session=False)
        )
        remove = (
            delete(Invitation)
            .where(Invitation.id == invitation_id)
            .execution_options(synchronize_session=False)
        )
        try:
            await self.db_session.execute(detach)
            result = await self.db_session.execute(remove)
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error("Error deleting invitation", invitation_id=invitation_id, error=str(e))
            raise DatabaseError("Failed to delete invitation") from e
        logger.info("Invitation deleted", invitation_id=invitation_id)
        return result.rowcount == 1
