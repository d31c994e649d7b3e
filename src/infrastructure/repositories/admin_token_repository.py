"""Persistence for administrator-issued reset links.

``claim`` is the only way a token becomes used, and it is a single
conditional UPDATE so two concurrent redemptions cannot both succeed.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.core.exceptions import DatabaseError
from src.domain.entities.admin_recovery_token import AdminRecoveryToken
from src.domain.interfaces.repositories import IAdminTokenRepository

logger = get_logger(__name__)


class AdminTokenRepository(IAdminTokenRepository):
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def create(self, token: AdminRecoveryToken) -> AdminRecoveryToken:
        self.db_session.add(token)
        try:
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error("Error creating admin reset token", user_id=token.user_id, error=str(e))
            raise DatabaseError("Failed to create reset token") from e
        await self.db_session.refresh(token)
        logger.debug("Admin reset token stored", token_id=token.id, user_id=token.user_id)
        return token

    async def get_by_token(self, token: str) -> Optional[AdminRecoveryToken]:
        if not token:
            return None
        statement = (
            select(AdminRecoveryToken)
            .where(AdminRecoveryToken.token == token)
            .execution_options(populate_existing=True)
        )
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def claim(self, token: str, now: datetime) -> bool:
        statement = (
            update(AdminRecoveryToken)
            .where(
                AdminRecoveryToken.token == token,
                AdminRecoveryToken.used_at.is_(None),
                AdminRecoveryToken.expires_at > now,
            )
            .values(used_at=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db_session.execute(statement)
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error("Error claiming admin reset token", error=str(e))
            raise DatabaseError("Failed to claim reset token") from e
        return result.rowcount == 1
