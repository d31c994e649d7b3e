"""User Repository implementation using SQLAlchemy.

Backs the local authentication provider. Emails are stored normalized
(lower-cased), so lookups compare the normalized value directly.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.core.exceptions import DatabaseError, DuplicateUserError
from src.domain.entities.user import User
from src.domain.interfaces.repositories import IUserRepository
from src.domain.value_objects.email import Email

logger = get_logger(__name__)


class UserRepository(IUserRepository):
    """SQLAlchemy implementation of IUserRepository.

    Read paths return ``None`` for missing rows; write paths roll the session
    back and raise a domain exception on failure so callers never see a
    half-applied transaction.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def get_by_id(self, user_id: int) -> Optional[User]:
        if user_id is None or user_id <= 0:
            logger.warning("Invalid user ID provided", user_id=user_id)
            return None
        statement = select(User).where(User.id == user_id).execution_options(populate_existing=True)
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def get_by_email(self, email: str) -> Optional[User]:
        if not email:
            return None
        statement = (
            select(User)
            .where(User.email == email.strip().lower())
            .execution_options(populate_existing=True)
        )
        result = await self.db_session.execute(statement)
        user = result.scalars().first()
        logger.debug("User lookup by email", email=Email.mask(email), found=user is not None)
        return user

    async def create(self, user: User) -> User:
        self.db_session.add(user)
        try:
            await self.db_session.commit()
        except IntegrityError as e:
            await self.db_session.rollback()
            logger.warning("Duplicate user rejected", email=Email.mask(user.email))
            raise DuplicateUserError() from e
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error("Error creating user", email=Email.mask(user.email), error=str(e))
            raise DatabaseError("Failed to create user") from e
        await self.db_session.refresh(user)
        logger.info("User created", user_id=user.id, role=user.role.value)
        return user

    async def update_password(self, user_id: int, hashed_password: str, now: datetime) -> bool:
        statement = (
            update(User)
            .where(User.id == user_id)
            .values(hashed_password=hashed_password, password_changed_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db_session.execute(statement)
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error("Error updating password", user_id=user_id, error=str(e))
            raise DatabaseError("Failed to update password") from e
        return result.rowcount == 1
