"""SQLModel implementation of the recovery record store.

Every state transition that must survive concurrent requests is one SQL
statement:

- attempt counting is ``UPDATE ... SET attempt_count = attempt_count + 1
  RETURNING attempt_count``;
- issuance only applies while the row still holds the counters the issuer
  read;
- consumption is a compare-and-set on ``consumed_at IS NULL``.

Reads use ``populate_existing`` so a session never serves a row from its
identity map that an earlier bulk UPDATE has made stale.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from src.core.exceptions import DatabaseError
from src.domain.entities.recovery_record import RecoveryPurpose, RecoveryRecord
from src.domain.entities.user import Role
from src.domain.interfaces.repositories import IRecoveryRecordRepository

logger = get_logger(__name__)


class RecoveryRecordRepository(IRecoveryRecordRepository):
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    def _open_statement(self, subject_identity: str, purpose: RecoveryPurpose):
        return (
            select(RecoveryRecord)
            .where(
                RecoveryRecord.subject_identity == subject_identity,
                RecoveryRecord.purpose == purpose,
                RecoveryRecord.consumed_at.is_(None),
            )
            .execution_options(populate_existing=True)
        )

    async def get_open(self, subject_identity: str, purpose: RecoveryPurpose) -> Optional[RecoveryRecord]:
        try:
            result = await self.db_session.execute(self._open_statement(subject_identity, purpose))
            return result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("Error loading open recovery record", purpose=purpose.value, error=str(e))
            raise DatabaseError("Failed to load recovery record") from e

    async def get_by_id(self, record_id: int) -> Optional[RecoveryRecord]:
        statement = (
            select(RecoveryRecord)
            .where(RecoveryRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db_session.execute(statement)
        return result.scalars().first()

    async def get_or_create_open(
        self,
        subject_identity: str,
        purpose: RecoveryPurpose,
        now: datetime,
        *,
        linked_user_id: Optional[int] = None,
        role: Optional[Role] = None,
        invitation_id: Optional[int] = None,
    ) -> RecoveryRecord:
        existing = await self.get_open(subject_identity, purpose)
        if existing is not None:
            return existing

        record = RecoveryRecord(
            subject_identity=subject_identity,
            purpose=purpose,
            linked_user_id=linked_user_id,
            role=role,
            invitation_id=invitation_id,
            window_start=now,
            created_at=now,
        )
        self.db_session.add(record)
        try:
            await self.db_session.commit()
        except IntegrityError:
            # Another request created the open record first
            await self.db_session.rollback()
            winner = await self.get_open(subject_identity, purpose)
            if winner is None:
                raise DatabaseError("Open recovery record vanished after a uniqueness conflict")
            logger.debug("Recovery record creation lost race", record_id=winner.id)
            return winner
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error("Error creating recovery record", purpose=purpose.value, error=str(e))
            raise DatabaseError("Failed to create recovery record") from e

        await self.db_session.refresh(record)
        logger.debug("Recovery record created", record_id=record.id, purpose=purpose.value)
        return record

    async def save_issuance(
        self,
        record_id: int,
        *,
        expected_issued_count: int,
        expected_window_start: datetime,
        code: str,
        code_expires_at: datetime,
        issued_count: int,
        window_start: datetime,
        now: datetime,
        linked_user_id: Optional[int] = None,
    ) -> bool:
        values = {
            "code": code,
            "code_expires_at": code_expires_at,
            "issued_count": issued_count,
            "window_start": window_start,
            "attempt_count": 0,
            "updated_at": now,
        }
        if linked_user_id is not None:
            values["linked_user_id"] = linked_user_id

        statement = (
            update(RecoveryRecord)
            .where(
                RecoveryRecord.id == record_id,
                RecoveryRecord.issued_count == expected_issued_count,
                RecoveryRecord.window_start == expected_window_start,
                RecoveryRecord.consumed_at.is_(None),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return await self._execute_conditional(statement, "save_issuance", record_id)

    async def increment_attempts(self, record_id: int) -> int:
        statement = (
            update(RecoveryRecord)
            .where(RecoveryRecord.id == record_id)
            .values(attempt_count=RecoveryRecord.attempt_count + 1)
            .returning(RecoveryRecord.attempt_count)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db_session.execute(statement)
            attempts = result.scalar_one()
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error("Error incrementing verification attempts", record_id=record_id, error=str(e))
            raise DatabaseError("Failed to record verification attempt") from e
        return attempts

    async def consume(self, record_id: int, now: datetime, linked_user_id: Optional[int] = None) -> bool:
        values = {"consumed_at": now, "code": None, "code_expires_at": None, "updated_at": now}
        if linked_user_id is not None:
            values["linked_user_id"] = linked_user_id

        statement = (
            update(RecoveryRecord)
            .where(RecoveryRecord.id == record_id, RecoveryRecord.consumed_at.is_(None))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return await self._execute_conditional(statement, "consume", record_id)

    async def supersede_open(self, subject_identity: str, purpose: RecoveryPurpose, now: datetime) -> int:
        statement = (
            update(RecoveryRecord)
            .where(
                RecoveryRecord.subject_identity == subject_identity,
                RecoveryRecord.purpose == purpose,
                RecoveryRecord.consumed_at.is_(None),
            )
            .values(consumed_at=now, code=None, code_expires_at=None, updated_at=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db_session.execute(statement)
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error("Error superseding recovery record", purpose=purpose.value, error=str(e))
            raise DatabaseError("Failed to supersede recovery record") from e
        return result.rowcount

    async def _execute_conditional(self, statement, operation: str, record_id: int) -> bool:
        try:
            result = await self.db_session.execute(statement)
            await self.db_session.commit()
        except SQLAlchemyError as e:
            await self.db_session.rollback()
            logger.error("Recovery record update failed", operation=operation, record_id=record_id, error=str(e))
            raise DatabaseError(f"Failed to {operation.replace('_', ' ')}") from e
        applied = result.rowcount == 1
        logger.debug("Recovery record updated", operation=operation, record_id=record_id, applied=applied)
        return applied
