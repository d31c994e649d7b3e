"""Authentication provider backed by the local ``users`` table.

Credentials are hashed here with passlib's bcrypt handler, in the same
format the login path verifies. The recovery services only ever hand
plaintext to this class.
"""

from datetime import datetime
from typing import Optional

from passlib.context import CryptContext
from structlog import get_logger

from src.core.config.settings import settings
from src.core.exceptions import UserNotFoundError
from src.domain.entities.user import Role, User
from src.domain.interfaces.auth_provider import IAuthProvider
from src.domain.interfaces.repositories import IUserRepository

logger = get_logger(__name__)


def build_password_context(rounds: Optional[int] = None) -> CryptContext:
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=rounds or settings.BCRYPT_WORK_FACTOR,
    )


class LocalAuthProvider(IAuthProvider):
    """IAuthProvider over a user repository.

    Attributes:
        user_repository: Storage for accounts.
        pwd_context: Passlib context used for hashing and verification.
    """

    def __init__(self, user_repository: IUserRepository, pwd_context: Optional[CryptContext] = None):
        self.user_repository = user_repository
        self.pwd_context = pwd_context or build_password_context()

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.user_repository.get_by_id(user_id)

    async def find_user_by_email(self, email: str) -> Optional[User]:
        return await self.user_repository.get_by_email(email)

    async def set_password(self, user_id: int, new_password: str, now: datetime) -> None:
        hashed = self.pwd_context.hash(new_password)
        updated = await self.user_repository.update_password(user_id, hashed, now)
        if not updated:
            raise UserNotFoundError()
        logger.info("Password replaced", user_id=user_id)

    async def create_user(self, email: str, name: str, password: str, role: Role) -> User:
        user = User(
            email=email,
            name=name,
            hashed_password=self.pwd_context.hash(password),
            role=role,
            is_active=True,
        )
        return await self.user_repository.create(user)

    def verify_password(self, user: User, password: str) -> bool:
        """Checks a plaintext password against the stored hash."""
        if not user.hashed_password:
            return False
        return self.pwd_context.verify(password, user.hashed_password)
