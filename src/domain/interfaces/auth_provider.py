"""Port to the authentication provider that owns credentials.

The recovery protocol hands plaintext passwords to the provider and lets it
hash and store them in whatever format its login path verifies. Nothing in
the protocol hashes passwords itself.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from src.domain.entities.user import Role, User


class IAuthProvider(ABC):
    @abstractmethod
    async def get_user(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[User]:
        """Returns the account for a normalized email, active or not."""
        raise NotImplementedError

    @abstractmethod
    async def set_password(self, user_id: int, new_password: str, now: datetime) -> None:
        """Replaces the account credential.

        Raises:
            UserNotFoundError: If the account disappeared.
            DatabaseError: If the credential could not be stored.
        """
        raise NotImplementedError

    @abstractmethod
    async def create_user(self, email: str, name: str, password: str, role: Role) -> User:
        """Creates an account with a credential.

        Raises:
            DuplicateUserError: If the email is already registered.
            DatabaseError: If the account could not be stored.
        """
        raise NotImplementedError
