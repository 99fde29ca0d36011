"""Identity store interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from usergate.db.models import User


@dataclass(frozen=True)
class NewUser:
    """Fields needed to create a user. The password is already hashed."""

    username: str
    email: str
    password_hash: str
    role: Optional[str] = None


class UserStore(ABC):
    """Storage-neutral access to users.

    Implementations raise DuplicateUserError from create_user when the email
    or username is taken. Any other exception is an infrastructure fault.
    """

    @abstractmethod
    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[User]:
        ...

    @abstractmethod
    async def find_user_by_username(self, username: str) -> Optional[User]:
        ...

    @abstractmethod
    async def create_user(self, fields: NewUser) -> User:
        ...

    @abstractmethod
    async def list_users(self) -> list[User]:
        """All users, ordered by id."""

    @abstractmethod
    async def delete_user(self, user_id: int) -> bool:
        """Delete a user. Returns False if there was nothing to delete."""

    @abstractmethod
    async def set_role(self, user_id: int, role: Optional[str]) -> Optional[User]:
        """Assign (or clear) a role. Returns None for an unknown user."""
