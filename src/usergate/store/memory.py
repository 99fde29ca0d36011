"""In-memory identity store used for local runs and tests."""

import asyncio
import itertools
from typing import Optional

from usergate.db.models import User, utcnow
from usergate.errors import DuplicateUserError
from usergate.store.base import NewUser, UserStore


class InMemoryUserStore(UserStore):
    """Dict-backed store with the same uniqueness rules as the users table.

    Emails and usernames are compared exactly, as the unique indexes do.
    """

    def __init__(self):
        self._users: dict[int, User] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    async def find_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.email == email), None)

    async def find_user_by_username(self, username: str) -> Optional[User]:
        return next(
            (u for u in self._users.values() if u.username == username), None
        )

    async def create_user(self, fields: NewUser) -> User:
        async with self._lock:
            if await self.find_user_by_email(fields.email):
                raise DuplicateUserError("email")
            if await self.find_user_by_username(fields.username):
                raise DuplicateUserError("username")
            return self._insert(next(self._ids), fields)

    async def put_user(self, user_id: int, fields: NewUser) -> User:
        """Insert a user under a chosen id (fixtures and seeding)."""
        async with self._lock:
            if user_id in self._users:
                raise ValueError(f"user {user_id} already exists")
            if await self.find_user_by_email(fields.email):
                raise DuplicateUserError("email")
            if await self.find_user_by_username(fields.username):
                raise DuplicateUserError("username")
            return self._insert(user_id, fields)

    async def list_users(self) -> list[User]:
        return [self._users[k] for k in sorted(self._users)]

    async def delete_user(self, user_id: int) -> bool:
        async with self._lock:
            return self._users.pop(user_id, None) is not None

    async def set_role(self, user_id: int, role: Optional[str]) -> Optional[User]:
        user = self._users.get(user_id)
        if user is not None:
            user.role = role
        return user

    def _insert(self, user_id: int, fields: NewUser) -> User:
        user = User(
            id=user_id,
            username=fields.username,
            email=fields.email,
            password_hash=fields.password_hash,
            role=fields.role,
            created_at=utcnow(),
        )
        self._users[user_id] = user
        return user
