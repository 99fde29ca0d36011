"""PostgreSQL identity store over async SQLAlchemy.

Learn: one short-lived session per call, opened from the app's
async_sessionmaker. Uniqueness is enforced by the database; an
IntegrityError on insert is mapped back to the offending field.
"""

from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from usergate.db.models import User
from usergate.errors import DuplicateUserError
from usergate.store.base import NewUser, UserStore


class SqlUserStore(UserStore):
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        async with self.session_factory() as session:
            return await session.get(User, user_id)

    async def find_user_by_email(self, email: str) -> Optional[User]:
        async with self.session_factory() as session:
            result = await session.execute(select(User).where(User.email == email))
            return result.scalars().first()

    async def find_user_by_username(self, username: str) -> Optional[User]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(User).where(User.username == username)
            )
            return result.scalars().first()

    async def create_user(self, fields: NewUser) -> User:
        # Unique indexes still decide concurrent inserts.
        if await self.find_user_by_email(fields.email):
            raise DuplicateUserError("email")
        if await self.find_user_by_username(fields.username):
            raise DuplicateUserError("username")

        user = User(
            username=fields.username,
            email=fields.email,
            password_hash=fields.password_hash,
            role=fields.role,
        )
        async with self.session_factory() as session:
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                field = "username" if "username" in str(e.orig) else "email"
                raise DuplicateUserError(field) from e
            await session.refresh(user)
        return user

    async def list_users(self) -> list[User]:
        async with self.session_factory() as session:
            result = await session.execute(select(User).order_by(User.id))
            return list(result.scalars().all())

    async def delete_user(self, user_id: int) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(delete(User).where(User.id == user_id))
            await session.commit()
            return result.rowcount > 0

    async def set_role(self, user_id: int, role: Optional[str]) -> Optional[User]:
        async with self.session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return None
            user.role = role
            await session.commit()
            return user
