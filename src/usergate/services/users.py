"""User service — registration, login and lookups.

Learn: Service layer separates business logic from HTTP routing.
Routes call the service, the service calls the identity store.
bcrypt runs in a worker thread so a slow hash doesn't stall other
requests on the event loop.
"""

import asyncio
from typing import Optional

import structlog

from usergate.auth.password import hash_password, verify_password
from usergate.auth.tokens import TokenService
from usergate.db.models import User
from usergate.errors import InvalidLoginError, NotFoundError
from usergate.store.base import NewUser, UserStore

logger = structlog.get_logger()


class UserService:
    """Business logic for user accounts."""

    def __init__(self, store: UserStore, tokens: TokenService, bcrypt_rounds: int = 12):
        self.store = store
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        role: Optional[str] = None,
    ) -> User:
        """Create a user. Raises DuplicateUserError on a taken email/username."""
        password_hash = await asyncio.to_thread(
            hash_password, password, self.bcrypt_rounds
        )
        user = await self.store.create_user(
            NewUser(
                username=username,
                email=email,
                password_hash=password_hash,
                role=role,
            )
        )
        logger.info("users.registered", user_id=user.id, username=user.username)
        return user

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """Check credentials and mint an access token.

        Unknown email and wrong password fail the same way, so the response
        doesn't reveal which emails are registered.
        """
        user = await self.store.find_user_by_email(email)
        if user is None:
            raise InvalidLoginError()

        ok = await asyncio.to_thread(verify_password, password, user.password_hash)
        if not ok:
            logger.info("users.login_failed", user_id=user.id)
            raise InvalidLoginError()

        token = self.tokens.mint(user.id)
        logger.info("users.login", user_id=user.id)
        return user, token

    async def list_users(self) -> list[User]:
        return await self.store.list_users()

    async def get_user(self, user_id: int) -> User:
        user = await self.store.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def delete_user(self, user_id: int) -> None:
        if not await self.store.delete_user(user_id):
            raise NotFoundError("User not found")
        logger.info("users.deleted", user_id=user_id)

    async def set_role(self, email: str, role: Optional[str]) -> User:
        user = await self.store.find_user_by_email(email)
        if user is None:
            raise NotFoundError("User not found")
        updated = await self.store.set_role(user.id, role)
        if updated is None:
            raise NotFoundError("User not found")
        logger.info("users.role_changed", user_id=user.id, role=role)
        return updated
