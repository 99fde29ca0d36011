"""The authentication gate.

Learn: every protected route runs through AuthenticationGate.authenticate()
before its handler. The gate is stateless per call; the only shared state
it touches is the identity store and the TokenService (which owns the
signing secret). Both are injected, so tests can build a gate around an
in-memory store and a throwaway secret.

Outcomes:
- MissingCredentialError      no usable ``Bearer <token>`` header
- MalformedCredentialError    bad signature, bad structure, missing claims
- ExpiredCredentialError      good signature, ``now >= exp``
- StaleCredentialError        good token, subject no longer exists
- DependencyFailureError      store lookup raised or timed out (500)

Cancellation of the surrounding request is not an outcome: it propagates.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

import structlog

from usergate.auth.tokens import TokenService
from usergate.db.models import User
from usergate.errors import (
    AuthError,
    DependencyFailureError,
    MissingCredentialError,
    StaleCredentialError,
)
from usergate.store.base import UserStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthenticatedUser:
    """Read-only projection of the caller. Never carries the password hash."""

    id: int
    email: str
    username: str
    role: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "AuthenticatedUser":
        return cls(id=user.id, email=user.email, username=user.username, role=user.role)


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    parts = (authorization or "").split()
    if len(parts) < 2 or parts[0].lower() != "bearer":
        raise MissingCredentialError()
    return parts[1]


class AuthenticationGate:
    """Validates bearer tokens and resolves them to users."""

    def __init__(
        self,
        store: UserStore,
        tokens: TokenService,
        lookup_timeout: float = 5.0,
    ):
        self.store = store
        self.tokens = tokens
        self.lookup_timeout = lookup_timeout

    async def authenticate(self, authorization: Optional[str]) -> AuthenticatedUser:
        """Run the full gate for one request; raises an AuthError on rejection."""
        try:
            token = extract_bearer_token(authorization)
            user_id = self.tokens.verify(token)
        except AuthError as e:
            logger.warning("auth.rejected", reason=e.code)
            raise

        user = await self._resolve(user_id)
        if user is None:
            logger.warning(
                "auth.rejected", reason=StaleCredentialError.code, user_id=user_id
            )
            raise StaleCredentialError()

        logger.debug("auth.accepted", user_id=user.id)
        return AuthenticatedUser.from_user(user)

    async def _resolve(self, user_id: int) -> Optional[User]:
        try:
            return await asyncio.wait_for(
                self.store.find_user_by_id(user_id), timeout=self.lookup_timeout
            )
        except asyncio.TimeoutError:
            logger.error(
                "auth.dependency_failure",
                user_id=user_id,
                error="identity store lookup timed out",
                timeout=self.lookup_timeout,
            )
            raise DependencyFailureError()
        except Exception as e:
            logger.exception(
                "auth.dependency_failure", user_id=user_id, error=str(e)
            )
            raise DependencyFailureError() from e
