"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. A token is
minted once at login and carries the subject id (``sub``), issue time
(``iat``) and expiry (``exp``), signed with the process-wide secret.

PyJWT rejects a token once ``now >= exp``, so a token is valid only
strictly before its expiry.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from usergate.config import Settings
from usergate.errors import ExpiredCredentialError, MalformedCredentialError

REQUIRED_CLAIMS = ["sub", "iat", "exp"]


class TokenService:
    """Mints and verifies access tokens with one secret and algorithm."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.access_token_expire_minutes,
        )

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return self.expire_minutes * 60

    def mint(
        self,
        user_id: int,
        expires_delta: Optional[timedelta] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Create a signed access token for ``user_id``."""
        issued = now or datetime.now(timezone.utc)
        expires = issued + (expires_delta or timedelta(minutes=self.expire_minutes))
        payload = {
            "sub": str(user_id),
            "iat": issued,
            "exp": expires,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """Verify a token and return its subject id.

        Raises ExpiredCredentialError when the signature is good but the
        token has expired, MalformedCredentialError for everything else.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredCredentialError()
        except jwt.InvalidTokenError:
            raise MalformedCredentialError()

        try:
            return int(payload["sub"])
        except (TypeError, ValueError):
            raise MalformedCredentialError()
