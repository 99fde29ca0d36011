"""Role-based authorization.

Learn: a plain function over an already-authenticated user. Routes call it
after the gate has run and turn a denial into a 403.
"""

from dataclasses import dataclass
from typing import Iterable

from usergate.auth.gate import AuthenticatedUser
from usergate.errors import ForbiddenError


@dataclass(frozen=True)
class AuthorizationDecision:
    allowed: bool
    reason: str = ""


def authorize(user: AuthenticatedUser, allowed_roles: Iterable[str]) -> AuthorizationDecision:
    """Decide whether ``user`` holds one of ``allowed_roles``."""
    allowed = list(dict.fromkeys(allowed_roles))
    if not user.role:
        return AuthorizationDecision(False, "No role assigned to user")
    if user.role not in allowed:
        return AuthorizationDecision(
            False,
            f"Access denied. Requires one of these roles: {', '.join(allowed)}",
        )
    return AuthorizationDecision(True)


def require_role(user: AuthenticatedUser, *allowed_roles: str) -> None:
    """Raise ForbiddenError unless ``user`` holds one of ``allowed_roles``."""
    decision = authorize(user, allowed_roles)
    if not decision.allowed:
        raise ForbiddenError(decision.reason)
