"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers (or at include_router
level) to run the gate and hand the caller to the handler. If the gate
raises, FastAPI never calls the handler; the UsergateError handler in
main.py turns the exception into the terminal 401/500 response.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from usergate.auth.gate import AuthenticatedUser, AuthenticationGate
from usergate.auth.tokens import TokenService
from usergate.store.base import UserStore


def get_gate(request: Request) -> AuthenticationGate:
    return request.app.state.gate


def get_store(request: Request) -> UserStore:
    return request.app.state.store


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    gate: AuthenticationGate = Depends(get_gate),
) -> AuthenticatedUser:
    """Authenticate the request and attach the caller to request.state.user."""
    user = await gate.authenticate(authorization)
    request.state.user = user
    return user
