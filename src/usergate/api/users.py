"""Users API — registration, login, listing.

Learn: Two routers share the /users prefix:
- open_router: POST /users/register, POST /users/login (no auth)
- router: everything else, mounted with the auth gate as a
  router-level dependency in api/__init__.py

Handlers that need the caller declare get_current_user again; FastAPI
caches the dependency per request, so the gate still runs once.
"""

import structlog
from fastapi import APIRouter, Depends, Request

from usergate.auth.dependencies import get_current_user, get_store, get_tokens
from usergate.auth.gate import AuthenticatedUser
from usergate.auth.roles import require_role
from usergate.auth.tokens import TokenService
from usergate.schemas.user import (
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    UserRead,
)
from usergate.services.users import UserService
from usergate.store.base import UserStore

logger = structlog.get_logger()

open_router = APIRouter(prefix="/users")
router = APIRouter(prefix="/users")


def get_user_service(
    request: Request,
    store: UserStore = Depends(get_store),
    tokens: TokenService = Depends(get_tokens),
) -> UserService:
    return UserService(store, tokens, bcrypt_rounds=request.app.state.settings.bcrypt_rounds)


# ─── Register / Login ────────────────────────────────────


@open_router.post("/register", response_model=UserRead, status_code=201)
async def register(body: RegisterRequest, service: UserService = Depends(get_user_service)):
    """Create a new user account."""
    return await service.register(body.username, body.email, body.password)


@open_router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, service: UserService = Depends(get_user_service)):
    """Login with email and password → access token."""
    user, token = await service.login(body.email, body.password)
    return LoginResponse(
        token=token,
        expires_in=service.tokens.expires_in,
        user=UserRead.model_validate(user),
    )


# ─── Protected ───────────────────────────────────────────


@router.get("", response_model=list[UserRead])
async def list_users(service: UserService = Depends(get_user_service)):
    """List all users (never includes password hashes)."""
    return await service.list_users()


@router.get("/me", response_model=UserRead)
async def get_me(
    current: AuthenticatedUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """The authenticated caller."""
    return await service.get_user(current.id)


@router.post("/logout", response_model=MessageResponse)
async def logout(current: AuthenticatedUser = Depends(get_current_user)):
    """Acknowledge a logout.

    Tokens aren't stored server-side, so this can't revoke anything; the
    client is expected to discard its token.
    """
    logger.info("users.logout", user_id=current.id)
    return MessageResponse(message="Logged out. Discard your token.")


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    return await service.get_user(user_id)


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current: AuthenticatedUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Delete a user. Admins only."""
    require_role(current, "admin")
    await service.delete_user(user_id)
    return {"deleted": True}
