"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in a router without
modifying individual handlers. Health, register and login are open.
"""

from fastapi import APIRouter, Depends

from usergate.api.health import router as health_router
from usergate.api.users import open_router as users_open_router
from usergate.api.users import router as users_router
from usergate.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(users_open_router, tags=["users"])

# Protected routes — require a valid bearer token
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
