"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running
and the identity store answers a trivial lookup. The lookup gets the
same time limit as the gate's, so a hung database reports "degraded"
instead of hanging the check.
"""

import asyncio

from fastapi import APIRouter, Depends, Request

from usergate import __version__
from usergate.auth.dependencies import get_store
from usergate.store.base import UserStore

router = APIRouter()


@router.get("/health")
async def health_check(request: Request, store: UserStore = Depends(get_store)):
    """Check server health and identity store connectivity."""
    checks = {"server": "ok", "version": __version__}
    timeout = request.app.state.settings.store_timeout_seconds

    try:
        await asyncio.wait_for(store.find_user_by_id(0), timeout=timeout)
        checks["store"] = "ok"
    except asyncio.TimeoutError:
        checks["store"] = "error: timeout"
    except Exception as e:
        checks["store"] = f"error: {e}"

    status = "healthy" if checks["store"] == "ok" else "degraded"
    return {"status": status, **checks}
