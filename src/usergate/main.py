"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Everything the routes need (settings, identity store, token
service, gate) is built here and parked on app.state; dependencies read it
back from the request. Tests call create_app() with an in-memory store.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from usergate import __version__
from usergate.api import api_router
from usergate.auth.gate import AuthenticationGate
from usergate.auth.tokens import TokenService
from usergate.config import Settings, get_settings
from usergate.errors import UsergateError
from usergate.store.base import UserStore

logger = structlog.get_logger()


def _error_response(exc: UsergateError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code},
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(UsergateError)
    async def handle_usergate_error(request: Request, exc: UsergateError):
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err["loc"][1:]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=422,
            content={
                "error": "Invalid request",
                "code": "validation_error",
                "details": details,
            },
        )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[UserStore] = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Without an explicit store, a PostgreSQL-backed SqlUserStore is built from
    settings.database_url and its engine is disposed at shutdown.
    """
    settings = settings or get_settings()
    engine = None
    if store is None:
        from usergate.db.engine import build_engine, build_session_factory
        from usergate.store.sql import SqlUserStore

        engine = build_engine(settings)
        store = SqlUserStore(build_session_factory(engine))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Anything before `yield` runs at startup, after `yield` at shutdown."""
        logger.info(
            "usergate.starting",
            version=__version__,
            environment=settings.environment,
            port=settings.port,
            store=type(store).__name__,
        )
        yield
        logger.info("usergate.shutdown")
        if engine is not None:
            await engine.dispose()

    app = FastAPI(
        title="usergate",
        description="User management API with bearer-token authentication",
        version=__version__,
        lifespan=lifespan,
    )

    tokens = TokenService.from_settings(settings)
    app.state.settings = settings
    app.state.store = store
    app.state.tokens = tokens
    app.state.gate = AuthenticationGate(
        store, tokens, lookup_timeout=settings.store_timeout_seconds
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → CORS → handler
    from usergate.middleware.request_id import RequestIdMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestIdMiddleware)

    register_error_handlers(app)
    app.include_router(api_router)

    return app
