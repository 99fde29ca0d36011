"""usergate CLI — provision the database, manage roles, talk to the API.

Usage:
    usergate init-db                             # Create the users table
    usergate set-role alice@example.com admin    # Grant a role (--clear to remove)
    usergate serve                               # Run the API with uvicorn
    usergate login alice@example.com             # Print an access token
    usergate whoami --token TOKEN                # GET /api/users/me
    usergate users --token TOKEN                 # GET /api/users
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3000"


def _api_url() -> str:
    return os.environ.get("USERGATE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the usergate API."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0, headers=headers)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _check(resp: httpx.Response) -> dict | list:
    if resp.status_code >= 400:
        try:
            message = resp.json().get("error", resp.text)
        except ValueError:
            message = resp.text
        _fail(f"{resp.status_code} {message}")
    return resp.json()


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="usergate")
def main():
    """usergate — user management API with bearer-token authentication."""


# ---------------------------------------------------------------------------
# Server-side commands
# ---------------------------------------------------------------------------


@main.command("init-db")
def init_db():
    """Create the users table and indexes in USERGATE_DATABASE_URL."""
    from usergate.config import get_settings
    from usergate.db.engine import build_engine, create_tables

    async def _go():
        engine = build_engine(get_settings())
        try:
            await create_tables(engine)
        finally:
            await engine.dispose()

    _run(_go())
    click.secho("users table ready", fg="green")


@main.command("set-role")
@click.argument("email")
@click.argument("role", required=False)
@click.option("--clear", is_flag=True, help="Remove the user's role")
def set_role(email: str, role: Optional[str], clear: bool):
    """Assign ROLE to the user with EMAIL."""
    from usergate.auth.tokens import TokenService
    from usergate.config import get_settings
    from usergate.db.engine import build_engine, build_session_factory
    from usergate.errors import NotFoundError
    from usergate.services.users import UserService
    from usergate.store.sql import SqlUserStore

    if not clear and not role:
        _fail("ROLE required (or pass --clear)")

    async def _go():
        settings = get_settings()
        engine = build_engine(settings)
        try:
            service = UserService(
                SqlUserStore(build_session_factory(engine)),
                TokenService.from_settings(settings),
            )
            return await service.set_role(email, None if clear else role)
        finally:
            await engine.dispose()

    try:
        user = _run(_go())
    except NotFoundError:
        _fail(f"no user with email {email}")
    click.echo(f"{user.username} ({user.email}): role={user.role or '—'}")


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from usergate.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "usergate.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# API client commands
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
def login(email: str, password: str):
    """Log in and print the access token."""

    async def _go():
        async with _client() as c:
            return await c.post(
                "/api/users/login", json={"email": email, "password": password}
            )

    data = _check(_run(_go()))
    click.echo(data["token"])


@main.command()
@click.option("--token", envvar="USERGATE_TOKEN", required=True, help="Access token")
def whoami(token: str):
    """Show the user the token belongs to."""

    async def _go():
        async with _client(token) as c:
            return await c.get("/api/users/me")

    click.echo(_pretty_json(_check(_run(_go()))))


@main.command()
@click.option("--token", envvar="USERGATE_TOKEN", required=True, help="Access token")
def users(token: str):
    """List all users."""

    async def _go():
        async with _client(token) as c:
            return await c.get("/api/users")

    rows = _check(_run(_go()))
    if not rows:
        click.echo("No users found.")
        return
    click.secho(f"Users ({len(rows)}):", bold=True)
    for u in rows:
        click.echo(f"  {u['id']:>5}  {u['username']:20s}  {u['email']:30s}  {u.get('role') or '—'}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
