"""Test fixtures — an app wired to an in-memory identity store.

Learn: create_app() takes the store and settings as arguments, so tests
never touch PostgreSQL. Each test gets a fresh InMemoryUserStore, a
throwaway signing secret and a cheap bcrypt work factor.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from usergate.auth.gate import AuthenticationGate
from usergate.auth.tokens import TokenService
from usergate.config import Settings
from usergate.main import create_app
from usergate.store.base import NewUser
from usergate.store.memory import InMemoryUserStore

TEST_SECRET = "test-secret-do-not-use-anywhere-else-0123456789"


@pytest.fixture()
def settings():
    return Settings(
        jwt_secret=TEST_SECRET,
        environment="development",
        bcrypt_rounds=4,
        store_timeout_seconds=0.5,
    )


@pytest.fixture()
def store():
    return InMemoryUserStore()


@pytest.fixture()
def tokens(settings):
    return TokenService.from_settings(settings)


@pytest.fixture()
def gate(store, tokens, settings):
    return AuthenticationGate(store, tokens, lookup_timeout=settings.store_timeout_seconds)


@pytest_asyncio.fixture()
async def user_42(store):
    """The user from the canonical scenario: id 42, present in the store."""
    return await store.put_user(
        42,
        NewUser(
            username="user42",
            email="user42@example.com",
            password_hash="$2b$04$not-a-real-hash-but-never-checked-here",
        ),
    )


@pytest.fixture()
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client running requests straight against the ASGI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac