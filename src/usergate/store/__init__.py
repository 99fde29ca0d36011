"""Identity store — the persistence boundary behind the gate and the routes."""

from usergate.store.base import NewUser, UserStore
from usergate.store.memory import InMemoryUserStore
from usergate.store.sql import SqlUserStore

__all__ = ["InMemoryUserStore", "NewUser", "SqlUserStore", "UserStore"]
