"""Construction of the services the commands operate on."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import typer
from rich.console import Console

from src.userhub.core.security import PasswordHasher
from src.userhub.core.services import (
    DbSessionService,
    RedisService,
    SessionService,
    UserDirectoryService,
)
from src.userhub.core.storage.session_storage import (
    InMemorySessionStorage,
    RedisSessionStorage,
    SessionStorage,
)
from src.userhub.entities.core.user import UserRepository
from src.userhub.runtime.context import get_config

console = Console(stderr=True)


@dataclass
class CliServices:
    directory: UserDirectoryService
    sessions: SessionService
    hasher: PasswordHasher


async def _open_session_storage(redis_service: RedisService) -> SessionStorage:
    """Connect to the session store the server uses.

    Commands never downgrade to a private in-memory store when Redis is
    configured: revocations there would not reach the server's sessions.
    """
    if not redis_service.is_enabled:
        console.print(
            "[yellow]Redis is disabled: sessions are local to this command "
            "and do not reflect the running server[/yellow]"
        )
        return InMemorySessionStorage()

    storage = RedisSessionStorage(redis_service.get_client(), get_config().sessions.namespace)
    if not await storage.ping():
        console.print(f"[red]Session store unreachable at {redis_service.url}[/red]")
        raise typer.Exit(code=1)
    return storage


@asynccontextmanager
async def open_services() -> AsyncIterator[CliServices]:
    """Open database and session store connections for one command."""
    config = get_config()
    database = DbSessionService()
    redis_service = RedisService()
    try:
        storage = await _open_session_storage(redis_service)
        sessions = SessionService(storage, config.sessions)
        hasher = PasswordHasher(config.security.password_hashing)
        with database.session_scope() as db:
            yield CliServices(
                directory=UserDirectoryService(UserRepository(db), sessions, hasher),
                sessions=sessions,
                hasher=hasher,
            )
    finally:
        await redis_service.close()
        database.dispose()
