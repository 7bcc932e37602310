"""Session store: issuing, reading, mutating and revoking user sessions."""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from loguru import logger

from src.userhub.core.errors import (
    InvalidTokenFormat,
    InvalidUserId,
    SchemaValidationFailed,
    SessionNotFound,
)
from src.userhub.core.models.session import (
    CreatedSession,
    SessionInfo,
    SessionOptions,
    default_session_data,
)
from src.userhub.core.storage.session_storage import MalformedKeyError, SessionStorage
from src.userhub.runtime.config.config_data import SessionsConfig
from src.userhub.runtime.context import get_config


@contextmanager
def _storage_errors() -> Iterator[None]:
    """Translate storage key format errors into API errors."""
    try:
        yield
    except MalformedKeyError as e:
        if e.field == "token":
            raise InvalidTokenFormat() from e
        if e.field == "owner_id":
            raise InvalidUserId() from e
        raise


class SessionService:
    """Session operations scoped to the configured application.

    Every call is a single round trip to the storage backend, except
    :meth:`create_exclusive`, which revokes and then creates in two steps.
    """

    def __init__(self, storage: SessionStorage, config: SessionsConfig | None = None):
        self._storage = storage
        self._config = config or get_config().sessions

    @property
    def app(self) -> str:
        return self._config.app

    @property
    def storage(self) -> SessionStorage:
        return self._storage

    async def create(
        self, owner_id: str, options: SessionOptions | None = None
    ) -> CreatedSession:
        options = options or SessionOptions()
        ttl = options.ttl or self._config.default_ttl
        if ttl < self._config.min_ttl:
            raise SchemaValidationFailed(f"ttl must be at least {self._config.min_ttl} seconds")
        data = options.data if options.data is not None else default_session_data()

        with _storage_errors():
            token = await self._storage.create(
                self.app, owner_id, ttl=ttl, data=data, ip=options.ip
            )
        logger.debug("Session issued for user {} (ttl={}s)", owner_id, ttl)
        return CreatedSession(owner_id=owner_id, token=token)

    async def create_exclusive(
        self, owner_id: str, options: SessionOptions | None = None
    ) -> CreatedSession:
        """Revoke every session of ``owner_id`` and issue a new one.

        The two steps are not atomic: a session created by a concurrent
        caller in between may survive.
        """
        revoked = await self.delete_all_by_owner(owner_id)
        if revoked:
            logger.info("Revoked {} session(s) of user {} before exclusive login", revoked, owner_id)
        return await self.create(owner_id, options)

    async def get(self, token: str) -> SessionInfo:
        with _storage_errors():
            stored = await self._storage.get(self.app, token)
        if stored is None:
            raise SessionNotFound.for_token(token)
        return SessionInfo.from_stored(stored)

    async def update_data(self, token: str, data: dict[str, Any]) -> dict[str, Any]:
        """Merge ``data`` into the payload and return the resulting payload."""
        with _storage_errors():
            stored = await self._storage.set(self.app, token, data)
        if stored is None:
            raise SessionNotFound.for_token(token)
        return stored.data

    async def list_by_owner(self, owner_id: str) -> list[SessionInfo]:
        with _storage_errors():
            sessions = await self._storage.list_by_owner(self.app, owner_id)
        return [SessionInfo.from_stored(s, include_token=False) for s in sessions]

    async def delete(self, token: str) -> int:
        with _storage_errors():
            return await self._storage.kill(self.app, token)

    async def delete_all_by_owner(self, owner_id: str) -> int:
        with _storage_errors():
            return await self._storage.kill_by_owner(self.app, owner_id)
