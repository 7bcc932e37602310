"""Session storage interface and implementations.

Sessions are keyed by a 64 character token and scoped to an application
name. Each backend keeps a secondary index from owner id to tokens so
all sessions of one user can be listed or killed together. Redis is the
primary backend; the in-memory one serves development, tests and the
fallback when Redis cannot be reached.
"""

from __future__ import annotations

import re
import time
from abc import ABC, abstractmethod
from typing import Any

from loguru import logger
from pydantic import ValidationError

from src.userhub.core.models.session import StoredSession
from src.userhub.core.security import generate_session_token

TOKEN_PATTERN = re.compile(r"^[0-9A-Za-z]{64}$")
OWNER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
APP_PATTERN = re.compile(r"^[A-Za-z0-9_-]{3,20}$")
MIN_TTL = 10


class MalformedKeyError(ValueError):
    """A token, owner id or app name does not have the required shape."""

    def __init__(self, field: str, value: Any) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} format")


def _check(field: str, value: Any, pattern: re.Pattern[str]) -> str:
    if not isinstance(value, str) or not pattern.fullmatch(value):
        raise MalformedKeyError(field, value)
    return value


def _check_ttl(ttl: int) -> int:
    if ttl < MIN_TTL:
        raise ValueError(f"ttl must be at least {MIN_TTL} seconds")
    return ttl


class SessionStorage(ABC):
    """Abstract interface for session storage backends."""

    @abstractmethod
    async def create(
        self,
        app: str,
        owner_id: str,
        ttl: int,
        data: dict[str, Any],
        ip: str | None = None,
    ) -> str:
        """Store a new session and return its freshly generated token."""

    @abstractmethod
    async def get(self, app: str, token: str) -> StoredSession | None:
        """Return the live session for ``token`` and renew its TTL.

        Raises:
            MalformedKeyError: token is not 64 alphanumeric characters
        """

    @abstractmethod
    async def set(
        self, app: str, token: str, data: dict[str, Any]
    ) -> StoredSession | None:
        """Merge ``data`` into the session payload.

        Keys whose value is None are removed. Returns the updated session,
        or None when no live session exists.
        """

    @abstractmethod
    async def kill(self, app: str, token: str) -> int:
        """Delete one session; returns 1 if it existed, else 0."""

    @abstractmethod
    async def kill_by_owner(self, app: str, owner_id: str) -> int:
        """Delete every session of ``owner_id``; returns the count removed."""

    @abstractmethod
    async def list_by_owner(self, app: str, owner_id: str) -> list[StoredSession]:
        """Return all live sessions of ``owner_id``."""

    @abstractmethod
    async def cleanup_expired(self) -> int:
        """Drop expired sessions; returns the count removed."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend is currently healthy."""


class InMemorySessionStorage(SessionStorage):
    """In-memory session storage with TTL support."""

    def __init__(self) -> None:
        self._data: dict[tuple[str, str], dict[str, Any]] = {}

    def _entry(self, app: str, token: str) -> dict[str, Any] | None:
        entry = self._data.get((app, token))
        if entry is None:
            return None
        if time.time() > entry["expires_at"]:
            del self._data[(app, token)]
            return None
        return entry

    def _store(self, session: StoredSession) -> None:
        self._data[(session.app, session.token)] = {
            "session": session.model_dump(mode="json"),
            "expires_at": time.time() + session.ttl,
        }

    async def create(
        self,
        app: str,
        owner_id: str,
        ttl: int,
        data: dict[str, Any],
        ip: str | None = None,
    ) -> str:
        _check("app", app, APP_PATTERN)
        _check("owner_id", owner_id, OWNER_ID_PATTERN)
        _check_ttl(ttl)

        token = generate_session_token()
        self._store(
            StoredSession(
                token=token, app=app, owner_id=owner_id, ttl=ttl, ip=ip, data=dict(data)
            )
        )
        return token

    async def get(self, app: str, token: str) -> StoredSession | None:
        _check("token", token, TOKEN_PATTERN)
        entry = self._entry(app, token)
        if entry is None:
            return None
        session = StoredSession.model_validate(entry["session"])
        session.touch()
        self._store(session)
        return session

    async def set(
        self, app: str, token: str, data: dict[str, Any]
    ) -> StoredSession | None:
        _check("token", token, TOKEN_PATTERN)
        entry = self._entry(app, token)
        if entry is None:
            return None
        session = StoredSession.model_validate(entry["session"])
        session.merge(data)
        session.touch(write=True)
        self._store(session)
        return session

    async def kill(self, app: str, token: str) -> int:
        _check("token", token, TOKEN_PATTERN)
        if self._entry(app, token) is None:
            return 0
        del self._data[(app, token)]
        return 1

    async def kill_by_owner(self, app: str, owner_id: str) -> int:
        _check("owner_id", owner_id, OWNER_ID_PATTERN)
        sessions = await self.list_by_owner(app, owner_id)
        for session in sessions:
            self._data.pop((app, session.token), None)
        return len(sessions)

    async def list_by_owner(self, app: str, owner_id: str) -> list[StoredSession]:
        _check("owner_id", owner_id, OWNER_ID_PATTERN)
        sessions = []
        for key_app, token in list(self._data):
            if key_app != app:
                continue
            entry = self._entry(key_app, token)
            if entry is not None and entry["session"]["owner_id"] == owner_id:
                sessions.append(StoredSession.model_validate(entry["session"]))
        return sessions

    async def cleanup_expired(self) -> int:
        """Remove expired sessions from memory."""
        now = time.time()
        expired_keys = [
            key for key, entry in self._data.items() if now > entry["expires_at"]
        ]

        for key in expired_keys:
            del self._data[key]

        return len(expired_keys)

    def is_available(self) -> bool:
        """In-memory storage is always available."""
        return True


class RedisSessionStorage(SessionStorage):
    """Redis-based session storage.

    Layout: the session JSON lives at ``{ns}:{app}:{token}`` with an expiry
    equal to its TTL; the owner index is the set ``{ns}:{app}:owner:{id}``.
    The index expires with its longest-lived session; members whose session
    has expired are removed when listed.
    """

    def __init__(self, redis_client, namespace: str = "rs"):
        self._redis = redis_client
        self._namespace = namespace
        self._available = True

    def _session_key(self, app: str, token: str) -> str:
        return f"{self._namespace}:{app}:{token}"

    def _owner_key(self, app: str, owner_id: str) -> str:
        return f"{self._namespace}:{app}:owner:{owner_id}"

    async def _load(self, app: str, token: str) -> StoredSession | None:
        raw = await self._redis.get(self._session_key(app, token))
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        try:
            return StoredSession.model_validate_json(raw)
        except ValidationError:
            logger.warning("Dropping unreadable session record in app {}", app)
            await self._redis.delete(self._session_key(app, token))
            return None

    async def _save(self, session: StoredSession) -> None:
        await self._redis.set(
            self._session_key(session.app, session.token),
            session.model_dump_json(),
            ex=session.ttl,
        )

    async def _renew(self, session: StoredSession) -> bool:
        """Write back a loaded session only if its key still exists.

        A session killed between the read and this write stays killed.
        """
        written = await self._redis.set(
            self._session_key(session.app, session.token),
            session.model_dump_json(),
            ex=session.ttl,
            xx=True,
        )
        if not written:
            return False
        await self._extend_owner_index(session.app, session.owner_id, session.ttl)
        return True

    async def _extend_owner_index(self, app: str, owner_id: str, ttl: int) -> None:
        """Keep the owner index alive as long as its longest-lived session."""
        owner_key = self._owner_key(app, owner_id)
        await self._redis.expire(owner_key, ttl, nx=True)
        await self._redis.expire(owner_key, ttl, gt=True)

    async def create(
        self,
        app: str,
        owner_id: str,
        ttl: int,
        data: dict[str, Any],
        ip: str | None = None,
    ) -> str:
        _check("app", app, APP_PATTERN)
        _check("owner_id", owner_id, OWNER_ID_PATTERN)
        _check_ttl(ttl)

        token = generate_session_token()
        session = StoredSession(
            token=token, app=app, owner_id=owner_id, ttl=ttl, ip=ip, data=dict(data)
        )
        try:
            await self._save(session)
            await self._redis.sadd(self._owner_key(app, owner_id), token)
            await self._extend_owner_index(app, owner_id, ttl)
            self._available = True
        except Exception as e:
            self._available = False
            raise RuntimeError(f"Redis create failed: {e}") from e
        return token

    async def get(self, app: str, token: str) -> StoredSession | None:
        _check("token", token, TOKEN_PATTERN)
        try:
            session = await self._load(app, token)
            if session is None:
                return None
            session.touch()
            renewed = await self._renew(session)
            self._available = True
            return session if renewed else None
        except Exception as e:
            self._available = False
            raise RuntimeError(f"Redis get failed: {e}") from e

    async def set(
        self, app: str, token: str, data: dict[str, Any]
    ) -> StoredSession | None:
        _check("token", token, TOKEN_PATTERN)
        try:
            session = await self._load(app, token)
            if session is None:
                return None
            session.merge(data)
            session.touch(write=True)
            renewed = await self._renew(session)
            self._available = True
            return session if renewed else None
        except Exception as e:
            self._available = False
            raise RuntimeError(f"Redis set failed: {e}") from e

    async def kill(self, app: str, token: str) -> int:
        _check("token", token, TOKEN_PATTERN)
        try:
            session = await self._load(app, token)
            if session is None:
                return 0
            removed = await self._redis.delete(self._session_key(app, token))
            await self._redis.srem(self._owner_key(app, session.owner_id), token)
            self._available = True
            return int(removed)
        except Exception as e:
            self._available = False
            raise RuntimeError(f"Redis kill failed: {e}") from e

    async def kill_by_owner(self, app: str, owner_id: str) -> int:
        _check("owner_id", owner_id, OWNER_ID_PATTERN)
        owner_key = self._owner_key(app, owner_id)
        try:
            tokens = await self._redis.smembers(owner_key)
            removed = 0
            if tokens:
                keys = [self._session_key(app, token) for token in tokens]
                removed = await self._redis.delete(*keys)
            await self._redis.delete(owner_key)
            self._available = True
            return int(removed)
        except Exception as e:
            self._available = False
            raise RuntimeError(f"Redis kill by owner failed: {e}") from e

    async def list_by_owner(self, app: str, owner_id: str) -> list[StoredSession]:
        _check("owner_id", owner_id, OWNER_ID_PATTERN)
        owner_key = self._owner_key(app, owner_id)
        try:
            sessions = []
            for token in sorted(await self._redis.smembers(owner_key)):
                session = await self._load(app, token)
                if session is None:
                    await self._redis.srem(owner_key, token)
                    continue
                sessions.append(session)
            self._available = True
            return sessions
        except Exception as e:
            self._available = False
            raise RuntimeError(f"Redis list sessions failed: {e}") from e

    async def cleanup_expired(self) -> int:
        """Redis handles expiration automatically."""
        return 0

    def is_available(self) -> bool:
        """Check if Redis connection is healthy."""
        return self._available

    async def ping(self) -> bool:
        """Test Redis connection health."""
        try:
            await self._redis.ping()
            self._available = True
            return True
        except Exception:
            self._available = False
            return False


# Global storage instance
_storage: SessionStorage | None = None


async def _detect_redis_availability(redis_client=None) -> SessionStorage:
    """Use Redis when it answers a ping, otherwise fall back to memory.

    Outside production an unreachable Redis downgrades to in-memory
    storage with a warning; in production the failure propagates.
    """
    from src.userhub.runtime.context import get_config

    config = get_config()
    try:
        if redis_client is None:
            import redis.asyncio as redis

            if not config.redis.enabled or not config.redis.url:
                raise RuntimeError("Redis not configured")
            redis_client = redis.from_url(
                config.redis.connection_string,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=config.redis.socket_connect_timeout,
                socket_timeout=config.redis.socket_timeout,
            )

        redis_storage = RedisSessionStorage(redis_client, config.sessions.namespace)
        if await redis_storage.ping():
            logger.info("Session storage: Redis connected")
            return redis_storage
        raise RuntimeError("Redis ping failed")

    except Exception as e:
        if config.app.environment == "production":
            raise
        logger.warning("Redis unavailable ({}), using in-memory session storage", e)
        return InMemorySessionStorage()


async def get_session_storage(redis_client=None) -> SessionStorage:
    """Get the process-wide session storage, creating it on first use."""
    global _storage

    if _storage is None:
        _storage = await _detect_redis_availability(redis_client)

    return _storage


def _reset_storage() -> None:
    """Reset storage instance (for testing)."""
    global _storage
    _storage = None
