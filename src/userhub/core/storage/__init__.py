from .session_storage import (
    InMemorySessionStorage,
    MalformedKeyError,
    RedisSessionStorage,
    SessionStorage,
    get_session_storage,
)

__all__ = [
    "InMemorySessionStorage",
    "MalformedKeyError",
    "RedisSessionStorage",
    "SessionStorage",
    "get_session_storage",
]
