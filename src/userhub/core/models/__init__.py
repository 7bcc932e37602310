from .session import CreatedSession, SessionInfo, SessionMode, SessionOptions, StoredSession

__all__ = [
    "CreatedSession",
    "SessionInfo",
    "SessionMode",
    "SessionOptions",
    "StoredSession",
]
