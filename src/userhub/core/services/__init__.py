from .auth_service import AuthService
from .database.db_session import DbSessionService
from .redis_service import RedisService
from .session_service import SessionService
from .user_directory import ResolveMode, UserDirectoryService, UserPage, UserQuery

__all__ = [
    "AuthService",
    "DbSessionService",
    "RedisService",
    "ResolveMode",
    "SessionService",
    "UserDirectoryService",
    "UserPage",
    "UserQuery",
]
