"""FastAPI dependency implementations."""

from collections.abc import Iterator

from fastapi import Depends, Request
from loguru import logger
from sqlmodel import Session

from src.userhub.api.http.app_data import ApplicationDependencies
from src.userhub.core.errors import Forbidden, Unauthorized
from src.userhub.core.security import PasswordHasher, constant_time_equals
from src.userhub.core.services import (
    AuthService,
    SessionService,
    UserDirectoryService,
)
from src.userhub.entities.core.user import UserRepository
from src.userhub.runtime.context import get_config


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield a database session for the duration of one request."""
    app_deps = get_app_dependencies(request)
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_password_hasher(request: Request) -> PasswordHasher:
    return get_app_dependencies(request).password_hasher


def get_session_service(request: Request) -> SessionService:
    app_deps = get_app_dependencies(request)
    return SessionService(app_deps.session_storage, get_config().sessions)


def get_user_directory(
    db: Session = Depends(get_db_session),
    sessions: SessionService = Depends(get_session_service),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> UserDirectoryService:
    return UserDirectoryService(UserRepository(db), sessions, hasher)


def get_auth_service(
    directory: UserDirectoryService = Depends(get_user_directory),
    sessions: SessionService = Depends(get_session_service),
) -> AuthService:
    return AuthService(directory, sessions)


def require_api_key(request: Request) -> None:
    """Reject requests without the shared API key.

    Raises:
        Unauthorized: header missing
        Forbidden: header present but wrong
    """
    security = get_config().security
    key = request.headers.get(security.api_key_header)
    if not key:
        logger.warning("Unauthorized, {} not set in header", security.api_key_header)
        raise Unauthorized()
    if not constant_time_equals(key, security.api_key):
        logger.warning("Forbidden, {} is invalid", security.api_key_header)
        raise Forbidden()


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
