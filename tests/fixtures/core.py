from __future__ import annotations

from collections.abc import Callable, Generator

import pytest
from sqlalchemy import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from src.userhub.core.security import PasswordHasher
from src.userhub.entities.core.user import User, UserRepository
from src.userhub.runtime.config.config_data import PasswordHashingConfig, SessionsConfig

__all__ = [
    "db_engine",
    "db_session",
    "password_hasher",
    "sessions_config",
    "user_repository",
    "make_user",
]


@pytest.fixture
def db_engine():
    """In-memory SQLite shared by every connection of one test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Generator[Session, None, None]:
    with Session(db_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def user_repository(db_session: Session) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def password_hasher() -> PasswordHasher:
    """Argon2 with the cheapest parameters so tests stay fast."""
    return PasswordHasher(PasswordHashingConfig(time_cost=1, memory_cost=8, parallelism=1))


@pytest.fixture
def sessions_config() -> SessionsConfig:
    return SessionsConfig(namespace="rs", app="userhub", default_ttl=7200)


@pytest.fixture
def make_user(
    user_repository: UserRepository, password_hasher: PasswordHasher
) -> Callable[..., User]:
    """Persist a user directly through the repository."""

    def _make(password: str | None = None, **fields) -> User:
        user = User(**fields)
        if password is not None:
            user.password = password_hasher.hash(password)
        return user_repository.save(user)

    return _make
