"""Database engine and session factory used across the application."""

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import text
from sqlmodel import Session, SQLModel, create_engine

from src.userhub.runtime.config.config_data import DatabaseConfig
from src.userhub.runtime.context import get_config


class DbSessionService:
    def __init__(self, config: DatabaseConfig | None = None):
        """Create the shared engine for the configured database."""
        logger.info("Setting up database engine and session factory")
        main_config = get_config()
        db_config = config or main_config.database

        engine_kwargs: dict = {
            "pool_pre_ping": True,
            "echo": db_config.echo,
            "connect_args": self._get_connect_args(db_config, main_config.app.environment),
        }
        if not db_config.is_sqlite:
            engine_kwargs.update(
                {
                    "pool_size": db_config.pool_size,
                    "max_overflow": db_config.max_overflow,
                    "pool_timeout": db_config.pool_timeout,
                    "pool_recycle": db_config.pool_recycle,
                }
            )

        logger.info("Initializing database engine for {}", db_config.sanitized_url)
        self._engine = create_engine(db_config.url, **engine_kwargs)

    @staticmethod
    def _get_connect_args(db_config: DatabaseConfig, environment: str) -> dict:
        if db_config.is_sqlite:
            if environment == "production":
                logger.warning(
                    "SQLite is not recommended for production use. "
                    "Consider PostgreSQL for better performance and reliability."
                )
            return {"check_same_thread": False, "timeout": 20}
        if db_config.url.startswith("postgresql"):
            return {"application_name": "userhub", "connect_timeout": 30}
        return {}

    @property
    def engine(self):
        return self._engine

    def create_all(self) -> None:
        """Create every table registered on the SQLModel metadata."""
        # registers the users table on the metadata
        import src.userhub.entities.core.user  # noqa: F401

        SQLModel.metadata.create_all(self._engine)

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to the shared engine."""
        return Session(self._engine, expire_on_commit=False)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Yield a session that is rolled back on error and always closed."""
        db = self.get_session()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error("Database health check failed: {}", e)
            return False

    def dispose(self) -> None:
        self._engine.dispose()
