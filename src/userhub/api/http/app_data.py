from dataclasses import dataclass

from src.userhub.core.security import PasswordHasher
from src.userhub.core.services import DbSessionService, RedisService
from src.userhub.core.storage.session_storage import SessionStorage


@dataclass
class ApplicationDependencies:
    database_service: DbSessionService
    redis_service: RedisService
    session_storage: SessionStorage
    password_hasher: PasswordHasher
