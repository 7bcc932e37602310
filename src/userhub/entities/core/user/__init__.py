"""User entity module.

- User: domain entity and its caller-visible projection
- UserTable: database persistence model
- UserRepository: data access layer
"""

from .entity import USER_FIELDS, CreationType, Gender, User, select_fields
from .repository import DuplicateKeyError, UserFilter, UserRepository
from .table import UserTable

__all__ = [
    "USER_FIELDS",
    "CreationType",
    "DuplicateKeyError",
    "Gender",
    "User",
    "UserFilter",
    "UserRepository",
    "UserTable",
    "select_fields",
]
