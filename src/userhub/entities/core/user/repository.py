"""Data access for user records."""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum

from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from src.userhub.entities.core.user.entity import User
from src.userhub.entities.core.user.table import UserTable

_UNIQUE_FIELD_PATTERN = re.compile(r"\b(?:users\.|uq_users_)?(phone|email)\b")


class DuplicateKeyError(Exception):
    """A save collided with the unique index on ``field``."""

    def __init__(self, field: str, message: str = "") -> None:
        self.field = field
        super().__init__(message or f"duplicate value for {field}")


class FilterKind(StrEnum):
    ID = "id"
    ID_SET = "id_set"
    PHONE = "phone"
    EMAIL = "email"


@dataclass(frozen=True)
class UserFilter:
    """One condition of a user query."""

    kind: FilterKind
    value: str | tuple[str, ...]

    @classmethod
    def by_id(cls, user_id: str) -> "UserFilter":
        return cls(FilterKind.ID, user_id)

    @classmethod
    def by_ids(cls, user_ids: Sequence[str]) -> "UserFilter":
        return cls(FilterKind.ID_SET, tuple(user_ids))

    @classmethod
    def by_phone(cls, phone: str) -> "UserFilter":
        return cls(FilterKind.PHONE, phone)

    @classmethod
    def by_email(cls, email: str) -> "UserFilter":
        return cls(FilterKind.EMAIL, email)

    def clause(self):
        match self.kind:
            case FilterKind.ID:
                return col(UserTable.id) == self.value
            case FilterKind.ID_SET:
                return col(UserTable.id).in_(self.value)
            case FilterKind.PHONE:
                return col(UserTable.phone) == self.value
            case FilterKind.EMAIL:
                return col(UserTable.email) == self.value


def _duplicate_field(error: IntegrityError) -> str | None:
    match = _UNIQUE_FIELD_PATTERN.search(str(error.orig))
    return match.group(1) if match else None


class UserRepository:
    """Data-access layer for users.

    Every write is committed on its own; no transaction spans two calls.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def _live(self, *filters: UserFilter):
        statement = select(UserTable).where(col(UserTable.deleted).is_(False))
        for f in filters:
            statement = statement.where(f.clause())
        return statement

    def get(self, user_id: str, include_deleted: bool = False) -> User | None:
        row = self._session.get(UserTable, user_id)
        if row is None or (row.deleted and not include_deleted):
            return None
        return User.model_validate(row, from_attributes=True)

    def find_one(self, *, phone: str | None = None, email: str | None = None) -> User | None:
        if phone is not None:
            statement = self._live(UserFilter.by_phone(phone))
        elif email is not None:
            statement = self._live(UserFilter.by_email(email))
        else:
            raise ValueError("find_one requires phone or email")
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def find(
        self,
        filters: Sequence[UserFilter] = (),
        offset: int = 0,
        limit: int | None = None,
    ) -> list[User]:
        statement = (
            self._live(*filters)
            .order_by(col(UserTable.created_at), col(UserTable.id))
            .offset(offset)
        )
        if limit is not None:
            statement = statement.limit(limit)
        rows = self._session.exec(statement).all()
        return [User.model_validate(row, from_attributes=True) for row in rows]

    def count(self, filters: Sequence[UserFilter] = ()) -> int:
        statement = (
            select(func.count())
            .select_from(UserTable)
            .where(col(UserTable.deleted).is_(False))
        )
        for f in filters:
            statement = statement.where(f.clause())
        return self._session.exec(statement).one()

    def save(self, user: User) -> User:
        """Insert or update ``user`` and commit.

        Raises:
            DuplicateKeyError: phone or email already belongs to a live user
        """
        row = self._session.get(UserTable, user.id)
        values = user.model_dump(exclude={"id", "created_at", "updated_at"})
        values["gender"] = int(user.gender)
        values["creation_type"] = (
            str(user.creation_type) if user.creation_type is not None else None
        )
        if row is None:
            row = UserTable(id=user.id, created_at=user.created_at, **values)
        else:
            for name, value in values.items():
                setattr(row, name, value)
            row.updated_at = datetime.now(UTC)

        self._session.add(row)
        try:
            self._session.commit()
        except IntegrityError as e:
            self._session.rollback()
            field = _duplicate_field(e)
            if field is None:
                raise
            logger.debug("Duplicate {} rejected for user {}", field, user.id)
            raise DuplicateKeyError(field, str(e.orig)) from e

        self._session.refresh(row)
        return User.model_validate(row, from_attributes=True)

    def remove(self, user_id: str) -> bool:
        """Physically delete the row of ``user_id``, deleted or not."""
        row = self._session.get(UserTable, user_id)
        if row is None:
            return False
        self._session.delete(row)
        self._session.commit()
        return True
