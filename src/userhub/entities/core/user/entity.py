"""User domain entity."""

from collections.abc import Iterable
from datetime import UTC, datetime
from enum import IntEnum, StrEnum
from typing import Any

from pydantic import Field

from src.userhub.entities.core._base import Entity


class Gender(IntEnum):
    UNSET = 0
    MALE = 1
    FEMALE = 2


class CreationType(StrEnum):
    PHONE = "phone"
    EMAIL = "email"


# Fields a caller may see or select; password and deletion marker never appear.
USER_FIELDS: tuple[str, ...] = (
    "id",
    "phone",
    "email",
    "fullname",
    "nickname",
    "gender",
    "birthday",
    "portrait",
    "created_at",
)

# Fields a caller may change through a profile update.
MUTABLE_FIELDS: tuple[str, ...] = (
    "phone",
    "email",
    "fullname",
    "nickname",
    "portrait",
    "gender",
    "birthday",
)


def select_fields(requested: Iterable[str] | None) -> list[str]:
    """Intersect ``requested`` with :data:`USER_FIELDS`.

    Unknown names are dropped silently. When nothing valid remains (or
    nothing was asked for) the whole whitelist is returned.
    """
    wanted = {name.strip() for name in requested or () if name and name.strip()}
    selected = [name for name in USER_FIELDS if name in wanted]
    return selected or list(USER_FIELDS)


def to_epoch_millis(value: datetime | None) -> int | None:
    if value is None:
        return None
    if value.tzinfo is None:
        # SQLite hands back naive datetimes; everything is stored as UTC
        value = value.replace(tzinfo=UTC)
    return int(value.timestamp() * 1000)


def from_epoch_millis(value: int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=UTC)


class User(Entity):
    """User entity representing an account holder.

    Phone and email are the two login accounts; at least one of them is set
    when the user is created. ``deleted`` marks a logical delete.
    """

    phone: str | None = Field(default=None, description="11 digit phone number")
    email: str | None = Field(default=None, description="Email address")
    password: str | None = Field(default=None, description="Encoded password digest")
    fullname: str | None = Field(default=None, description="Full or real name")
    nickname: str | None = Field(default=None, description="Display name")
    gender: Gender = Field(default=Gender.UNSET, description="Gender")
    birthday: datetime | None = Field(default=None, description="Birthday")
    portrait: str | None = Field(default=None, description="Portrait URL")
    creation_type: CreationType | None = Field(
        default=None, description="Account the user was created with"
    )
    deleted: bool = Field(default=False, description="Logical deletion marker")

    @property
    def has_password(self) -> bool:
        return bool(self.password)

    def project(self, fields: Iterable[str] | None = None) -> dict[str, Any]:
        """Return the caller-visible view of this user restricted to ``fields``."""
        view = {
            "id": self.id,
            "phone": self.phone,
            "email": self.email,
            "fullname": self.fullname,
            "nickname": self.nickname,
            "gender": int(self.gender),
            "birthday": to_epoch_millis(self.birthday),
            "portrait": self.portrait,
            "created_at": to_epoch_millis(self.created_at),
        }
        return {name: view[name] for name in select_fields(fields)}

    def apply(self, changes: dict[str, Any]) -> None:
        """Copy the mutable profile fields present in ``changes`` onto this user."""
        for name in MUTABLE_FIELDS:
            if name not in changes:
                continue
            value = changes[name]
            if name == "birthday" and isinstance(value, int):
                value = from_epoch_millis(value)
            if name == "gender":
                value = Gender.UNSET if value is None else Gender(value)
            setattr(self, name, value)

    def __eq__(self, other: Any) -> bool:
        """Compare users by business attributes, ignoring timestamps."""
        if not isinstance(other, User):
            return False

        return (
            self.id == other.id
            and self.phone == other.phone
            and self.email == other.email
            and self.fullname == other.fullname
            and self.nickname == other.nickname
            and self.gender == other.gender
            and self.deleted == other.deleted
        )

    def __hash__(self) -> int:
        return hash((self.id, self.phone, self.email))
