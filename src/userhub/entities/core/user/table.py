"""User database table model."""

from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from src.userhub.entities.core._base import EntityTable

_LIVE_SQLITE = sa.text("deleted = 0")
_LIVE_POSTGRES = sa.text("deleted = false")


class UserTable(EntityTable, table=True):
    """Database persistence model for users.

    Phone and email are unique among live (non-deleted) rows only, and
    both may be NULL on any number of rows.
    """

    __tablename__ = "users"
    __table_args__ = (
        sa.Index(
            "uq_users_phone",
            "phone",
            unique=True,
            sqlite_where=_LIVE_SQLITE,
            postgresql_where=_LIVE_POSTGRES,
        ),
        sa.Index(
            "uq_users_email",
            "email",
            unique=True,
            sqlite_where=_LIVE_SQLITE,
            postgresql_where=_LIVE_POSTGRES,
        ),
    )

    phone: str | None = Field(default=None, max_length=11)
    email: str | None = Field(default=None, max_length=254)
    password: str | None = None
    fullname: str | None = None
    nickname: str | None = None
    gender: int = Field(default=0)
    birthday: datetime | None = None
    portrait: str | None = None
    creation_type: str | None = Field(default=None, max_length=8)
    deleted: bool = Field(default=False, nullable=False)
