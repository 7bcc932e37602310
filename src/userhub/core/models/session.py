"""Session models shared by the storage backends, services and routers."""

import time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


def default_session_data() -> dict[str, Any]:
    return {"_v": 0}


class SessionMode(StrEnum):
    """How a session is issued on authentication."""

    NONE = "none"
    EXCLUSIVE = "exclusive"
    INDEPENDENT = "independent"


class StoredSession(BaseModel):
    """A session record as kept by the TTL store."""

    token: str = Field(description="64 character alphanumeric token")
    app: str = Field(description="Application the session is scoped to")
    owner_id: str = Field(description="Identifier of the owning user")
    ttl: int = Field(description="Time to live in seconds, renewed on access")
    ip: str | None = Field(default=None, description="Client address at creation")
    data: dict[str, Any] = Field(default_factory=default_session_data)
    created_at: int = Field(default_factory=lambda: int(time.time()))
    accessed_at: int = Field(default_factory=lambda: int(time.time()))
    reads: int = Field(default=0, description="Number of reads")
    writes: int = Field(default=0, description="Number of data updates")

    def touch(self, write: bool = False) -> None:
        """Record an access; reads and writes are counted separately."""
        self.accessed_at = int(time.time())
        if write:
            self.writes += 1
        else:
            self.reads += 1

    def merge(self, changes: dict[str, Any]) -> None:
        """Merge ``changes`` into the payload; a None value removes its key."""
        for key, value in changes.items():
            if value is None:
                self.data.pop(key, None)
            else:
                self.data[key] = value

    @property
    def idle(self) -> int:
        return max(0, int(time.time()) - self.accessed_at)


class SessionInfo(BaseModel):
    """Caller-visible view of a session.

    ``token`` is only present when the caller already holds it; owner
    listings leave it out.
    """

    token: str | None = None
    owner_id: str
    ttl: int
    ip: str | None = None
    data: dict[str, Any]

    @classmethod
    def from_stored(cls, stored: StoredSession, include_token: bool = True) -> "SessionInfo":
        return cls(
            token=stored.token if include_token else None,
            owner_id=stored.owner_id,
            ttl=stored.ttl,
            ip=stored.ip,
            data=stored.data,
        )

    def public(self) -> dict[str, Any]:
        view = self.model_dump()
        for name in ("token", "ip"):
            if view[name] is None:
                del view[name]
        return view


class CreatedSession(BaseModel):
    owner_id: str
    token: str


class SessionOptions(BaseModel):
    """Options for issuing a session.

    ``mode`` is kept as free text; anything other than ``none`` or
    ``exclusive`` issues an independent session.
    """

    mode: str = Field(default=SessionMode.INDEPENDENT.value)
    ip: str | None = None
    ttl: int | None = None
    data: dict[str, Any] | None = None
