"""Request bodies and query parameters of the HTTP API.

These models check shapes only; business rules live in the services.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.userhub.core.identifiers import EMAIL_PATTERN, PHONE_PATTERN
from src.userhub.core.models.session import SessionMode, SessionOptions

MIN_SESSION_TTL = 10


def split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class _Body(BaseModel):
    model_config = ConfigDict(extra="forbid")


class UserProfile(_Body):
    phone: str | None = Field(default=None, pattern=PHONE_PATTERN.pattern)
    email: str | None = Field(default=None, pattern=EMAIL_PATTERN.pattern)
    fullname: str | None = Field(default=None, max_length=128)
    nickname: str | None = Field(default=None, max_length=64)
    gender: int | None = Field(default=None, ge=0, le=2)
    birthday: int | None = Field(default=None, description="Epoch milliseconds")
    portrait: str | None = Field(default=None, max_length=1024)

    def changes(self) -> dict[str, Any]:
        """Fields the caller actually sent."""
        return self.model_dump(include=self.model_fields_set - {"password"})


class UserCreate(UserProfile):
    password: str | None = Field(default=None, min_length=1)


class UserUpdate(UserProfile):
    @model_validator(mode="after")
    def _not_empty(self) -> "UserUpdate":
        if not self.model_fields_set:
            raise ValueError("at least one property is required")
        return self


class PasswordUpdate(_Body):
    old_password: str | None = None
    new_password: str = Field(min_length=1)
    revoke_sessions: bool = False


class SessionCreate(_Body):
    ip: str | None = None
    ttl: int | None = Field(default=None, ge=MIN_SESSION_TTL)
    data: dict[str, Any] | None = None

    def to_options(self, fallback_ip: str | None = None) -> SessionOptions:
        return SessionOptions(ip=self.ip or fallback_ip, ttl=self.ttl, data=self.data)


class SessionOpts(SessionCreate):
    mode: str = SessionMode.INDEPENDENT.value

    def to_options(self, fallback_ip: str | None = None) -> SessionOptions:
        options = super().to_options(fallback_ip)
        options.mode = self.mode
        return options


class SessionDataUpdate(_Body):
    data: dict[str, Any]


class AuthRequest(_Body):
    account: str
    password: str | None = None
    session_opts: SessionOpts = Field(default_factory=SessionOpts)
