"""User directory: lookup, creation, profile changes and credential checks."""

import asyncio
import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from loguru import logger

from src.userhub.core.errors import (
    DuplicateEmail,
    DuplicatePhone,
    InvalidAccountType,
    InvalidPassword,
    InvalidUserId,
    MissingAccount,
    MissingPassword,
    UserNotFound,
)
from src.userhub.core.identifiers import IdType, classify, is_account_type
from src.userhub.core.security import PasswordHasher
from src.userhub.core.services.session_service import SessionService
from src.userhub.entities.core.user import (
    CreationType,
    DuplicateKeyError,
    User,
    UserFilter,
    UserRepository,
    select_fields,
)

DEFAULT_PAGE_SIZE = 10


class ResolveMode(StrEnum):
    OBJECT_ID_ONLY = "object_id_only"
    ANY_TYPE = "any_type"


@dataclass
class UserQuery:
    """Filter and paging options of :meth:`UserDirectoryService.query`.

    ``ids`` with a single element filters by that id; more than one filters
    by membership. Paging only applies when ``page_index`` is given.
    """

    ids: list[str] = field(default_factory=list)
    phone: str | None = None
    email: str | None = None
    page_index: int | None = None
    page_size: int | None = None
    fields: list[str] | None = None

    def filters(self) -> list[UserFilter]:
        filters = []
        if len(self.ids) == 1:
            if classify(self.ids[0]) is not IdType.OBJECT_ID:
                raise InvalidUserId()
            filters.append(UserFilter.by_id(self.ids[0]))
        elif self.ids:
            filters.append(UserFilter.by_ids(self.ids))
        if self.phone:
            filters.append(UserFilter.by_phone(self.phone))
        if self.email:
            filters.append(UserFilter.by_email(self.email))
        return filters


@dataclass
class UserPage:
    users: list[dict[str, Any]]
    pagination: dict[str, int] | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"users": self.users}
        if self.pagination is not None:
            result["pagination"] = self.pagination
        return result


def _map_duplicate(error: DuplicateKeyError) -> Exception:
    if error.field == "phone":
        return DuplicatePhone()
    if error.field == "email":
        return DuplicateEmail()
    return error


class UserDirectoryService:
    """Owns user records.

    Passwords reach :meth:`create` and :meth:`update_password` already
    hashed; :meth:`verify_credential` checks plaintext against the stored
    digest with the injected hasher.
    """

    def __init__(
        self,
        repository: UserRepository,
        sessions: SessionService,
        hasher: PasswordHasher,
    ) -> None:
        self._users = repository
        self._sessions = sessions
        self._hasher = hasher

    def resolve(self, identifier: str, mode: ResolveMode = ResolveMode.OBJECT_ID_ONLY) -> User:
        """Return the live user ``identifier`` denotes.

        In ``ANY_TYPE`` mode phone numbers and emails are looked up by that
        field; every other shape, tokens included, is treated as an id.
        """
        user = None
        id_type = classify(identifier) if mode is ResolveMode.ANY_TYPE else IdType.OBJECT_ID
        if id_type is IdType.PHONE:
            user = self._users.find_one(phone=identifier)
        elif id_type is IdType.EMAIL:
            user = self._users.find_one(email=identifier)
        elif isinstance(identifier, str):
            user = self._users.get(identifier)

        if user is None:
            raise UserNotFound.for_identifier(identifier)
        return user

    async def get_user(self, identifier: str, fields: list[str] | None = None) -> dict[str, Any]:
        """Look a user up by id, phone, email or one of their session tokens."""
        if classify(identifier) is IdType.TOKEN:
            session = await self._sessions.get(identifier)
            user = await asyncio.to_thread(
                self.resolve, session.owner_id, ResolveMode.OBJECT_ID_ONLY
            )
        else:
            user = await asyncio.to_thread(self.resolve, identifier, ResolveMode.ANY_TYPE)
        return user.project(fields)

    def query(self, query: UserQuery) -> UserPage:
        filters = query.filters()
        fields = select_fields(query.fields)

        if not query.page_index:
            users = self._users.find(filters)
            return UserPage(users=[u.project(fields) for u in users])

        size = query.page_size or DEFAULT_PAGE_SIZE
        users = self._users.find(filters, offset=(query.page_index - 1) * size, limit=size)
        total = self._users.count(filters)
        return UserPage(
            users=[u.project(fields) for u in users],
            pagination={
                "pageIndex": query.page_index,
                "pageSize": size,
                "totalPageCount": math.ceil(total / size),
                "totalItemCount": total,
            },
        )

    def create(self, params: dict[str, Any], password_hash: str | None = None) -> dict[str, Any]:
        """Create a user from profile ``params``.

        Raises:
            MissingAccount: neither phone nor email given
            MissingPassword: email account without a password
            DuplicatePhone, DuplicateEmail: account already taken
        """
        if params.get("email"):
            creation_type = CreationType.EMAIL
        elif params.get("phone"):
            creation_type = CreationType.PHONE
        else:
            raise MissingAccount()

        if creation_type is CreationType.EMAIL and not password_hash:
            raise MissingPassword()

        user = User(creation_type=creation_type, password=password_hash)
        user.apply(params)
        try:
            user = self._users.save(user)
        except DuplicateKeyError as e:
            raise _map_duplicate(e) from e

        logger.info("User {} created by {}", user.id, creation_type)
        return user.project()

    def update(self, user_id: str, params: dict[str, Any]) -> dict[str, Any]:
        user = self.resolve(user_id, ResolveMode.OBJECT_ID_ONLY)
        user.apply(params)
        try:
            user = self._users.save(user)
        except DuplicateKeyError as e:
            raise _map_duplicate(e) from e
        return user.project()

    async def update_password(
        self,
        user_id: str,
        old_password: str | None,
        new_password_hash: str,
        revoke_sessions: bool = False,
    ) -> dict[str, Any]:
        """Replace the password of ``user_id``.

        The old password is only checked when one is currently set.
        Session revocation runs after the save and is not part of it.
        """
        user = await asyncio.to_thread(
            self._replace_password, user_id, old_password, new_password_hash
        )

        if revoke_sessions:
            revoked = await self._sessions.delete_all_by_owner(user.id)
            logger.info("Password changed for user {}, {} session(s) revoked", user.id, revoked)
        return user.project()

    def _replace_password(
        self, user_id: str, old_password: str | None, new_password_hash: str
    ) -> User:
        user = self.resolve(user_id, ResolveMode.OBJECT_ID_ONLY)
        if user.has_password and not self._hasher.verify(old_password, user.password):
            raise InvalidPassword()

        user.password = new_password_hash
        return self._users.save(user)

    def delete(self, user_id: str) -> bool:
        """Mark ``user_id`` deleted and return the marker's new value."""
        user = self.resolve(user_id, ResolveMode.OBJECT_ID_ONLY)
        user.deleted = True
        user = self._users.save(user)
        logger.info("User {} marked deleted", user.id)
        return user.deleted

    def verify_credential(self, account: str, password: str | None) -> dict[str, Any]:
        """Check ``password`` for the phone or email ``account``."""
        id_type = classify(account)
        if not is_account_type(id_type):
            raise InvalidAccountType()

        user = self.resolve(account, ResolveMode.ANY_TYPE)
        if not password:
            raise MissingPassword()
        if not self._hasher.verify(password, user.password):
            raise InvalidPassword()
        return user.project()

    def purge(self, user_id: str) -> bool:
        """Physically remove a user record, deleted or not."""
        return self._users.remove(user_id)
