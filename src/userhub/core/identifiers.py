"""Classification of opaque user identifier strings."""

import re
from enum import StrEnum


class IdType(StrEnum):
    """What an identifier string denotes."""

    TOKEN = "token"
    OBJECT_ID = "object_id"
    PHONE = "phone"
    EMAIL = "email"
    UNKNOWN = "unknown"


TOKEN_PATTERN = re.compile(r"^[0-9A-Za-z]{64}$")
OBJECT_ID_PATTERN = re.compile(r"^[0-9a-fA-F]{24}$")
PHONE_PATTERN = re.compile(r"^[0-9]{11}$")
EMAIL_PATTERN = re.compile(r"^\w+(\.\w+)*@\w+(\.\w+)+$")

# First match wins.
_RULES: tuple[tuple[IdType, re.Pattern[str]], ...] = (
    (IdType.TOKEN, TOKEN_PATTERN),
    (IdType.OBJECT_ID, OBJECT_ID_PATTERN),
    (IdType.PHONE, PHONE_PATTERN),
    (IdType.EMAIL, EMAIL_PATTERN),
)


def classify(raw: object) -> IdType:
    """Decide whether ``raw`` is a session token, object id, phone or email.

    Total: anything that is not a string, or matches none of the shapes,
    classifies as :attr:`IdType.UNKNOWN`.
    """
    if not isinstance(raw, str):
        return IdType.UNKNOWN
    for id_type, pattern in _RULES:
        # fullmatch so a trailing newline never slips past "$"
        if pattern.fullmatch(raw):
            return id_type
    return IdType.UNKNOWN


def is_account_type(id_type: IdType) -> bool:
    """Whether ``id_type`` can be used as a login account."""
    return id_type in (IdType.PHONE, IdType.EMAIL)
