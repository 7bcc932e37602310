"""Credential and token primitives."""

import hmac
import secrets
import string

from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from loguru import logger

from src.userhub.runtime.config.config_data import PasswordHashingConfig

SESSION_TOKEN_LENGTH = 64
_TOKEN_ALPHABET = string.ascii_letters + string.digits


def generate_session_token(length: int = SESSION_TOKEN_LENGTH) -> str:
    """Generate a cryptographically secure alphanumeric session token.

    Args:
        length: Number of characters (default 64)

    Returns:
        Token made of ``[A-Za-z0-9]`` characters
    """
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def generate_object_id() -> str:
    """Generate a 24 character lowercase hex identifier for stored records."""
    return secrets.token_hex(12)


def constant_time_equals(left: str, right: str) -> bool:
    """Compare two secrets without leaking their common prefix length."""
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


class PasswordHasher:
    """Hashes and verifies user passwords with argon2id."""

    def __init__(self, config: PasswordHashingConfig | None = None) -> None:
        config = config or PasswordHashingConfig()
        self._hasher = Argon2Hasher(
            time_cost=config.time_cost,
            memory_cost=config.memory_cost,
            parallelism=config.parallelism,
        )

    def hash(self, password: str) -> str:
        """Return the encoded digest of ``password``."""
        return self._hasher.hash(password)

    def verify(self, password: str | None, digest: str | None) -> bool:
        """Check ``password`` against ``digest``.

        Returns False instead of raising for a mismatch, a missing value or
        a digest that argon2 cannot parse.
        """
        if not password or not digest:
            return False
        try:
            return self._hasher.verify(digest, password)
        except VerifyMismatchError:
            return False
        except (InvalidHashError, VerificationError) as e:
            logger.warning("Stored password digest could not be verified: {}", e)
            return False
