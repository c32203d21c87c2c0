"""
auth/passwords.py -- bcrypt password hashing and verification.

Bcrypt is used directly rather than through passlib: passlib's internal
wrap-bug detection builds a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

Passwords longer than 72 bytes are truncated before hashing and before
comparison, so both sides always see the same input.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

from functools import lru_cache

import bcrypt

from auth.errors import PasswordHashError
from core.config import get_settings

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    rounds defaults to Settings.bcrypt_rounds. Two calls with the same
    plaintext return different hashes because each gets a fresh salt.
    """
    if rounds is None:
        rounds = get_settings().bcrypt_rounds
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A mismatch is False, not an exception. Raises PasswordHashError only when
    the stored hash itself is malformed -- that is a provisioning fault and the
    caller reports it as an internal error.
    """
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except (ValueError, TypeError) as exc:
        raise PasswordHashError("stored password hash is not a valid bcrypt hash") from exc


@lru_cache
def dummy_hash(rounds: int) -> str:
    """Hash used to burn one bcrypt comparison when the username is unknown.

    Cached per cost factor so only the first unknown-user login pays for
    generating it.
    """
    return hash_password("authgate_timing_dummy", rounds=rounds)


def equalize_timing(plain: str, rounds: int | None = None) -> None:
    """Run a throwaway bcrypt check so unknown usernames cost the same as real ones."""
    if rounds is None:
        rounds = get_settings().bcrypt_rounds
    verify_password(plain, dummy_hash(rounds))
