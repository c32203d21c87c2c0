"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, near-zero logic). Dataclasses own
domain shape; the store, token service and routes do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Authorization tier attached to an identity.

    There is no hierarchy between members: a check for {advisor} is not
    satisfied by admin unless admin is listed explicitly.
    """

    user = "user"
    advisor = "advisor"
    admin = "admin"


@dataclass
class User:
    """Stored identity record (one row in the users table).

    Created only by provisioning (main.py seed / create-user). The login flow
    reads it and never writes back.
    """

    username: str
    hashed_password: str
    role: Role
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Claims:
    """Decoded token payload -- the identity a request acts as.

    Never carries the password or its hash. Frozen so handlers receiving it
    from the guard chain cannot alter the identity mid-request.
    """

    id: int
    username: str
    role: Role

    @classmethod
    def for_user(cls, user: User) -> Claims:
        return cls(id=user.id, username=user.username, role=Role(user.role))

    def to_payload(self) -> dict:
        return {"id": self.id, "username": self.username, "role": self.role.value}


@dataclass(frozen=True)
class LoginResult:
    """Successful login outcome returned to the client."""

    id: int
    username: str
    role: Role
    token: str
