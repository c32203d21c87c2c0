"""
API request and response models for authgate REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/models.py, which own the
internal domain representation. Route handlers map between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from auth.models import LoginResult

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    """Request body for POST /auth/login.

    Both fields are optional at the schema level so an absent field reaches
    the login flow and gets the "Username and password required" response
    instead of a schema error.
    """

    username: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    """Response body for a successful POST /auth/login. No password hash, ever."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    role: str
    token: str

    @classmethod
    def from_result(cls, result: LoginResult) -> "LoginResponse":
        return cls(id=result.id, username=result.username, role=result.role.value, token=result.token)


class MessageResponse(BaseModel):
    """Single-field envelope used by every error and by the /data routes."""

    model_config = ConfigDict(frozen=True)

    message: str
