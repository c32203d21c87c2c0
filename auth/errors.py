"""
auth/errors.py -- Exception taxonomy for the authentication boundary.

Every failure the core can produce is an AuthError subclass carrying two
public attributes:
  status_code -- HTTP status the API layer responds with
  message     -- the exact client-visible text

api/main.py renders any AuthError as {"message": exc.message}. The messages
are deliberately generic: "user not found" and "wrong password" share one
class, and signature / expiry / structural token failures share one message.
The distinction survives internally (TokenError.kind) for logging only.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from enum import Enum


class AuthError(Exception):
    """Base class. Unclassified failures render as a generic 500."""

    status_code: int = 500
    message: str = "Server error"

    def __init__(self, detail: str | None = None) -> None:
        # detail is for server-side logs; it is never sent to the client.
        super().__init__(detail or self.message)
        self.detail = detail


class ValidationError(AuthError):
    """Client input is malformed (e.g. empty username or password)."""

    status_code = 400
    message = "Username and password required"


class AuthenticationError(AuthError):
    """Credentials did not identify a user. Same text for every cause."""

    status_code = 401
    message = "Invalid credentials"


class TokenFailure(str, Enum):
    MISSING = "missing"
    MALFORMED_HEADER = "malformed_header"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"


# A missing header and an unusable header are distinguishable to clients;
# everything past the header collapses into one 403.
_TOKEN_RESPONSES: dict[TokenFailure, tuple[int, str]] = {
    TokenFailure.MISSING: (401, "No token provided"),
    TokenFailure.MALFORMED_HEADER: (401, "Malformed token"),
    TokenFailure.MALFORMED: (403, "Invalid or expired token"),
    TokenFailure.BAD_SIGNATURE: (403, "Invalid or expired token"),
    TokenFailure.EXPIRED: (403, "Invalid or expired token"),
}


class TokenError(AuthenticationError):
    """A bearer token was missing, unusable, forged or expired."""

    def __init__(self, kind: TokenFailure, detail: str | None = None) -> None:
        self.kind = kind
        self.status_code, self.message = _TOKEN_RESPONSES[kind]
        super().__init__(detail or kind.value)


class AuthorizationError(AuthError):
    """Valid identity, but its role is not in the route's required set."""

    status_code = 403
    message = "Access denied: insufficient permissions"


class InternalError(AuthError):
    """Store unreachable, signing misconfigured, or any unexpected failure."""

    status_code = 500
    message = "Server error"


class SigningError(InternalError):
    """The signing secret is absent or the token could not be signed."""


class PasswordHashError(InternalError):
    """A stored password hash is not a well-formed bcrypt hash."""


class StoreNotInitializedError(InternalError):
    """The credential store was used before connect() was called."""
