"""
auth/tokens.py -- Signed access token issuance and verification.

Security design decisions:
  Algorithm: python-jose with HS256 only. The algorithms allow-list passed to
       jwt.decode() rejects "none" and any asymmetric alg a forged header might
       name. HMAC verification inside jose compares digests in constant time.

  Payload: {id, username, role, iat, exp}. The password and its hash never
       enter the token.

  Lifetime: Settings.token_expire_seconds (default 60). Expiry is checked at
       verification time -- there is no server-side session or sweep. A
       leaked token is useful for at most one window; re-login renews access.

  Failure kinds: verify() classifies every failure as MALFORMED,
       BAD_SIGNATURE or EXPIRED so the API layer can log the cause, while all
       three produce the same client-visible 403.

  SECRET: read once from core.config.get_settings() when TokenService is built
       (api/main.py lifespan). It is never logged.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from auth.errors import SigningError, TokenError, TokenFailure
from auth.models import Claims, Role, User
from core.config import Settings, get_settings

logger = logging.getLogger("authgate.auth")

ALGORITHM = "HS256"
BEARER_SCHEME = "bearer"


# ---------------------------------------------------------------------------
# Authorization header parsing
# ---------------------------------------------------------------------------


def extract_bearer_token(header: str | None) -> str:
    """Pull the token out of an "Authorization: Bearer <token>" header value.

    Raises:
        TokenError(MISSING):          header absent or empty.
        TokenError(MALFORMED_HEADER): no token segment, or a scheme other than Bearer.
    """
    if not header:
        raise TokenError(TokenFailure.MISSING)
    parts = header.split(" ")
    if len(parts) < 2 or not parts[1]:
        raise TokenError(TokenFailure.MALFORMED_HEADER, "no token segment in Authorization header")
    if parts[0].lower() != BEARER_SCHEME:
        raise TokenError(TokenFailure.MALFORMED_HEADER, "Authorization scheme is not Bearer")
    return parts[1]


# ---------------------------------------------------------------------------
# Token service
# ---------------------------------------------------------------------------


class TokenService:
    """Issues and verifies HS256 access tokens with one process-wide secret.

    Usage:
        tokens = TokenService.from_settings(get_settings())
        token = tokens.issue(user)
        claims = tokens.verify(token)
    """

    def __init__(self, secret_key: str, expire_seconds: int, algorithm: str = ALGORITHM) -> None:
        self._secret_key = secret_key
        self.expire_seconds = expire_seconds
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TokenService:
        settings = settings or get_settings()
        return cls(
            secret_key=settings.jwt_secret.get_secret_value(),
            expire_seconds=settings.token_expire_seconds,
        )

    def __repr__(self) -> str:
        return f"TokenService(algorithm={self.algorithm!r}, expire_seconds={self.expire_seconds})"

    # ------------------------------------------------------------------
    # Issue
    # ------------------------------------------------------------------

    def issue(self, user: User, issued_at: datetime | None = None) -> str:
        """Encode a signed token for an authenticated identity.

        Args:
            user:      The identity record found by the login flow.
            issued_at: Override for the issue time (UTC). Defaults to now; the
                       expiry is always issued_at + expire_seconds.

        Raises:
            SigningError: the secret is empty or jose could not sign.
        """
        if not self._secret_key:
            raise SigningError("signing secret is not configured")
        now = issued_at or datetime.now(timezone.utc)
        payload = Claims.for_user(user).to_payload()
        payload["iat"] = now
        payload["exp"] = now + timedelta(seconds=self.expire_seconds)
        try:
            return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
        except JWTError as exc:
            raise SigningError("token signing failed") from exc

    # ------------------------------------------------------------------
    # Verify
    # ------------------------------------------------------------------

    def verify(self, token: str) -> Claims:
        """Validate signature and expiry, then decode the claims.

        Raises:
            TokenError(MALFORMED):     not a decodable JWS, or claims missing/invalid.
            TokenError(BAD_SIGNATURE): signature mismatch or disallowed algorithm.
            TokenError(EXPIRED):       exp is in the past.
        """
        # Structural check first so a garbage token is not reported as a
        # signature failure.
        try:
            jwt.get_unverified_header(token)
            unverified = jwt.get_unverified_claims(token)
        except JWTError as exc:
            raise TokenError(TokenFailure.MALFORMED, str(exc)) from exc
        if "exp" not in unverified:
            raise TokenError(TokenFailure.MALFORMED, "exp claim missing")

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require_exp": True},
            )
        except ExpiredSignatureError as exc:
            raise TokenError(TokenFailure.EXPIRED, str(exc)) from exc
        except JWTClaimsError as exc:
            raise TokenError(TokenFailure.MALFORMED, str(exc)) from exc
        except JWTError as exc:
            raise TokenError(TokenFailure.BAD_SIGNATURE, str(exc)) from exc

        return _claims_from_payload(payload)


def _claims_from_payload(payload: dict) -> Claims:
    user_id = payload.get("id")
    username = payload.get("username")
    role = payload.get("role")
    # bool is an int subclass; a signed payload with id=true is still malformed.
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise TokenError(TokenFailure.MALFORMED, "id claim missing or not an integer")
    if not isinstance(username, str) or not username:
        raise TokenError(TokenFailure.MALFORMED, "username claim missing")
    try:
        parsed_role = Role(role)
    except ValueError as exc:
        raise TokenError(TokenFailure.MALFORMED, "role claim missing or unknown") from exc
    return Claims(id=user_id, username=username, role=parsed_role)
