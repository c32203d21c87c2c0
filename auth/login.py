"""
auth/login.py -- Username/password login: store lookup, bcrypt check, token issue.

The flow is a straight line; any step may end it with an exception:

  RECEIVED -> VALIDATED -> USER_LOOKED_UP -> PASSWORD_CHECKED -> TOKEN_ISSUED -> RESPONDED

FAILED is absorbing. LoginStage records the last step completed so a failure
is logged as FAILED together with where it happened.

Anti-enumeration:
  An unknown username and a wrong password raise the same
  AuthenticationError, so the response bodies are byte-identical. The unknown
  username path still runs one bcrypt comparison against a dummy hash of the
  configured cost, so response time does not separate the two cases either.

Internal failures (store unreachable or not initialized, malformed stored
hash, signing misconfigured) are logged here with the stage reached and
re-raised as InternalError. Clients only ever see the generic message.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from enum import Enum

from auth.errors import AuthenticationError, AuthError, InternalError, ValidationError
from auth.models import LoginResult, Role
from auth.passwords import equalize_timing, verify_password
from auth.store import UserStore
from auth.tokens import TokenService

logger = logging.getLogger("authgate.auth")


class LoginStage(str, Enum):
    RECEIVED = "received"
    VALIDATED = "validated"
    USER_LOOKED_UP = "user_looked_up"
    PASSWORD_CHECKED = "password_checked"
    TOKEN_ISSUED = "token_issued"
    RESPONDED = "responded"
    FAILED = "failed"


class LoginService:
    """Composes UserStore -> verify_password -> TokenService.issue.

    Both collaborators are injected once at startup and shared by every
    request; neither holds per-request state.
    """

    def __init__(self, store: UserStore, tokens: TokenService, bcrypt_rounds: int | None = None) -> None:
        self.store = store
        self.tokens = tokens
        self.bcrypt_rounds = bcrypt_rounds

    def login(self, username: str | None, password: str | None) -> LoginResult:
        """Authenticate a username/password pair and issue an access token.

        Raises:
            ValidationError:     username or password empty/absent.
            AuthenticationError: unknown username or wrong password (same message).
            InternalError:       anything else.
        """
        stage = LoginStage.RECEIVED
        if not username or not password:
            raise ValidationError("username or password missing")
        stage = LoginStage.VALIDATED

        try:
            user = self.store.find_by_username(username)
            stage = LoginStage.USER_LOOKED_UP
            if user is None:
                equalize_timing(password, self.bcrypt_rounds)
                logger.info("Login rejected: unknown username")
                raise AuthenticationError("unknown username")

            if not verify_password(password, user.hashed_password):
                logger.info("Login rejected: bad password for user_id=%s", user.id)
                raise AuthenticationError("password mismatch")
            stage = LoginStage.PASSWORD_CHECKED

            token = self.tokens.issue(user)
            stage = LoginStage.TOKEN_ISSUED
        except (ValidationError, AuthenticationError):
            raise
        except AuthError as exc:
            logger.exception(
                "Login %s after stage=%s: %s", LoginStage.FAILED.value, stage.value, exc.detail or type(exc).__name__
            )
            raise InternalError(f"login failed at {stage.value}") from exc
        except Exception as exc:
            logger.exception("Login %s after stage=%s", LoginStage.FAILED.value, stage.value)
            raise InternalError(f"login failed at {stage.value}") from exc

        result = LoginResult(id=user.id, username=user.username, role=Role(user.role), token=token)
        stage = LoginStage.RESPONDED
        logger.info("Login succeeded for user_id=%s role=%s stage=%s", user.id, result.role.value, stage.value)
        return result
