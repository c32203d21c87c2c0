"""
auth/dependencies.py -- FastAPI Depends() helpers for protected routes.

The guard chain for a protected request is two dependencies deep:

  get_claims()      Authorization header -> bearer token -> TokenService.verify
                    -> Claims (returned as a value, nothing is written onto
                    the request object).
  RequireRoles(...) depends on get_claims and asks auth.gate.authorize()
                    whether claims.role is in the route's declared role set.

Routes declare their role set once, at registration time:

    @router.get("/admin")
    def admin(claims: Claims = Depends(RequireRoles(frozenset({Role.admin})))): ...

FastAPI resolves get_claims before RequireRoles, so a token failure always
wins over a role failure, and the handler body never runs unless both pass.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Depends/Request) because
  this module is part of the FastAPI dependency injection system.
"""

# Annotations stay unquoted here: FastAPI reads RequireRoles.__call__ at runtime.
from collections.abc import Iterable
from dataclasses import dataclass

from fastapi import Depends, Request

from auth.errors import AuthorizationError
from auth.gate import authorize
from auth.login import LoginService
from auth.models import Claims, Role
from auth.tokens import TokenService, extract_bearer_token


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_login_service(request: Request) -> LoginService:
    return request.app.state.login_service


def get_claims(request: Request) -> Claims:
    """Authenticate the request from its bearer token.

    Raises TokenError (401 missing/malformed header, 403 invalid token).
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    return get_token_service(request).verify(token)


@dataclass(frozen=True)
class RequireRoles:
    """Route-level role requirement, evaluated by the single authorize() gate.

    Instances are plain data -- one per route registration -- and FastAPI
    calls them as dependencies.
    """

    roles: frozenset[Role]

    def __init__(self, roles: Iterable[Role]) -> None:
        object.__setattr__(self, "roles", frozenset(roles))

    def __call__(self, claims: Claims = Depends(get_claims)) -> Claims:
        if not authorize(claims, self.roles):
            raise AuthorizationError(f"role {claims.role.value} not in {sorted(r.value for r in self.roles)}")
        return claims
