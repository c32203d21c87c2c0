"""
api/routes/auth.py -- Login endpoint.

Routes:
  POST /auth/login -- username/password login; returns identity + access token

Security:
  POST /auth/login is rate-limited per client IP (Settings.login_rate_limit).
  Unknown username and wrong password produce the same 401 body.
  Cache-Control: no-store on successful logins so the token is not cached.

The handler is a plain def so FastAPI runs it in the threadpool -- the bcrypt
comparison never blocks the event loop.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, MessageResponse
from auth.dependencies import get_login_service
from auth.login import LoginService
from core.config import get_settings

# Auth policy:
# - POST /auth/login: public -- the login endpoint must be unauthenticated
router = APIRouter()


# @router must be outermost: the router has to register slowapi's wrapper,
# otherwise the limit is recorded but never checked.
@router.post(
    "/auth/login",
    response_model=LoginResponse,
    responses={
        400: {"model": MessageResponse},
        401: {"model": MessageResponse},
        429: {"model": MessageResponse},
        500: {"model": MessageResponse},
    },
)
@limiter.limit(get_settings().login_rate_limit)
def login(
    request: Request,
    response: Response,
    body: Optional[LoginRequest] = None,
    service: LoginService = Depends(get_login_service),
) -> LoginResponse:
    """Authenticate with username and password; return identity and a signed token.

    Failures are raised as AuthError subclasses and rendered by the handler
    in api/main.py, so every error body is {"message": ...}.
    """
    response.headers["Cache-Control"] = "no-store"
    body = body or LoginRequest()
    result = service.login(body.username, body.password)
    return LoginResponse.from_result(result)
