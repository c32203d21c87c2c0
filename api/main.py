"""
api/main.py -- FastAPI application entry point for authgate.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware    -- adds CORS headers for allowed browser origins
  2. SlowAPIMiddleware -- enforces per-route rate limits from api.limiter

Lifespan builds the process-wide collaborators once -- the user store, the
token service holding the signing secret, and the login service composed from
them -- and tears the store down on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from api.limiter import limiter
from api.models import MessageResponse
from api.routes.auth import router as auth_router
from api.routes.data import router as data_router
from auth.errors import AuthError, InternalError, TokenError
from auth.login import LoginService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

_settings = get_settings()

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("authgate.api")

VERSION = "1.0.0"

# ---------------------------------------------------------------------------
# Lifespan -- startup / shutdown
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. User store -- connect() creates the schema before any lookup.
      2. Token service -- reads the signing secret from Settings exactly once.
      3. Login service -- composed from the two above and shared by every request.
    """
    logger.info("authgate API starting up")
    settings = get_settings()
    store = UserStore(settings.database_url)
    store.connect()
    app.state.user_store = store
    app.state.tokens = TokenService.from_settings(settings)
    app.state.login_service = LoginService(store, app.state.tokens, bcrypt_rounds=settings.bcrypt_rounds)
    logger.info(
        "Auth initialized (token_expire_seconds=%d, has_users=%s)",
        app.state.tokens.expire_seconds,
        store.has_users(),
    )

    yield

    app.state.user_store.close()
    logger.info("authgate API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="authgate API",
    description="Username/password login issuing short-lived signed tokens, with role-gated endpoints.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_allow_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(SlowAPIMiddleware)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Headers are not logged -- the Authorization header carries tokens.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, tags=["Auth"])
app.include_router(data_router, tags=["Data"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every handler returns the same {"message": ...} envelope. Internal detail
# goes to the log, never into the body.
# ---------------------------------------------------------------------------


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=MessageResponse(message=message).model_dump())


@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Render any AuthError with its own status and public message.

    TokenError kinds (malformed / bad_signature / expired) share one message;
    the kind is logged here so operators can still tell them apart.
    """
    if isinstance(exc, InternalError):
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.detail)
    elif isinstance(exc, TokenError):
        logger.info("Token rejected on %s (%s)", request.url.path, exc.kind.value)
    else:
        logger.info("%s on %s", type(exc).__name__, request.url.path)

    response = _message(exc.status_code, exc.message)
    if exc.status_code == 401 and isinstance(exc, TokenError):
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a rate limit is exceeded.

    Retry-After is the length of the exceeded limit's window in seconds; the
    window is fixed, so this is an upper bound on the wait.
    """
    retry_after = exc.limit.limit.get_expiry()
    response = _message(429, "Too many requests")
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 when the request body cannot be parsed into the request model."""
    logger.info("Request validation failed on %s: %d error(s)", request.url.path, len(exc.errors()))
    return _message(400, "Invalid request body")


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The traceback goes to the log only. Exposing internals to clients can leak
    implementation details and aid attackers.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _message(500, "Server error")


# ---------------------------------------------------------------------------
# Liveness endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# No rate limit and no auth -- health checks must not be throttled.
# ---------------------------------------------------------------------------


@app.get("/", response_class=PlainTextResponse, tags=["Health"])
async def health() -> str:
    return "Backend working"
