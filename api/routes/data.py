"""
api/routes/data.py -- Protected sample data endpoints.

Routes:
  GET /data/all      -- any authenticated role
  GET /data/advisor  -- advisor only
  GET /data/admin    -- admin only

Each route declares its role set once, as the argument to RequireRoles. The
decoded Claims come back from the dependency as a value and are handed to the
handler explicitly.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from api.models import MessageResponse
from auth.dependencies import RequireRoles
from auth.gate import ANY_ROLE
from auth.models import Claims, Role

# Auth policy:
# - GET /data/all:     requires auth, any role
# - GET /data/advisor: requires role advisor (admin is NOT implied)
# - GET /data/admin:   requires role admin
router = APIRouter(prefix="/data")

_GUARD_RESPONSES = {
    401: {"model": MessageResponse},
    403: {"model": MessageResponse},
}

require_authenticated = RequireRoles(ANY_ROLE)
require_advisor = RequireRoles({Role.advisor})
require_admin = RequireRoles({Role.admin})


@router.get("/all", response_model=MessageResponse, responses=_GUARD_RESPONSES)
def all_data(claims: Claims = Depends(require_authenticated)) -> MessageResponse:
    """Greet the caller by the identity carried in the token."""
    return MessageResponse(message=f"Hello {claims.username}, your role is {claims.role.value}")


@router.get("/admin", response_model=MessageResponse, responses=_GUARD_RESPONSES)
def admin_data(claims: Claims = Depends(require_admin)) -> MessageResponse:
    return MessageResponse(message="Admin content here")


@router.get("/advisor", response_model=MessageResponse, responses=_GUARD_RESPONSES)
def advisor_data(claims: Claims = Depends(require_advisor)) -> MessageResponse:
    return MessageResponse(message="Advisor content here")
