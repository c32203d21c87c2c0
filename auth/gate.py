"""
auth/gate.py -- Role-based access decision.

One function decides every protected route. Routes declare their required
role set as data at registration time (see auth/dependencies.RequireRoles);
nothing here knows about individual endpoints.
"""

from __future__ import annotations

from collections.abc import Iterable

from auth.models import Claims, Role

# "Authenticated, any role" expressed as an ordinary role set.
ANY_ROLE: frozenset[Role] = frozenset(Role)


def authorize(claims: Claims | None, required_roles: Iterable[Role]) -> bool:
    """Return True if claims are present and claims.role is in required_roles.

    Membership is exact -- roles are not ranked, so admin passes a check for
    {advisor} only when admin is listed.
    """
    if claims is None:
        return False
    return claims.role in frozenset(required_roles)
