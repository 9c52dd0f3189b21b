"""
DevCamper Backend: Authorization Guard
========================================

What:  Decides whether a caller may mutate a record it has already fetched.
Rule:  allow iff caller_id == owner_id, or caller_role == "admin".
       Any other combination is denied with reason "not-owner".
Who:   Update/delete/photo handlers, after the NotFound check and before
       the mutation. Never used to filter reads or listings.

Pure: no I/O, no state. Identities are compared by their string form so a
UUID and its text representation are the same caller.
"""

from typing import Any, NamedTuple, Optional

from devcamper.exceptions import ForbiddenError

ADMIN_ROLE = "admin"
NOT_OWNER = "not-owner"


class AuthorizationDecision(NamedTuple):
    allowed: bool
    reason: Optional[str] = None


ALLOW = AuthorizationDecision(allowed=True)
DENY_NOT_OWNER = AuthorizationDecision(allowed=False, reason=NOT_OWNER)


def authorize(caller_id: Any, caller_role: str, owner_id: Any) -> AuthorizationDecision:
    if caller_role == ADMIN_ROLE:
        return ALLOW
    if caller_id is not None and owner_id is not None and str(caller_id) == str(owner_id):
        return ALLOW
    return DENY_NOT_OWNER


def ensure_can_modify(caller_id: Any, caller_role: str, owner_id: Any) -> None:
    """Raise ForbiddenError (403) unless `authorize` allows the caller."""
    decision = authorize(caller_id, caller_role, owner_id)
    if not decision.allowed:
        raise ForbiddenError(
            reason=decision.reason,
            context={"caller_id": str(caller_id), "owner_id": str(owner_id)},
        )


def ensure_role(caller_role: str, *allowed_roles: str) -> None:
    """Role gate for routes that only some roles may use."""
    if caller_role not in allowed_roles:
        raise ForbiddenError(
            message=f"User role {caller_role} is not authorized to access this route",
            reason="role",
            context={"role": caller_role, "allowed": list(allowed_roles)},
        )
