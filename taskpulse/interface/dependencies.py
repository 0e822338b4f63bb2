"""Request dependencies for caller identity and authorization."""

import logging

from fastapi import Depends, Header, HTTPException, Query, status

from taskpulse.core.errors import ValidationError
from taskpulse.domain.user import Caller, UserRole
from taskpulse.services.access_policy import ensure_admin, ensure_self_or_admin


logger = logging.getLogger(__name__)


async def get_caller(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Caller:
    """Build the caller from identity headers set by the upstream gateway."""
    if not x_user_id or not x_user_id.strip():
        logger.warning("caller_identity_missing")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")

    role = (x_user_role or UserRole.USER.value).strip().lower()
    if role not in {r.value for r in UserRole}:
        msg = f"Unknown role: {x_user_role}"
        raise ValidationError(msg)

    return Caller(user_id=x_user_id.strip(), role=UserRole(role))


async def require_admin(caller: Caller = Depends(get_caller)) -> Caller:
    """Reject non-administrators."""
    ensure_admin(caller)
    return caller


async def get_target_user_id(
    caller: Caller = Depends(get_caller),
    user_id: str | None = Query(default=None, description="Act on behalf of this user (administrators only)"),
) -> str:
    """Resolve whose progress a personal endpoint operates on.

    Defaults to the caller. Naming another user requires administrator rights.
    """
    target = user_id or caller.user_id
    ensure_self_or_admin(caller, target)
    return target
