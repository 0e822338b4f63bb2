"""Who may call what.

Personal workflow, timer and status operations belong to the assignee;
administrators may act on anyone's behalf. Aggregate analytics and task
administration are administrator-only.
"""

import logging

from taskpulse.core.errors import AuthorizationError
from taskpulse.domain.user import Caller


logger = logging.getLogger(__name__)


def ensure_self_or_admin(caller: Caller, user_id: str) -> None:
    """Allow the user themself or an administrator.

    Raises:
        AuthorizationError: If the caller is another non-admin user
    """
    if caller.is_admin or caller.user_id == user_id:
        return
    logger.warning("access_denied", extra={"caller_id": caller.user_id, "target_user_id": user_id})
    msg = "You can only access your own progress"
    raise AuthorizationError(msg)


def ensure_admin(caller: Caller) -> None:
    """Allow administrators only.

    Raises:
        AuthorizationError: If the caller is not an administrator
    """
    if caller.is_admin:
        return
    logger.warning("admin_access_denied", extra={"caller_id": caller.user_id})
    msg = "Administrator access required"
    raise AuthorizationError(msg)
