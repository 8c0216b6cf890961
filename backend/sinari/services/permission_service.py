# Overview: Role-based authorization checks with denial logging.

"""
Role Authorization

WHY: Every operation declares exactly which roles may perform it (see
permissions.definitions). There is no hierarchy: OWNER is not implicitly
ADMIN, so an operation open to both lists both.

DESIGN PRINCIPLES:
- Fail closed: unknown operations and unknown roles are denied
- Log denials only: grants are not logged
"""

from flask import current_app

from ..permissions import get_allowed_roles


class PermissionDeniedError(Exception):
    """Raised when user's role is not in the operation's role set."""
    pass


def is_allowed(role: str | None, operation: str) -> bool:
    try:
        allowed = get_allowed_roles(operation)
    except KeyError:
        return False
    return role in allowed


def require_role(user, operation: str, resource: str | None = None) -> None:
    """
    Raise PermissionDeniedError unless user's role may perform operation.

    Usage:
        require_role(g.current_user, "ADJUST_STOCK", resource=request.path)
    """
    role = getattr(user, "role", None)
    if is_allowed(role, operation):
        return

    current_app.logger.warning(
        "Permission denied: user_id=%s role=%s operation=%s resource=%s",
        getattr(user, "id", None), role, operation, resource,
    )
    raise PermissionDeniedError("Forbidden")
