# Overview: Authorization package.
# Re-exports role constants and the per-operation role sets.

from .definitions import (
    ROLE_OWNER,
    ROLE_ADMIN,
    ROLE_TECHNICIAN,
    ROLE_CUSTOMER,
    ALL_ROLES,
    OPERATION_ROLES,
)
from .helpers import get_allowed_roles

__all__ = [
    "ROLE_OWNER",
    "ROLE_ADMIN",
    "ROLE_TECHNICIAN",
    "ROLE_CUSTOMER",
    "ALL_ROLES",
    "OPERATION_ROLES",
    "get_allowed_roles",
]
