# Overview: Operation lookups.

from .definitions import OPERATION_ROLES


def get_allowed_roles(code):
    """Role set for an operation code; unknown codes raise KeyError."""
    try:
        return OPERATION_ROLES[code]
    except KeyError:
        raise KeyError(f"Unknown operation: {code}") from None
