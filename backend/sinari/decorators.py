# Overview: Request authentication and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service, permission_service
from .services.permission_service import PermissionDeniedError


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.current_user to the authenticated User.

    SECURITY: Returns 401 if the header is missing, the token is unknown or
    expired, or the account is deleted.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if token is None:
            return jsonify({"errors": "Unauthorized"}), 401

        user = session_service.validate_session(token)
        if user is None:
            return jsonify({"errors": "Unauthorized"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def optional_auth(f):
    """
    Resolve the caller if a valid token is present, else continue anonymously.

    Used by routes that serve a public and a private projection; g.current_user
    is None for anonymous callers.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        g.current_user = session_service.validate_session(token) if token else None
        return f(*args, **kwargs)

    return decorated_function


def require_roles(operation: str):
    """
    Require the caller's role to be in the operation's role set.

    Must be applied after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = getattr(g, "current_user", None)
            if user is None:
                return jsonify({"errors": "Unauthorized"}), 401

            try:
                permission_service.require_role(user, operation, resource=request.path)
            except PermissionDeniedError as e:
                return jsonify({"errors": str(e)}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
