# Overview: Flask API routes for accounts and sessions; parses input and returns JSON responses.

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_roles
from ..services import auth_service
from ..services.auth_service import AccountLockedError, AuthError
from ..services.permission_service import PermissionDeniedError
from ..validation import ValidationError, ConflictError, NotFoundError, parse_paging

users_bp = Blueprint("users", __name__, url_prefix="/api")


@users_bp.post("/users")
def register():
    """Public sign-up. New accounts are CUSTOMER."""
    payload = request.get_json(silent=True)
    try:
        user = auth_service.register(payload)
    except ConflictError as e:
        return {"errors": str(e)}, 409
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Registration failed")
        return {"errors": "Internal server error"}, 500
    return {"data": user.to_dict()}, 200


@users_bp.post("/auth/login")
def login():
    """
    Exchange username (or email) and password for a bearer token.

    A new login replaces the previous session for that user.
    Five failures within 15 minutes lock the identifier (429).
    """
    payload = request.get_json(silent=True)
    try:
        user, token = auth_service.login(payload, ip_address=request.remote_addr)
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except AccountLockedError as e:
        return {"errors": str(e)}, 429, {"Retry-After": str(e.retry_after_seconds)}
    except AuthError as e:
        return {"errors": str(e)}, 401
    except Exception:
        current_app.logger.exception("Login failed")
        return {"errors": "Internal server error"}, 500
    return {"data": {**user.to_dict(), "token": token}}, 200


@users_bp.delete("/auth/logout")
@require_auth
def logout():
    auth_service.logout(g.current_user)
    return {"data": "OK"}, 200


@users_bp.get("/users/current")
@require_auth
def get_current_user():
    return {"data": g.current_user.to_dict()}, 200


@users_bp.patch("/users/current")
@require_auth
def update_current_user():
    payload = request.get_json(silent=True)
    try:
        user = auth_service.update_current_user(g.current_user, payload)
    except ConflictError as e:
        return {"errors": str(e)}, 409
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Profile update failed")
        return {"errors": "Internal server error"}, 500
    return {"data": user.to_dict()}, 200


@users_bp.get("/users")
@require_auth
@require_roles("VIEW_USERS")
def search_users():
    """
    Query params:
    - name: substring of name or username
    - role: exact role
    - page, size: paging (size max 100)
    """
    try:
        page, size = parse_paging(request.args)
        users, paging = auth_service.search_users(
            name=request.args.get("name"),
            role=request.args.get("role"),
            page=page,
            size=size,
        )
    except ValidationError as e:
        return {"errors": str(e)}, 400
    return {"data": [u.to_detail_dict() for u in users], "paging": paging}, 200


@users_bp.patch("/users/<int:user_id>/role")
@require_auth
@require_roles("CHANGE_USER_ROLE")
def update_user_role(user_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        user = auth_service.update_role(g.current_user, user_id, payload.get("role"))
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except ConflictError as e:
        return {"errors": str(e)}, 409
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Role update failed")
        return {"errors": "Internal server error"}, 500
    return {"data": user.to_detail_dict()}, 200


@users_bp.get("/users/<int:user_id>")
@require_auth
@require_roles("VIEW_USERS")
def get_user(user_id: int):
    try:
        user = auth_service.get_user(user_id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    return {"data": user.to_detail_dict()}, 200


@users_bp.delete("/users/<int:user_id>")
@require_auth
@require_roles("DELETE_USER")
def delete_user(user_id: int):
    """Soft delete: the account disappears from lists and can no longer log in."""
    try:
        auth_service.delete_user(g.current_user, user_id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except PermissionDeniedError as e:
        return {"errors": str(e)}, 403
    except Exception:
        current_app.logger.exception("User delete failed")
        return {"errors": "Internal server error"}, 500
    return {"data": True}, 200


@users_bp.patch("/users/<int:user_id>/restore")
@require_auth
@require_roles("RESTORE_USER")
def restore_user(user_id: int):
    try:
        user = auth_service.restore_user(g.current_user, user_id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except Exception:
        current_app.logger.exception("User restore failed")
        return {"errors": "Internal server error"}, 500
    return {"data": user.to_detail_dict()}, 200
