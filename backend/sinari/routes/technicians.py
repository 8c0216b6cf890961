# Overview: Flask API routes for technicians.

from flask import Blueprint, request, current_app

from ..decorators import require_auth, require_roles
from ..services import technician_service
from ..services.technician_service import TECHNICIAN_SORT_FIELDS
from ..validation import (
    ValidationError,
    ConflictError,
    NotFoundError,
    parse_bool_arg,
    parse_paging,
    parse_sort,
)

technicians_bp = Blueprint("technicians", __name__, url_prefix="/api/technicians")


@technicians_bp.post("")
@require_auth
@require_roles("MANAGE_TECHNICIANS")
def create_technician():
    payload = request.get_json(silent=True)
    try:
        technician = technician_service.create_technician(payload)
    except ConflictError as e:
        return {"errors": str(e)}, 409
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Technician create failed")
        return {"errors": "Internal server error"}, 500
    return {"data": technician.to_dict()}, 200


@technicians_bp.get("")
@require_auth
@require_roles("MANAGE_TECHNICIANS")
def search_technicians():
    args = request.args
    try:
        page, size = parse_paging(args)
        sort_by, sort_order = parse_sort(args, TECHNICIAN_SORT_FIELDS, "created_at")
        technicians, paging = technician_service.search_technicians(
            name=args.get("name"),
            is_active=parse_bool_arg(args, "is_active"),
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            size=size,
        )
    except ValidationError as e:
        return {"errors": str(e)}, 400
    return {"data": [t.to_dict() for t in technicians], "paging": paging}, 200


@technicians_bp.get("/<int:technician_id>")
@require_auth
@require_roles("MANAGE_TECHNICIANS")
def get_technician(technician_id: int):
    try:
        technician = technician_service.get_technician(technician_id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    return {"data": technician.to_dict()}, 200


@technicians_bp.patch("/<int:technician_id>")
@require_auth
@require_roles("MANAGE_TECHNICIANS")
def update_technician(technician_id: int):
    payload = request.get_json(silent=True)
    try:
        technician = technician_service.update_technician(technician_id, payload)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except ConflictError as e:
        return {"errors": str(e)}, 409
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Technician update failed")
        return {"errors": "Internal server error"}, 500
    return {"data": technician.to_dict()}, 200


@technicians_bp.delete("/<int:technician_id>")
@require_auth
@require_roles("MANAGE_TECHNICIANS")
def delete_technician(technician_id: int):
    try:
        deleted = technician_service.delete_technician(technician_id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except Exception:
        current_app.logger.exception("Technician delete failed")
        return {"errors": "Internal server error"}, 500
    return {"data": "Technician deleted" if deleted else "Technician deactivated"}, 200
