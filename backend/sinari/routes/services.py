# Overview: Flask API routes for repair tickets; parses input and returns JSON responses.

"""
Repair ticket routes.

SECURITY:
- Ticket CRUD and search require ADMIN or OWNER.
- Ticket logs are OWNER only.
- /track/<token> is public and returns a masked projection.
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_roles
from ..services import repair_service, repair_log_service
from ..validation import (
    ValidationError,
    NotFoundError,
    parse_bool_arg,
    parse_int_arg,
    parse_paging,
)

services_bp = Blueprint("services", __name__, url_prefix="/api/services")


@services_bp.post("")
@require_auth
@require_roles("CREATE_SERVICE")
def create_service():
    payload = request.get_json(silent=True)
    try:
        service = repair_service.create_service(payload, user_id=g.current_user.id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Service create failed")
        return {"errors": "Internal server error"}, 500
    return {"data": service.to_dict()}, 200


@services_bp.get("")
@require_auth
@require_roles("VIEW_SERVICES")
def search_services():
    args = request.args
    try:
        page, size = parse_paging(args)
        services, paging = repair_service.search_services(
            brand=args.get("brand"),
            model=args.get("model"),
            customer_name=args.get("customer_name"),
            phone_number=args.get("phone_number"),
            service_id=args.get("service_id"),
            status=args.get("status"),
            min_price=parse_int_arg(args, "min_price"),
            max_price=parse_int_arg(args, "max_price"),
            is_deleted=parse_bool_arg(args, "is_deleted"),
            page=page,
            size=size,
        )
    except ValidationError as e:
        return {"errors": str(e)}, 400
    return {"data": [s.to_dict() for s in services], "paging": paging}, 200


@services_bp.get("/track/<token>")
def track_service(token: str):
    try:
        service = repair_service.get_service_by_token(token)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    return {"data": service.to_public_dict()}, 200


@services_bp.get("/<int:service_pk>")
@require_auth
@require_roles("VIEW_SERVICES")
def get_service(service_pk: int):
    try:
        service = repair_service.get_service(service_pk)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    return {"data": service.to_dict()}, 200


@services_bp.patch("/<int:service_pk>")
@require_auth
@require_roles("UPDATE_SERVICE")
def update_service(service_pk: int):
    payload = request.get_json(silent=True)
    try:
        service = repair_service.update_service(service_pk, payload, user_id=g.current_user.id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Service update failed")
        return {"errors": "Internal server error"}, 500
    return {"data": service.to_dict()}, 200


@services_bp.delete("/<int:service_pk>")
@require_auth
@require_roles("DELETE_SERVICE")
def delete_service(service_pk: int):
    try:
        service = repair_service.delete_service(service_pk, user_id=g.current_user.id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except Exception:
        current_app.logger.exception("Service delete failed")
        return {"errors": "Internal server error"}, 500
    return {"data": service.to_dict()}, 200


@services_bp.patch("/<int:service_pk>/restore")
@require_auth
@require_roles("DELETE_SERVICE")
def restore_service(service_pk: int):
    try:
        service = repair_service.restore_service(service_pk, user_id=g.current_user.id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Service restore failed")
        return {"errors": "Internal server error"}, 500
    return {"data": service.to_dict()}, 200


@services_bp.get("/<int:service_pk>/logs")
@require_auth
@require_roles("VIEW_SERVICE_LOGS")
def list_service_logs(service_pk: int):
    try:
        logs = repair_log_service.list_service_logs(service_pk)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    return {"data": [log.to_dict() for log in logs]}, 200
