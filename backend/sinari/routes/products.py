# Overview: Flask API routes for products and stock; parses input and returns JSON responses.

# backend/sinari/routes/products.py
"""
Product routes.

SECURITY:
- GET /<id> is public; ADMIN/OWNER callers get the full projection
  (cost_price, timestamps), everyone else the public one.
- Search is public; only ADMIN/OWNER may list deleted products.
- Writes and stock adjustments require ADMIN or OWNER.
- Product logs are OWNER only.
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_roles, optional_auth
from ..services import products_service, product_log_service, stock_service, permission_service
from ..services.products_service import PRODUCT_SORT_FIELDS
from ..validation import (
    ValidationError,
    ConflictError,
    NotFoundError,
    parse_bool_arg,
    parse_int_arg,
    parse_paging,
    parse_sort,
    parse_stock_adjustment,
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _is_staff() -> bool:
    return permission_service.is_allowed(
        getattr(g.current_user, "role", None),
        "VIEW_PRODUCT_DETAILS",
    )


@products_bp.post("")
@require_auth
@require_roles("MANAGE_PRODUCTS")
def create_product():
    payload = request.get_json(silent=True)
    try:
        product = products_service.create_product(payload, user_id=g.current_user.id)
    except ConflictError as e:
        return {"errors": str(e)}, 409
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Product create failed")
        return {"errors": "Internal server error"}, 500
    return {"data": product.to_dict()}, 200


@products_bp.get("")
@optional_auth
def search_products():
    """
    Query params:
    - name, manufacturer: substring match
    - brand, category: exact enum value
    - min_price, max_price: inclusive bounds on price
    - in_stock_only: only stock > 0
    - is_deleted: list soft-deleted products (ADMIN/OWNER only)
    - sort_by: name | price | stock | created_at; sort_order: asc | desc
    - page, size
    """
    args = request.args
    try:
        page, size = parse_paging(args)
        sort_by, sort_order = parse_sort(args, PRODUCT_SORT_FIELDS, "created_at")
        is_deleted = parse_bool_arg(args, "is_deleted")
        staff = _is_staff()
        if is_deleted and not staff:
            return {"errors": "Forbidden"}, 403

        products, paging = products_service.search_products(
            name=args.get("name"),
            brand=args.get("brand"),
            manufacturer=args.get("manufacturer"),
            category=args.get("category"),
            min_price=parse_int_arg(args, "min_price"),
            max_price=parse_int_arg(args, "max_price"),
            in_stock_only=parse_bool_arg(args, "in_stock_only"),
            is_deleted=is_deleted,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            size=size,
        )
    except ValidationError as e:
        return {"errors": str(e)}, 400

    project = (lambda p: p.to_dict()) if staff else (lambda p: p.to_public_dict())
    return {"data": [project(p) for p in products], "paging": paging}, 200


@products_bp.get("/<int:product_id>")
@optional_auth
def get_product(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    data = product.to_dict() if _is_staff() else product.to_public_dict()
    return {"data": data}, 200


@products_bp.patch("/<int:product_id>")
@require_auth
@require_roles("MANAGE_PRODUCTS")
def update_product(product_id: int):
    payload = request.get_json(silent=True)
    try:
        product = products_service.update_product(product_id, payload, user_id=g.current_user.id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except ConflictError as e:
        return {"errors": str(e)}, 409
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Product update failed")
        return {"errors": "Internal server error"}, 500
    return {"data": product.to_dict()}, 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_roles("MANAGE_PRODUCTS")
def delete_product(product_id: int):
    try:
        product = products_service.delete_product(product_id, user_id=g.current_user.id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except Exception:
        current_app.logger.exception("Product delete failed")
        return {"errors": "Internal server error"}, 500
    return {"data": product.to_dict()}, 200


@products_bp.patch("/<int:product_id>/restore")
@require_auth
@require_roles("MANAGE_PRODUCTS")
def restore_product(product_id: int):
    try:
        product = products_service.restore_product(product_id, user_id=g.current_user.id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except ConflictError as e:
        return {"errors": str(e)}, 409
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Product restore failed")
        return {"errors": "Internal server error"}, 500
    return {"data": product.to_dict()}, 200


@products_bp.patch("/<int:product_id>/stock")
@require_auth
@require_roles("ADJUST_STOCK")
def adjust_stock(product_id: int):
    """
    Set stock to a new absolute value with a reason.

    Body: {"stock": <new stock>, "stock_action": RESTOCK | SALE_OFFLINE |
    ADJUST_FOUND | ADJUST_DAMAGE | ADJUST_LOST | ADJUST_OPNAME}
    """
    payload = request.get_json(silent=True)
    try:
        new_stock, action = parse_stock_adjustment(payload)
        product = stock_service.adjust_stock(
            product_id=product_id,
            new_stock=new_stock,
            action=action,
            user_id=g.current_user.id,
        )
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Stock adjustment failed")
        return {"errors": "Internal server error"}, 500
    return {"data": product.to_dict()}, 200


@products_bp.get("/<int:product_id>/logs")
@require_auth
@require_roles("VIEW_PRODUCT_LOGS")
def list_product_logs(product_id: int):
    try:
        logs = product_log_service.list_product_logs(product_id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    return {"data": [log.to_dict() for log in logs]}, 200
