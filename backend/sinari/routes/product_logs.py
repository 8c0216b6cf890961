# Overview: Flask API routes for product log voids.

from flask import Blueprint, g, current_app

from ..decorators import require_auth, require_roles
from ..services import product_log_service
from ..validation import ValidationError, NotFoundError

product_logs_bp = Blueprint("product_logs", __name__, url_prefix="/api/product-logs")


@product_logs_bp.patch("/<int:log_id>/void")
@require_auth
@require_roles("VOID_PRODUCT_LOG")
def void_product_log(log_id: int):
    """
    Reverse a RESTOCK / SALE_OFFLINE / ADJUST_DAMAGE / ADJUST_LOST log.

    OWNER only. The original log is flagged voided, stock is reverted and a
    VOID_LOG entry is appended, all in one transaction.
    """
    try:
        message = product_log_service.void_product_log(log_id=log_id, user_id=g.current_user.id)
    except NotFoundError as e:
        return {"errors": str(e)}, 404
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Void failed for product log %s", log_id)
        return {"errors": "Internal server error"}, 500
    return {"data": message}, 200
