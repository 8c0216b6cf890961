# Overview: Flask API routes for the store setting singleton.

from flask import Blueprint, request, current_app

from ..decorators import require_auth, require_roles
from ..services import store_setting_service
from ..validation import ValidationError

store_setting_bp = Blueprint("store_setting", __name__, url_prefix="/api/store-setting")


@store_setting_bp.get("")
@require_auth
@require_roles("VIEW_STORE_SETTING")
def get_store_setting():
    return {"data": store_setting_service.get_store_setting()}, 200


@store_setting_bp.put("")
@require_auth
@require_roles("UPDATE_STORE_SETTING")
def update_store_setting():
    payload = request.get_json(silent=True)
    try:
        setting = store_setting_service.update_store_setting(payload)
    except ValidationError as e:
        return {"errors": str(e)}, 400
    except Exception:
        current_app.logger.exception("Store setting update failed")
        return {"errors": "Internal server error"}, 500
    return {"data": setting}, 200
