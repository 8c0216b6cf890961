# Overview: Flask API route for dashboard statistics.

from flask import Blueprint

from ..decorators import require_auth, require_roles
from ..services import dashboard_service

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_auth
@require_roles("VIEW_DASHBOARD")
def get_dashboard():
    return {"data": dashboard_service.get_dashboard_stats()}, 200
