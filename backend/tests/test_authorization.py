"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Each operation admits exactly its role set (no implied hierarchy)
- Public endpoints stay public
"""

import pytest

from sinari.permissions import ALL_ROLES, OPERATION_ROLES, get_allowed_roles
from sinari.services.permission_service import is_allowed


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/products"),
            ("PATCH", "/api/products/1"),
            ("DELETE", "/api/products/1"),
            ("PATCH", "/api/products/1/restore"),
            ("PATCH", "/api/products/1/stock"),
            ("GET", "/api/products/1/logs"),
            ("PATCH", "/api/product-logs/1/void"),
            ("POST", "/api/services"),
            ("GET", "/api/services"),
            ("GET", "/api/services/1"),
            ("PATCH", "/api/services/1"),
            ("DELETE", "/api/services/1"),
            ("GET", "/api/services/1/logs"),
            ("GET", "/api/technicians"),
            ("POST", "/api/technicians"),
            ("GET", "/api/store-setting"),
            ("PUT", "/api/store-setting"),
            ("GET", "/api/dashboard"),
            ("GET", "/api/users"),
            ("GET", "/api/users/current"),
            ("PATCH", "/api/users/1/role"),
            ("GET", "/api/users/1"),
            ("DELETE", "/api/users/1"),
            ("PATCH", "/api/users/1/restore"),
            ("DELETE", "/api/auth/logout"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["errors"] == "Unauthorized"

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/dashboard", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    def test_public_endpoints(self, client, db_session, product):
        assert client.get("/api/products").status_code == 200
        assert client.get(f"/api/products/{product.id}").status_code == 200
        assert client.get("/health").status_code == 200


# =============================================================================
# ROLE SETS: explicit per operation
# =============================================================================


class TestRoleSets:

    def test_every_operation_is_known(self):
        for code, roles in OPERATION_ROLES.items():
            assert roles, code
            assert roles <= set(ALL_ROLES)

    @pytest.mark.parametrize("operation", ["VIEW_PRODUCT_LOGS", "VOID_PRODUCT_LOG", "VIEW_SERVICE_LOGS",
                                           "UPDATE_STORE_SETTING", "CHANGE_USER_ROLE",
                                           "RESTORE_USER"])
    def test_owner_only_operations(self, operation):
        assert get_allowed_roles(operation) == {"OWNER"}

    @pytest.mark.parametrize("operation", ["MANAGE_PRODUCTS", "ADJUST_STOCK", "CREATE_SERVICE",
                                           "VIEW_DASHBOARD", "VIEW_STORE_SETTING", "DELETE_USER"])
    def test_staff_operations(self, operation):
        assert get_allowed_roles(operation) == {"ADMIN", "OWNER"}

    def test_no_hierarchy(self):
        # ADMIN is not implied by OWNER, and TECHNICIAN gets nothing by default
        assert not is_allowed("ADMIN", "VOID_PRODUCT_LOG")
        assert not any(is_allowed("TECHNICIAN", code) for code in OPERATION_ROLES)
        assert not any(is_allowed("CUSTOMER", code) for code in OPERATION_ROLES)

    def test_unknown_operation_denied(self):
        assert not is_allowed("OWNER", "LAUNCH_ROCKETS")
        with pytest.raises(KeyError):
            get_allowed_roles("LAUNCH_ROCKETS")


# =============================================================================
# ENDPOINT MATRIX
# =============================================================================


ROLE_HEADERS = {
    "OWNER": "owner_headers",
    "ADMIN": "admin_headers",
    "TECHNICIAN": "technician_headers",
    "CUSTOMER": "customer_headers",
}


class TestEndpointMatrix:

    @pytest.mark.parametrize("role,expected", [
        ("OWNER", 200), ("ADMIN", 200), ("TECHNICIAN", 403), ("CUSTOMER", 403),
    ])
    def test_dashboard(self, client, db_session, request, role, expected):
        headers = request.getfixturevalue(ROLE_HEADERS[role])
        assert client.get("/api/dashboard", headers=headers).status_code == expected

    @pytest.mark.parametrize("role,expected", [
        ("OWNER", 200), ("ADMIN", 403), ("TECHNICIAN", 403), ("CUSTOMER", 403),
    ])
    def test_store_setting_update(self, client, db_session, request, role, expected):
        headers = request.getfixturevalue(ROLE_HEADERS[role])
        body = {
            "store_name": "Sinari Cell",
            "store_address": "Jl. Melati 1",
            "store_phone": "081234567890",
            "warranty_text": "7 days",
            "payment_info": "Cash",
        }
        assert client.put("/api/store-setting", json=body, headers=headers).status_code == expected

    @pytest.mark.parametrize("role,expected", [
        ("OWNER", 200), ("ADMIN", 200), ("TECHNICIAN", 403), ("CUSTOMER", 403),
    ])
    def test_technician_listing(self, client, db_session, request, role, expected):
        headers = request.getfixturevalue(ROLE_HEADERS[role])
        assert client.get("/api/technicians", headers=headers).status_code == expected

    @pytest.mark.parametrize("role,expected", [
        ("OWNER", 200), ("ADMIN", 200), ("TECHNICIAN", 403), ("CUSTOMER", 403),
    ])
    def test_user_search(self, client, db_session, request, role, expected):
        headers = request.getfixturevalue(ROLE_HEADERS[role])
        assert client.get("/api/users", headers=headers).status_code == expected

    def test_forbidden_body(self, client, db_session, customer_headers):
        resp = client.get("/api/dashboard", headers=customer_headers)
        assert resp.json == {"errors": "Forbidden"}
