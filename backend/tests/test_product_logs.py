"""
Product log listing and void workflow tests.

Verifies:
- Logs are listed newest first and only to OWNER
- Voiding reverts stock, flags the original and appends VOID_LOG atomically
- Non-voidable actions, double voids and negative results are rejected
"""

import pytest

from sinari.models import Product, ProductLog
from sinari.services import product_log_service, stock_service
from sinari.services.products_service import create_product
from sinari.validation import NotFoundError, ValidationError

from conftest import reload


def _adjust(product, new_stock, action, user):
    stock_service.adjust_stock(product_id=product.id, new_stock=new_stock, action=action, user_id=user.id)
    return ProductLog.query.filter_by(product_id=product.id).order_by(ProductLog.id.desc()).first()


class TestVoidService:

    def test_void_sale_restores_stock(self, db_session, product, admin, owner):
        sale = _adjust(product, 7, "SALE_OFFLINE", admin)

        message = product_log_service.void_product_log(log_id=sale.id, user_id=owner.id)

        assert message == "Log successfully voided and stock reverted."
        assert reload(Product, product.id).stock == 10
        assert db_session.get(ProductLog, sale.id).is_voided is True

        void_log = ProductLog.query.filter_by(action="VOID_LOG").one()
        assert void_log.quantity_change == 3
        assert void_log.user_id == owner.id
        assert void_log.description == f"Reversed log #{sale.id} (SALE_OFFLINE). Stock adjusted: +3"

    def test_void_restock_description_is_negative(self, db_session, product, admin, owner):
        restock = _adjust(product, 15, "RESTOCK", admin)

        product_log_service.void_product_log(log_id=restock.id, user_id=owner.id)

        void_log = ProductLog.query.filter_by(action="VOID_LOG").one()
        assert void_log.quantity_change == -5
        assert void_log.description.endswith("Stock adjusted: -5")
        assert reload(Product, product.id).stock == 10

    def test_cannot_void_twice(self, db_session, product, admin, owner):
        damage = _adjust(product, 8, "ADJUST_DAMAGE", admin)
        product_log_service.void_product_log(log_id=damage.id, user_id=owner.id)

        with pytest.raises(ValidationError, match="Log is already voided"):
            product_log_service.void_product_log(log_id=damage.id, user_id=owner.id)

        assert reload(Product, product.id).stock == 10
        assert ProductLog.query.filter_by(action="VOID_LOG").count() == 1

    def test_created_log_cannot_be_voided(self, db_session, owner):
        created = create_product(
            {"name": "Battery A10", "price": 50000, "cost_price": 30000, "stock": 4},
            user_id=owner.id,
        )
        log = ProductLog.query.filter_by(product_id=created.id, action="CREATED").one()

        with pytest.raises(ValidationError, match="cannot be voided"):
            product_log_service.void_product_log(log_id=log.id, user_id=owner.id)

    @pytest.mark.parametrize("action,new_stock", [("ADJUST_FOUND", 12), ("ADJUST_OPNAME", 9)])
    def test_adjust_found_and_opname_not_voidable(self, db_session, product, owner, action, new_stock):
        log = _adjust(product, new_stock, action, owner)
        with pytest.raises(ValidationError, match="cannot be voided"):
            product_log_service.void_product_log(log_id=log.id, user_id=owner.id)

    def test_void_log_itself_not_voidable(self, db_session, product, admin, owner):
        sale = _adjust(product, 9, "SALE_OFFLINE", admin)
        product_log_service.void_product_log(log_id=sale.id, user_id=owner.id)
        void_log = ProductLog.query.filter_by(action="VOID_LOG").one()

        with pytest.raises(ValidationError, match="cannot be voided"):
            product_log_service.void_product_log(log_id=void_log.id, user_id=owner.id)

    def test_void_that_would_go_negative_is_rejected(self, db_session, product, admin, owner):
        restock = _adjust(product, 15, "RESTOCK", admin)
        _adjust(product, 2, "SALE_OFFLINE", admin)

        with pytest.raises(ValidationError, match="negative stock"):
            product_log_service.void_product_log(log_id=restock.id, user_id=owner.id)

        assert reload(Product, product.id).stock == 2
        assert db_session.get(ProductLog, restock.id).is_voided is False
        assert ProductLog.query.filter_by(action="VOID_LOG").count() == 0

    def test_missing_log(self, db_session, owner):
        with pytest.raises(NotFoundError):
            product_log_service.void_product_log(log_id=424242, user_id=owner.id)


class TestProductLogApi:

    def test_logs_listed_newest_first(self, client, db_session, product, admin, owner_headers):
        _adjust(product, 12, "RESTOCK", admin)
        _adjust(product, 11, "SALE_OFFLINE", admin)

        resp = client.get(f"/api/products/{product.id}/logs", headers=owner_headers)

        assert resp.status_code == 200
        actions = [row["action"] for row in resp.json["data"]]
        assert actions == ["SALE_OFFLINE", "RESTOCK"]
        assert resp.json["data"][0]["user"] == {"username": "admin", "role": "ADMIN"}

    def test_logs_are_owner_only(self, client, db_session, product, admin_headers):
        resp = client.get(f"/api/products/{product.id}/logs", headers=admin_headers)
        assert resp.status_code == 403

    def test_logs_for_missing_product(self, client, db_session, owner_headers):
        resp = client.get("/api/products/777/logs", headers=owner_headers)
        assert resp.status_code == 404

    def test_void_endpoint(self, client, db_session, product, admin, owner_headers):
        sale = _adjust(product, 7, "SALE_OFFLINE", admin)

        resp = client.patch(f"/api/product-logs/{sale.id}/void", json={}, headers=owner_headers)

        assert resp.status_code == 200
        assert resp.json["data"] == "Log successfully voided and stock reverted."
        assert reload(Product, product.id).stock == 10

    def test_void_endpoint_admin_forbidden(self, client, db_session, product, admin, admin_headers):
        sale = _adjust(product, 7, "SALE_OFFLINE", admin)

        resp = client.patch(f"/api/product-logs/{sale.id}/void", json={}, headers=admin_headers)

        assert resp.status_code == 403
        assert reload(Product, product.id).stock == 7

    def test_void_created_returns_400(self, client, db_session, owner, owner_headers):
        created = create_product({"name": "Case A", "price": 20000, "cost_price": 5000}, user_id=owner.id)
        log = ProductLog.query.filter_by(product_id=created.id).one()

        resp = client.patch(f"/api/product-logs/{log.id}/void", json={}, headers=owner_headers)

        assert resp.status_code == 400
        assert "cannot be voided" in resp.json["errors"]

    def test_void_missing_log_returns_404(self, client, db_session, owner_headers):
        resp = client.patch("/api/product-logs/999/void", json={}, headers=owner_headers)
        assert resp.status_code == 404
