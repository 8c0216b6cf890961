"""
Concurrency tests.

Verifies:
- run_with_retry retries only concurrency failures and rolls back every time
- Product.version_id catches a lost update
"""

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from sinari.extensions import db
from sinari.models import Product, ProductLog
from sinari.services import concurrency
from sinari.services.concurrency import run_with_retry
from sinari.services.stock_service import adjust_stock
from sinari.validation import ValidationError

from conftest import reload


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(concurrency.time, "sleep", lambda seconds: None)


class TestRunWithRetry:

    def test_retries_stale_data(self, app, no_sleep):
        calls = []

        def op():
            calls.append(1)
            if len(calls) == 1:
                raise StaleDataError("version mismatch")
            return "ok"

        assert run_with_retry(op) == "ok"
        assert len(calls) == 2

    def test_gives_up_after_attempts(self, app, no_sleep):
        calls = []

        def op():
            calls.append(1)
            raise OperationalError("UPDATE products", {}, Exception("database is locked"))

        with pytest.raises(OperationalError):
            run_with_retry(op, attempts=3)
        assert len(calls) == 3

    def test_business_errors_are_not_retried(self, app, no_sleep):
        calls = []

        def op():
            calls.append(1)
            raise ValidationError("nope")

        with pytest.raises(ValidationError):
            run_with_retry(op)
        assert len(calls) == 1

    def test_failure_rolls_back_pending_writes(self, app, db_session, product):
        def op():
            product.name = "Half written"
            raise ValidationError("abort")

        with pytest.raises(ValidationError):
            run_with_retry(op)

        assert reload(Product, product.id).name == "LCD iPhone 11"


class TestOptimisticLock:

    def test_version_increments_on_adjustment(self, app, db_session, owner, product):
        before = product.version_id

        adjust_stock(product_id=product.id, new_stock=15, action="RESTOCK", user_id=owner.id)

        assert reload(Product, product.id).version_id == before + 1

    def test_concurrent_write_detected(self, app, db_session, product):
        stale = db_session.get(Product, product.id)
        assert stale.version_id == 1

        # Another writer commits a new version behind this session's back
        db_session.execute(
            db.text("UPDATE products SET version_id = version_id + 1 WHERE id = :id"),
            {"id": product.id},
        )

        stale.stock = 5
        with pytest.raises(StaleDataError):
            db_session.flush()
        db_session.rollback()

        assert reload(Product, product.id).stock == 10
        assert ProductLog.query.count() == 0
