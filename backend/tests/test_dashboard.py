"""
Dashboard aggregation tests.

Fixed timestamps around 15 March 2026 so month bucketing is deterministic.
"""

import uuid
from datetime import datetime

import pytest

from sinari.models import ProductLog, Service
from sinari.services.dashboard_service import get_dashboard_stats, _growth


NOW = datetime(2026, 3, 15, 12, 0, 0)


def _service(session, code, status, total, created_at, updated_at=None, deleted_at=None):
    service = Service(
        service_id=code,
        tracking_token=str(uuid.uuid4()),
        brand="Samsung",
        model="A52",
        customer_name="Andi",
        phone_number="6281234567890",
        status=status,
        total_price=total,
        created_at=created_at,
        updated_at=updated_at or created_at,
        deleted_at=deleted_at,
    )
    session.add(service)
    return service


def _sale(session, product, user, qty, revenue, profit, created_at, voided=False):
    log = ProductLog(
        product_id=product.id,
        user_id=user.id,
        action="SALE_OFFLINE",
        quantity_change=-qty,
        total_revenue=revenue,
        total_profit=profit,
        description="SALE_OFFLINE: stock 10 -> 8",
        is_voided=voided,
        created_at=created_at,
    )
    session.add(log)
    return log


@pytest.fixture
def activity(db_session, owner, product):
    _service(db_session, "SRV-AAAAAA", "FINISHED", 100000, datetime(2026, 3, 1), datetime(2026, 3, 5))
    _service(db_session, "SRV-BBBBBB", "TAKEN", 50000, datetime(2026, 2, 1), datetime(2026, 2, 10))
    _service(db_session, "SRV-CCCCCC", "PROCESS", 70000, datetime(2026, 3, 2))
    _service(db_session, "SRV-DDDDDD", "PENDING", 20000, datetime(2026, 3, 3))
    _service(db_session, "SRV-EEEEEE", "FINISHED", 999, datetime(2026, 3, 4), deleted_at=datetime(2026, 3, 6))

    _sale(db_session, product, owner, 2, 20000, 4000, datetime(2026, 3, 10))
    _sale(db_session, product, owner, 1, 10000, 2000, datetime(2026, 3, 11), voided=True)
    _sale(db_session, product, owner, 3, 30000, 6000, datetime(2026, 2, 20))
    db_session.commit()


class TestGrowth:

    @pytest.mark.parametrize("current,previous,expected", [
        (0, 0, 0.0),
        (500, 0, 100.0),
        (150, 100, 50.0),
        (50, 100, -50.0),
        (2, 3, -33.33),
    ])
    def test_growth(self, current, previous, expected):
        assert _growth(current, previous) == expected


class TestDashboardStats:

    def test_cards(self, app, activity):
        cards = get_dashboard_stats(now=NOW)["cards"]

        assert cards["total_revenue"] == 120000
        assert cards["revenue_growth"] == 50.0
        assert cards["total_profit"] == 104000
        assert cards["profit_growth"] == 85.71
        assert cards["active_services"] == 1
        assert cards["pending_queue"] == 1
        assert cards["finished_jobs"] == 2
        assert cards["products_sold"] == 2

    def test_chart_covers_whole_year(self, app, activity):
        chart = get_dashboard_stats(now=NOW)["chart_data"]

        assert [m["name"] for m in chart][:3] == ["Jan", "Feb", "Mar"]
        assert len(chart) == 12
        assert [m["total"] for m in chart[:4]] == [0, 80000, 120000, 0]

    def test_recent_activity_merges_logs(self, app, activity):
        recent = get_dashboard_stats(now=NOW)["recent_activity"]

        assert len(recent) == 3
        assert {row["type"] for row in recent} == {"PRODUCT"}
        assert recent[0]["time"] == "2026-03-11T00:00:00Z"
        assert recent[0]["product_name"] == "LCD iPhone 11"

    def test_empty_store(self, app, db_session):
        stats = get_dashboard_stats(now=NOW)

        assert stats["cards"]["total_revenue"] == 0
        assert stats["cards"]["revenue_growth"] == 0.0
        assert stats["recent_activity"] == []


def test_endpoint_requires_staff(client, db_session, admin_headers, technician_headers):
    assert client.get("/api/dashboard", headers=admin_headers).status_code == 200
    assert client.get("/api/dashboard", headers=technician_headers).status_code == 403


def test_endpoint_includes_service_activity(client, db_session, admin, admin_headers, service_payload):
    client.post("/api/services", json=service_payload, headers=admin_headers)

    resp = client.get("/api/dashboard", headers=admin_headers)

    recent = resp.json["data"]["recent_activity"]
    assert recent[0]["type"] == "SERVICE"
    assert recent[0]["action"] == "CREATED"
    assert recent[0]["customer_name"] == "Andi"
