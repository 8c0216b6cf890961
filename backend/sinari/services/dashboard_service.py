# Overview: Owner/admin dashboard aggregates over tickets and sales logs.

"""
Dashboard Statistics

REVENUE: completed tickets (FINISHED or TAKEN, bucketed by updated_at) plus
non-voided SALE_OFFLINE product logs. Ticket revenue counts fully as profit;
product profit is the logged total_profit.

GROWTH: percentage change against the previous calendar month. With no
revenue last month, growth is 100 if there is revenue now, else 0.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Product, ProductLog, Service, ServiceLog
from ..time_utils import start_of_month, start_of_previous_month, start_of_year, to_utc_z, utcnow


COMPLETED_STATUSES = ("FINISHED", "TAKEN")
MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
RECENT_ACTIVITY_LIMIT = 5


def _growth(current: int, previous: int) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 2)


def _service_revenue(start, end=None) -> int:
    query = db.session.query(db.func.coalesce(db.func.sum(Service.total_price), 0)).filter(
        Service.status.in_(COMPLETED_STATUSES),
        Service.deleted_at.is_(None),
        Service.updated_at >= start,
    )
    if end is not None:
        query = query.filter(Service.updated_at < end)
    return int(query.scalar() or 0)


def _sales_query(*columns):
    return db.session.query(*columns).filter(
        ProductLog.action == "SALE_OFFLINE",
        ProductLog.is_voided.is_(False),
    )


def _sales_totals(start, end=None) -> tuple[int, int]:
    query = _sales_query(
        db.func.coalesce(db.func.sum(ProductLog.total_revenue), 0),
        db.func.coalesce(db.func.sum(ProductLog.total_profit), 0),
    ).filter(ProductLog.created_at >= start)
    if end is not None:
        query = query.filter(ProductLog.created_at < end)
    revenue, profit = query.one()
    return int(revenue or 0), int(profit or 0)


def _count_services(*statuses) -> int:
    return db.session.query(Service).filter(
        Service.status.in_(statuses),
        Service.deleted_at.is_(None),
    ).count()


def _monthly_chart(year_start) -> list[dict]:
    totals = [0] * 12

    services = db.session.query(Service.created_at, Service.total_price).filter(
        Service.status.in_(COMPLETED_STATUSES),
        Service.deleted_at.is_(None),
        Service.created_at >= year_start,
    )
    for created_at, total_price in services:
        if created_at.year == year_start.year:
            totals[created_at.month - 1] += total_price or 0

    sales = _sales_query(ProductLog.created_at, ProductLog.total_revenue).filter(
        ProductLog.created_at >= year_start,
    )
    for created_at, revenue in sales:
        if created_at.year == year_start.year:
            totals[created_at.month - 1] += revenue or 0

    return [{"name": name, "total": totals[i]} for i, name in enumerate(MONTH_NAMES)]


def _recent_activity() -> list[dict]:
    rows = []

    service_logs = (
        db.session.query(ServiceLog)
        .order_by(ServiceLog.created_at.desc(), ServiceLog.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    for log in service_logs:
        service = db.session.get(Service, log.service_pk)
        rows.append((log.created_at, {
            "id": log.id,
            "type": "SERVICE",
            "username": log.user.username if log.user else None,
            "action": log.action,
            "description": log.description,
            "time": to_utc_z(log.created_at),
            "service_id": service.service_id,
            "service_pk": service.id,
            "customer_name": service.customer_name,
            "is_deleted": service.deleted_at is not None,
        }))

    product_logs = (
        db.session.query(ProductLog)
        .order_by(ProductLog.created_at.desc(), ProductLog.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    for log in product_logs:
        product = db.session.get(Product, log.product_id)
        rows.append((log.created_at, {
            "id": log.id,
            "type": "PRODUCT",
            "username": log.user.username if log.user else None,
            "action": log.action,
            "description": log.description,
            "time": to_utc_z(log.created_at),
            "product_pk": product.id,
            "product_name": product.name,
            "is_deleted": product.deleted_at is not None,
        }))

    rows.sort(key=lambda row: row[0], reverse=True)
    return [entry for _, entry in rows[:RECENT_ACTIVITY_LIMIT]]


def get_dashboard_stats(now=None) -> dict:
    now = now or utcnow()
    this_month = start_of_month(now)
    last_month = start_of_previous_month(now)

    service_now = _service_revenue(this_month)
    service_before = _service_revenue(last_month, this_month)
    sales_now, sales_profit_now = _sales_totals(this_month)
    sales_before, sales_profit_before = _sales_totals(last_month, this_month)

    revenue = service_now + sales_now
    revenue_before = service_before + sales_before
    profit = service_now + sales_profit_now
    profit_before = service_before + sales_profit_before

    sold = _sales_query(db.func.coalesce(db.func.sum(ProductLog.quantity_change), 0)).filter(
        ProductLog.created_at >= this_month,
    ).scalar()

    return {
        "cards": {
            "total_revenue": revenue,
            "revenue_growth": _growth(revenue, revenue_before),
            "total_profit": profit,
            "profit_growth": _growth(profit, profit_before),
            "active_services": _count_services("PROCESS"),
            "pending_queue": _count_services("PENDING"),
            "finished_jobs": _count_services(*COMPLETED_STATUSES),
            "products_sold": abs(int(sold or 0)),
        },
        "chart_data": _monthly_chart(start_of_year(now)),
        "recent_activity": _recent_activity(),
    }
