# Overview: Stock adjustment engine; validates a target stock against an action tag.

"""
Stock Adjustment

The caller states the NEW stock level and why it changed (the action tag).
The engine derives the signed delta, checks that the tag is compatible with
the direction of change, and writes the product update and its ProductLog in
one transaction.

DIRECTION RULES:
- increase-compatible: RESTOCK, ADJUST_FOUND, ADJUST_OPNAME
- decrease-compatible: SALE_OFFLINE, ADJUST_DAMAGE, ADJUST_LOST, ADJUST_OPNAME
ADJUST_OPNAME (stock take) is valid in both directions.

SALES: SALE_OFFLINE records revenue = qty * price and
profit = qty * (price - cost_price), using the prices at the time of sale.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Product
from ..validation import NotFoundError, ValidationError
from .concurrency import lock_for_update, run_with_retry
from .product_log_service import append_product_log


INCREASE_ACTIONS = frozenset({"RESTOCK", "ADJUST_FOUND", "ADJUST_OPNAME"})
DECREASE_ACTIONS = frozenset({"SALE_OFFLINE", "ADJUST_DAMAGE", "ADJUST_LOST", "ADJUST_OPNAME"})
STOCK_ACTIONS = INCREASE_ACTIONS | DECREASE_ACTIONS


def compute_stock_change(
    *,
    current_stock: int,
    new_stock: int,
    action: str,
    price: int,
    cost_price: int,
) -> tuple[int, int | None, int | None]:
    """
    Pure part of the engine: returns (delta, total_revenue, total_profit).

    Raises ValidationError when the change is empty or the action does not
    match its direction.
    """
    if action not in STOCK_ACTIONS:
        raise ValidationError(f"stock_action must be one of: {', '.join(sorted(STOCK_ACTIONS))}")
    if new_stock < 0:
        raise ValidationError("stock must be >= 0")

    delta = new_stock - current_stock
    if delta == 0:
        raise ValidationError("New stock value is exactly the same as current stock")
    if delta > 0 and action not in INCREASE_ACTIONS:
        raise ValidationError(f"Action {action} is not allowed when stock increases")
    if delta < 0 and action not in DECREASE_ACTIONS:
        raise ValidationError(f"Action {action} is not allowed when stock decreases")

    if action == "SALE_OFFLINE":
        quantity = abs(delta)
        return delta, quantity * price, quantity * (price - cost_price)
    return delta, None, None


def adjust_stock(*, product_id: int, new_stock: int, action: str, user_id: int) -> Product:
    """
    Set a product's stock to new_stock and log the change.

    CONCURRENCY: the product row is locked for the duration of the
    read-modify-write; version_id rejects a stale write where locking is not
    available, and run_with_retry re-reads and re-validates.
    """
    def _op():
        product = lock_for_update(
            db.session.query(Product).filter(
                Product.id == product_id,
                Product.deleted_at.is_(None),
            )
        ).first()
        if product is None:
            raise NotFoundError("Product not found")

        previous = product.stock
        delta, revenue, profit = compute_stock_change(
            current_stock=previous,
            new_stock=new_stock,
            action=action,
            price=product.price,
            cost_price=product.cost_price,
        )

        product.stock = new_stock
        append_product_log(
            product=product,
            user_id=user_id,
            action=action,
            quantity_change=delta,
            total_revenue=revenue,
            total_profit=profit,
            description=f"{action}: stock {previous} -> {new_stock}",
        )

        db.session.commit()
        return product

    return run_with_retry(_op)
