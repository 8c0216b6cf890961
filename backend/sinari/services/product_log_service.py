# Overview: Product stock audit log; append, list and void.

"""
Product Log Service

WHY: Every change to Product.stock must be explainable after the fact.
Each stock mutation appends exactly one ProductLog in the same transaction.

IMMUTABILITY: Logs are never deleted or edited. The only state change is
is_voided false -> true, and only together with the compensating VOID_LOG row
and the matching stock change.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Product, ProductLog
from ..validation import NotFoundError, ValidationError
from .concurrency import lock_for_update, run_with_retry


PRODUCT_LOG_ACTIONS = (
    "CREATED",
    "RESTOCK",
    "SALE_OFFLINE",
    "ADJUST_FOUND",
    "ADJUST_DAMAGE",
    "ADJUST_LOST",
    "ADJUST_OPNAME",
    "UPDATED",
    "DELETED",
    "RESTORED",
    "VOID_LOG",
)

# Actions whose stock movement can be reversed by the owner
VOIDABLE_ACTIONS = frozenset({"SALE_OFFLINE", "ADJUST_DAMAGE", "ADJUST_LOST", "RESTOCK"})

VOID_SUCCESS_MESSAGE = "Log successfully voided and stock reverted."


def append_product_log(
    *,
    product: Product,
    user_id: int,
    action: str,
    quantity_change: int,
    description: str,
    total_revenue: int | None = None,
    total_profit: int | None = None,
) -> ProductLog:
    """
    Stage a ProductLog row in the current session. Does not commit.

    Callers commit once, together with the product change this log explains.
    """
    if action not in PRODUCT_LOG_ACTIONS:
        raise ValueError(f"Unknown product log action: {action}")

    log = ProductLog(
        product=product,
        user_id=user_id,
        action=action,
        quantity_change=quantity_change,
        total_revenue=total_revenue,
        total_profit=total_profit,
        description=description,
    )
    db.session.add(log)
    return log


def list_product_logs(product_id: int) -> list[ProductLog]:
    """Logs for a product, newest first. Deleted products still have history."""
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    return (
        db.session.query(ProductLog)
        .filter(ProductLog.product_id == product_id)
        .order_by(ProductLog.created_at.desc(), ProductLog.id.desc())
        .all()
    )


def _signed(quantity: int) -> str:
    return f"+{quantity}" if quantity > 0 else str(quantity)


def void_product_log(*, log_id: int, user_id: int) -> str:
    """
    Reverse a voidable log entry.

    CRITICAL: The three writes (flag the original, revert stock, append
    VOID_LOG) commit together or not at all.

    Raises:
        NotFoundError: log does not exist
        ValidationError: already voided, not voidable, or stock would go negative
    """
    def _op():
        log = lock_for_update(
            db.session.query(ProductLog).filter(ProductLog.id == log_id)
        ).first()
        if log is None:
            raise NotFoundError("Log not found")
        if log.is_voided:
            raise ValidationError("Log is already voided")
        if log.action not in VOIDABLE_ACTIONS:
            raise ValidationError("This type of action cannot be voided.")

        product = lock_for_update(
            db.session.query(Product).filter(Product.id == log.product_id)
        ).first()

        reversed_quantity = -log.quantity_change
        new_stock = product.stock + reversed_quantity
        if new_stock < 0:
            raise ValidationError("Cannot void: Reversing this log will cause negative stock.")

        log.is_voided = True
        product.stock = new_stock
        append_product_log(
            product=product,
            user_id=user_id,
            action="VOID_LOG",
            quantity_change=reversed_quantity,
            description=(
                f"Reversed log #{log.id} ({log.action}). "
                f"Stock adjusted: {_signed(reversed_quantity)}"
            ),
        )

        db.session.commit()
        current_app.logger.info(
            "Product log voided: log_id=%s product_id=%s reversed=%s by user_id=%s",
            log.id, product.id, reversed_quantity, user_id,
        )
        return VOID_SUCCESS_MESSAGE

    return run_with_retry(_op)
