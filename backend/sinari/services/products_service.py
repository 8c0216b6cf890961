# backend/sinari/services/products_service.py
"""
Products Service

Product master data: create, read, search, info update, soft delete and
restore. Stock is NOT writable here after creation; every later stock change
goes through stock_service.adjust_stock so it is logged with an action tag.

UNIQUENESS: (name, brand, manufacturer, category) is unique among
non-deleted products. Manufacturer is stored upper-cased.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Product, BRANDS, CATEGORIES
from ..time_utils import utcnow
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    build_paging,
    enforce_rules_product,
    validate_payload,
)
from .concurrency import lock_for_update, run_with_retry
from .product_log_service import append_product_log


PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "brand", "manufacturer", "category", "price", "cost_price", "stock", "image_url"},
    required_on_create={"name", "price", "cost_price"},
    choices={"brand": BRANDS, "category": CATEGORIES},
)

PRODUCT_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "brand", "manufacturer", "category", "price", "cost_price", "image_url"},
    choices={"brand": BRANDS, "category": CATEGORIES},
)

SIGNATURE_FIELDS = ("name", "brand", "manufacturer", "category")

PRODUCT_SORT_FIELDS = ("name", "price", "stock", "created_at")


def _ensure_unique_signature(values: dict, exclude_id: int | None = None) -> None:
    query = db.session.query(Product).filter(
        Product.name == values["name"],
        Product.brand == values["brand"],
        Product.manufacturer == values["manufacturer"],
        Product.category == values["category"],
        Product.deleted_at.is_(None),
    )
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Product already exists (Same Name, Brand, Manufacturer & Category)")


def get_product(product_id: int, *, include_deleted: bool = False, lock: bool = False) -> Product:
    query = db.session.query(Product).filter(Product.id == product_id)
    if not include_deleted:
        query = query.filter(Product.deleted_at.is_(None))
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError("Product not found")
    return product


def create_product(payload: dict, *, user_id: int) -> Product:
    """
    Create a product and log it as CREATED with its initial stock.

    The CREATED log is written even for stock 0 so every product history
    starts with its creator.
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_CREATE_POLICY, partial=False)
    enforce_rules_product(patch)

    patch.setdefault("brand", "OTHER")
    patch.setdefault("category", "OTHER")
    patch["manufacturer"] = (patch.get("manufacturer") or "ORIGINAL").upper()
    patch.setdefault("stock", 0)

    def _op():
        _ensure_unique_signature(patch)

        product = Product(**patch)
        db.session.add(product)
        append_product_log(
            product=product,
            user_id=user_id,
            action="CREATED",
            quantity_change=product.stock,
            description=f"Product created with initial stock {product.stock}",
        )
        db.session.commit()
        return product

    return run_with_retry(_op)


def update_product(product_id: int, payload: dict, *, user_id: int) -> Product:
    """Info-only update; logged as UPDATED with quantity_change 0."""
    if isinstance(payload, dict) and "stock" in payload:
        raise ValidationError("stock cannot be updated here; use the stock adjustment endpoint")

    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_UPDATE_POLICY, partial=True)
    if "manufacturer" in patch:
        patch["manufacturer"] = patch["manufacturer"].upper()

    def _op():
        product = get_product(product_id, lock=True)
        enforce_rules_product(patch, current=product)

        changed = [k for k, v in patch.items() if getattr(product, k) != v]
        if not changed:
            return product

        if any(k in SIGNATURE_FIELDS for k in changed):
            signature = {k: patch.get(k, getattr(product, k)) for k in SIGNATURE_FIELDS}
            _ensure_unique_signature(signature, exclude_id=product.id)

        for k in changed:
            setattr(product, k, patch[k])

        append_product_log(
            product=product,
            user_id=user_id,
            action="UPDATED",
            quantity_change=0,
            description=f"Updated fields: {', '.join(sorted(changed))}",
        )
        db.session.commit()
        return product

    return run_with_retry(_op)


def delete_product(product_id: int, *, user_id: int) -> Product:
    def _op():
        product = get_product(product_id, lock=True)
        product.deleted_at = utcnow()
        append_product_log(
            product=product,
            user_id=user_id,
            action="DELETED",
            quantity_change=0,
            description="Product deleted",
        )
        db.session.commit()
        return product

    return run_with_retry(_op)


def restore_product(product_id: int, *, user_id: int) -> Product:
    def _op():
        product = get_product(product_id, include_deleted=True, lock=True)
        if product.deleted_at is None:
            raise ValidationError("Product is not deleted")

        _ensure_unique_signature(
            {k: getattr(product, k) for k in SIGNATURE_FIELDS},
            exclude_id=product.id,
        )

        product.deleted_at = None
        append_product_log(
            product=product,
            user_id=user_id,
            action="RESTORED",
            quantity_change=0,
            description="Product restored",
        )
        db.session.commit()
        return product

    return run_with_retry(_op)


def search_products(
    *,
    name: str | None = None,
    brand: str | None = None,
    manufacturer: str | None = None,
    category: str | None = None,
    min_price: int | None = None,
    max_price: int | None = None,
    in_stock_only: bool | None = None,
    is_deleted: bool | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = 1,
    size: int = 10,
) -> tuple[list[Product], dict]:
    """
    Filtered, paged product listing.

    is_deleted=True lists only soft-deleted products; callers decide who may
    ask for that.
    """
    query = db.session.query(Product)

    if is_deleted:
        query = query.filter(Product.deleted_at.isnot(None))
    else:
        query = query.filter(Product.deleted_at.is_(None))

    if name:
        query = query.filter(Product.name.ilike(f"%{name}%"))
    if brand:
        brand = brand.upper()
        if brand not in BRANDS:
            raise ValidationError(f"brand must be one of: {', '.join(BRANDS)}")
        query = query.filter(Product.brand == brand)
    if manufacturer:
        query = query.filter(Product.manufacturer.ilike(f"%{manufacturer}%"))
    if category:
        category = category.upper()
        if category not in CATEGORIES:
            raise ValidationError(f"category must be one of: {', '.join(CATEGORIES)}")
        query = query.filter(Product.category == category)
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if in_stock_only:
        query = query.filter(Product.stock > 0)

    column = getattr(Product, sort_by)
    ordering = column.asc() if sort_order == "asc" else column.desc()

    total = query.count()
    products = (
        query.order_by(ordering, Product.id.desc())
        .offset((page - 1) * size)
        .limit(size)
        .all()
    )
    return products, build_paging(page, size, total)
