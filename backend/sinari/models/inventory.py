from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


BRANDS = (
    "APPLE",
    "SAMSUNG",
    "XIAOMI",
    "OPPO",
    "VIVO",
    "REALME",
    "INFINIX",
    "ASUS",
    "NOKIA",
    "OTHER",
)

CATEGORIES = (
    "LCD",
    "BATTERY",
    "CHARGER",
    "CABLE",
    "CASE",
    "SCREEN_GUARD",
    "SPAREPART",
    "ACCESSORY",
    "OTHER",
)


class Product(db.Model):
    """
    Product master data with a stored stock level.

    STOCK: Product.stock is the live quantity. It is only changed by the stock
    adjustment engine, the void workflow, or product creation, and every change
    is mirrored by exactly one ProductLog row written in the same transaction.
    stock is never negative.

    CONCURRENCY: version_id is an optimistic lock. Two sessions that read the
    same version and both write will make the second flush fail with
    StaleDataError, which run_with_retry turns into a fresh read.

    Uniqueness of (name, brand, manufacturer, category) is checked in the
    products service, not by a constraint, so soft-deleted rows can be
    restored under the same signature.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.Index("ix_products_signature", "name", "brand", "manufacturer", "category"),
        db.Index("ix_products_deleted_at", "deleted_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(100), nullable=False)
    brand = db.Column(db.String(32), nullable=False, default="OTHER")
    manufacturer = db.Column(db.String(100), nullable=False, default="ORIGINAL")
    category = db.Column(db.String(32), nullable=False, default="OTHER")

    # Whole currency units (IDR has no minor unit in practice)
    price = db.Column(db.Integer, nullable=False)
    cost_price = db.Column(db.Integer, nullable=False)

    stock = db.Column(db.Integer, nullable=False, default=0)

    image_url = db.Column(db.String(255), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "manufacturer": self.manufacturer,
            "category": self.category,
            "price": self.price,
            "cost_price": self.cost_price,
            "stock": self.stock,
            "image_url": self.image_url,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }

    def to_public_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "manufacturer": self.manufacturer,
            "category": self.category,
            "price": self.price,
            "stock": self.stock,
            "image_url": self.image_url,
        }


class ProductLog(db.Model):
    """
    Append-only stock audit log.

    IMMUTABLE: rows are never deleted and never edited, with one exception:
    is_voided flips from false to true exactly once, inside the same
    transaction that writes the compensating VOID_LOG row.

    quantity_change is signed: positive means stock went up.
    total_revenue / total_profit are only populated for SALE_OFFLINE.
    """
    __tablename__ = "product_logs"
    __table_args__ = (
        db.Index("ix_product_logs_product_created", "product_id", "created_at"),
        db.Index("ix_product_logs_action_created", "action", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    action = db.Column(db.String(32), nullable=False)
    quantity_change = db.Column(db.Integer, nullable=False, default=0)

    total_revenue = db.Column(db.Integer, nullable=True)
    total_profit = db.Column(db.Integer, nullable=True)

    description = db.Column(db.String(255), nullable=False)

    is_voided = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product", backref=db.backref("logs", lazy="dynamic"))
    user = db.relationship("User")

    def __repr__(self) -> str:
        return f"<ProductLog id={self.id} product_id={self.product_id} action={self.action} qty={self.quantity_change}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "action": self.action,
            "quantity_change": self.quantity_change,
            "description": self.description,
            "total_revenue": self.total_revenue,
            "total_profit": self.total_profit,
            "created_at": to_utc_z(self.created_at),
            "is_voided": self.is_voided,
            "user": self.user.to_actor_dict() if self.user else None,
        }
