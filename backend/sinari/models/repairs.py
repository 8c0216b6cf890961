from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


SERVICE_STATUSES = ("PENDING", "PROCESS", "FINISHED", "TAKEN", "CANCELLED")


class Technician(db.Model):
    __tablename__ = "technicians"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    signature_url = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "signature_url": self.signature_url,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Service(db.Model):
    """
    Repair ticket tracking one customer device.

    STATUS: starts PENDING and may then be set to any value in
    SERVICE_STATUSES; every change is logged as UPDATE_STATUS.

    TOTALS: total_price is derived, never client-supplied:
        sum(item.price) - round_half_up(sum * discount / 100)
    and is recomputed whenever items or discount change.

    service_id is the short human-readable code printed on receipts;
    tracking_token is the unguessable value used by the public tracking page.
    """
    __tablename__ = "services"
    __table_args__ = (
        db.Index("ix_services_status_updated", "status", "updated_at"),
        db.Index("ix_services_deleted_at", "deleted_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    service_id = db.Column(db.String(16), nullable=False, unique=True)
    tracking_token = db.Column(db.String(36), nullable=False, unique=True)

    brand = db.Column(db.String(32), nullable=False)
    model = db.Column(db.String(100), nullable=False)
    customer_name = db.Column(db.String(100), nullable=False)
    phone_number = db.Column(db.String(20), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    technician_note = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="PENDING")

    # Percentage 0..100
    discount = db.Column(db.Integer, nullable=False, default=0)
    down_payment = db.Column(db.Integer, nullable=False, default=0)
    total_price = db.Column(db.Integer, nullable=False, default=0)

    technician_id = db.Column(db.Integer, db.ForeignKey("technicians.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    technician = db.relationship("Technician", backref=db.backref("services", lazy="dynamic"))
    service_list = db.relationship(
        "ServiceItem",
        backref="service",
        cascade="all, delete-orphan",
        order_by="ServiceItem.id",
    )

    def __repr__(self) -> str:
        return f"<Service id={self.id} service_id={self.service_id!r} status={self.status}>"

    def _items(self) -> list[dict]:
        return [item.to_dict() for item in self.service_list]

    def to_dict(self) -> dict:
        technician = None
        if self.technician is not None:
            technician = {
                "id": self.technician.id,
                "name": self.technician.name,
                "is_active": self.technician.is_active,
                "signature_url": self.technician.signature_url,
            }
        return {
            "id": self.id,
            "service_id": self.service_id,
            "brand": self.brand,
            "model": self.model,
            "customer_name": self.customer_name,
            "phone_number": self.phone_number,
            "description": self.description,
            "technician_note": self.technician_note,
            "status": self.status,
            "service_list": self._items(),
            "total_items": len(self.service_list),
            "discount": self.discount,
            "down_payment": self.down_payment,
            "total_price": self.total_price,
            "tracking_token": self.tracking_token,
            "technician": technician,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }

    def to_public_dict(self) -> dict:
        technician = None
        if self.technician is not None:
            technician = {
                "name": self.technician.name,
                "signature_url": self.technician.signature_url,
            }
        return {
            "service_id": self.service_id,
            "brand": self.brand,
            "model": self.model,
            "customer_name": self.customer_name,
            "phone_number": mask_phone_number(self.phone_number),
            "description": self.description,
            "technician_note": self.technician_note,
            "status": self.status,
            "service_list": self._items(),
            "total_items": len(self.service_list),
            "discount": self.discount,
            "down_payment": self.down_payment,
            "total_price": self.total_price,
            "technician": technician,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class ServiceItem(db.Model):
    __tablename__ = "service_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    service_pk = db.Column(
        "service_id",
        db.Integer,
        db.ForeignKey("services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "price": self.price}


class ServiceLog(db.Model):
    """
    Append-only ticket activity log.

    One row per mutating operation on a Service. Unlike ProductLog there is no
    void flag: status changes do not move stock, so a mistaken update is
    corrected by another update (which is itself logged).
    """
    __tablename__ = "service_logs"
    __table_args__ = (
        db.Index("ix_service_logs_service_created", "service_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    service_pk = db.Column("service_id", db.Integer, db.ForeignKey("services.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    action = db.Column(db.String(32), nullable=False)
    description = db.Column(db.String(500), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    service = db.relationship("Service", backref=db.backref("logs", lazy="dynamic"))
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "service_id": self.service_pk,
            "action": self.action,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "user": self.user.to_actor_dict() if self.user else None,
        }


def mask_phone_number(phone_number: str) -> str:
    """Keep the first and last four digits visible."""
    if len(phone_number) < 8:
        return phone_number
    visible = 4
    hidden = len(phone_number) - 2 * visible
    return phone_number[:visible] + "*" * hidden + phone_number[-visible:]
