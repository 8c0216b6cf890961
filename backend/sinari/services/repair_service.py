# Overview: Repair ticket engine; totals, status lifecycle and activity logging.

"""
Repair Ticket Service

TOTALS: total_price is always derived from the stored items and discount:
    subtotal = sum(item.price)
    discount_amount = round_half_up(subtotal * discount / 100)
    total_price = subtotal - discount_amount
Amounts are whole IDR, so the discount is rounded once, half up.

STATUS: tickets open as PENDING. Staff may then set any status in
SERVICE_STATUSES, so a mistaken status can be corrected in either direction;
the ServiceLog row records what it changed from.

LOGGING: every create / update / delete / restore that changes something
appends exactly one ServiceLog in the same transaction. An update that
changes status is logged as UPDATE_STATUS, any other update as UPDATE_INFO.
"""

from __future__ import annotations

import secrets
import uuid

from flask import current_app

from ..extensions import db
from ..models import Service, ServiceItem, SERVICE_STATUSES
from ..time_utils import utcnow
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    build_paging,
    enforce_rules_service,
    normalize_phone_number,
    parse_service_items,
    validate_payload,
)
from . import notification_service
from .concurrency import lock_for_update, run_with_retry
from .repair_log_service import append_service_log
from .technician_service import get_technician


SERVICE_ID_PREFIX = "SRV-"
SERVICE_ID_ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"
SERVICE_ID_LENGTH = 6
SERVICE_ID_ATTEMPTS = 10

SERVICE_INFO_FIELDS = {
    "brand",
    "model",
    "customer_name",
    "phone_number",
    "description",
    "technician_note",
    "discount",
    "down_payment",
    "technician_id",
}

SERVICE_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=SERVICE_INFO_FIELDS,
    required_on_create={"brand", "model", "customer_name", "phone_number"},
)

SERVICE_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=SERVICE_INFO_FIELDS | {"status"},
    choices={"status": SERVICE_STATUSES},
)


def compute_totals(prices: list[int], discount: int) -> tuple[int, int]:
    """Returns (subtotal, total_price) for item prices and a 0..100 discount."""
    subtotal = sum(prices)
    discount_amount = (subtotal * discount + 50) // 100
    return subtotal, subtotal - discount_amount


def generate_service_id() -> str:
    suffix = "".join(secrets.choice(SERVICE_ID_ALPHABET) for _ in range(SERVICE_ID_LENGTH))
    return f"{SERVICE_ID_PREFIX}{suffix}"


def _unique_service_id() -> str:
    for _ in range(SERVICE_ID_ATTEMPTS):
        candidate = generate_service_id()
        exists = db.session.query(Service.id).filter(Service.service_id == candidate).first()
        if exists is None:
            return candidate
    raise RuntimeError("Could not allocate a unique service_id")


def _split_items(payload) -> tuple[dict, list[dict] | None]:
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    fields = dict(payload)
    if "service_list" not in fields:
        return fields, None
    return fields, parse_service_items(fields.pop("service_list"))


def _normalize_patch(patch: dict) -> None:
    enforce_rules_service(patch)
    if "phone_number" in patch:
        patch["phone_number"] = normalize_phone_number(patch["phone_number"])
    if patch.get("technician_id") is not None:
        get_technician(patch["technician_id"])


def get_service(service_pk: int, *, include_deleted: bool = False, lock: bool = False) -> Service:
    query = db.session.query(Service).filter(Service.id == service_pk)
    if not include_deleted:
        query = query.filter(Service.deleted_at.is_(None))
    if lock:
        query = lock_for_update(query)
    service = query.first()
    if service is None:
        raise NotFoundError("Service not found")
    return service


def get_service_by_token(tracking_token: str) -> Service:
    service = db.session.query(Service).filter(
        Service.tracking_token == tracking_token,
        Service.deleted_at.is_(None),
    ).first()
    if service is None:
        raise NotFoundError("Service not found")
    return service


def create_service(payload: dict, *, user_id: int) -> Service:
    """
    Open a new PENDING ticket with its items, totals and CREATED log.

    The customer is notified after the commit; a failed notification never
    undoes the ticket.
    """
    fields, items = _split_items(payload)
    if items is None:
        raise ValidationError("Service list must have at least 1 service")

    patch = validate_payload(model=Service, payload=fields, policy=SERVICE_CREATE_POLICY, partial=False)
    _normalize_patch(patch)
    patch.setdefault("discount", 0)
    patch.setdefault("down_payment", 0)

    _, total_price = compute_totals([i["price"] for i in items], patch["discount"])

    def _op():
        service = Service(
            **patch,
            service_id=_unique_service_id(),
            tracking_token=str(uuid.uuid4()),
            status="PENDING",
            total_price=total_price,
        )
        service.service_list = [ServiceItem(name=i["name"], price=i["price"]) for i in items]
        db.session.add(service)
        append_service_log(
            service=service,
            user_id=user_id,
            action="CREATED",
            description=f"Service created with {len(items)} item(s), total {total_price}",
        )
        db.session.commit()
        return service

    service = run_with_retry(_op)
    notification_service.notify_service_created(service)
    return service


def _items_differ(service: Service, items: list[dict]) -> bool:
    current = [(i.name, i.price) for i in service.service_list]
    return current != [(i["name"], i["price"]) for i in items]


def update_service(service_pk: int, payload: dict, *, user_id: int) -> Service:
    """
    Apply a partial update and log it as exactly one ServiceLog row.

    A payload that changes nothing writes nothing.
    """
    fields, items = _split_items(payload)
    patch = validate_payload(model=Service, payload=fields, policy=SERVICE_UPDATE_POLICY, partial=True)
    _normalize_patch(patch)

    def _op():
        service = get_service(service_pk, lock=True)

        changed = [k for k, v in patch.items() if getattr(service, k) != v]
        replace_items = items is not None and _items_differ(service, items)

        if not changed and not replace_items:
            return service, None

        previous_status = service.status

        for k in changed:
            setattr(service, k, patch[k])

        if replace_items:
            service.service_list = [ServiceItem(name=i["name"], price=i["price"]) for i in items]
            changed.append("service_list")

        if replace_items or "discount" in changed:
            _, service.total_price = compute_totals(
                [i.price for i in service.service_list], service.discount
            )

        info = sorted(k for k in changed if k != "status")
        if "status" in changed:
            action = "UPDATE_STATUS"
            description = f"Status changed from {previous_status} to {service.status}"
            if info:
                description += f"; updated fields: {', '.join(info)}"
        else:
            action = "UPDATE_INFO"
            description = f"Updated fields: {', '.join(info)}"

        service.updated_at = utcnow()
        append_service_log(service=service, user_id=user_id, action=action, description=description)
        db.session.commit()
        return service, action

    service, action = run_with_retry(_op)
    if action == "UPDATE_STATUS":
        current_app.logger.info("Service %s status -> %s", service.service_id, service.status)
        notification_service.notify_service_updated(service)
    return service


def delete_service(service_pk: int, *, user_id: int) -> Service:
    def _op():
        service = get_service(service_pk, lock=True)
        service.deleted_at = utcnow()
        append_service_log(service=service, user_id=user_id, action="DELETED", description="Service deleted")
        db.session.commit()
        return service

    return run_with_retry(_op)


def restore_service(service_pk: int, *, user_id: int) -> Service:
    def _op():
        service = get_service(service_pk, include_deleted=True, lock=True)
        if service.deleted_at is None:
            raise ValidationError("Service is not deleted")
        service.deleted_at = None
        append_service_log(service=service, user_id=user_id, action="RESTORED", description="Service restored")
        db.session.commit()
        return service

    return run_with_retry(_op)


def search_services(
    *,
    brand: str | None = None,
    model: str | None = None,
    customer_name: str | None = None,
    phone_number: str | None = None,
    service_id: str | None = None,
    status: str | None = None,
    min_price: int | None = None,
    max_price: int | None = None,
    is_deleted: bool | None = None,
    page: int = 1,
    size: int = 10,
) -> tuple[list[Service], dict]:
    query = db.session.query(Service)

    if is_deleted:
        query = query.filter(Service.deleted_at.isnot(None))
    else:
        query = query.filter(Service.deleted_at.is_(None))

    if brand:
        query = query.filter(Service.brand.ilike(f"%{brand}%"))
    if model:
        query = query.filter(Service.model.ilike(f"%{model}%"))
    if customer_name:
        query = query.filter(Service.customer_name.ilike(f"%{customer_name}%"))
    if phone_number:
        digits = "".join(ch for ch in phone_number if ch.isdigit())
        query = query.filter(Service.phone_number.contains(digits))
    if service_id:
        query = query.filter(Service.service_id.ilike(f"%{service_id}%"))
    if status:
        status = status.upper()
        if status not in SERVICE_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(SERVICE_STATUSES)}")
        query = query.filter(Service.status == status)
    if min_price is not None:
        query = query.filter(Service.total_price >= min_price)
    if max_price is not None:
        query = query.filter(Service.total_price <= max_price)

    total = query.count()
    services = (
        query.order_by(Service.created_at.desc(), Service.id.desc())
        .offset((page - 1) * size)
        .limit(size)
        .all()
    )
    return services, build_paging(page, size, total)
