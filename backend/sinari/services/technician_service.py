# Overview: Technician records referenced by repair tickets.

from __future__ import annotations

from ..extensions import db
from ..models import Service, Technician
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    NotFoundError,
    build_paging,
    validate_payload,
)


TECHNICIAN_POLICY = ModelValidationPolicy(
    writable_fields={"name", "signature_url", "is_active"},
    required_on_create={"name"},
)

TECHNICIAN_SORT_FIELDS = ("created_at", "is_active", "name")


def get_technician(technician_id: int) -> Technician:
    technician = db.session.get(Technician, technician_id)
    if technician is None:
        raise NotFoundError("Technician not found")
    return technician


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Technician).filter(Technician.name == name)
    if exclude_id is not None:
        query = query.filter(Technician.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Technician already exists with the same name")


def create_technician(payload: dict) -> Technician:
    patch = validate_payload(model=Technician, payload=payload, policy=TECHNICIAN_POLICY, partial=False)
    _ensure_unique_name(patch["name"])

    technician = Technician(**patch)
    db.session.add(technician)
    db.session.commit()
    return technician


def update_technician(technician_id: int, payload: dict) -> Technician:
    patch = validate_payload(model=Technician, payload=payload, policy=TECHNICIAN_POLICY, partial=True)
    technician = get_technician(technician_id)

    if "name" in patch and patch["name"] != technician.name:
        _ensure_unique_name(patch["name"], exclude_id=technician.id)

    for k, v in patch.items():
        setattr(technician, k, v)
    db.session.commit()
    return technician


def delete_technician(technician_id: int) -> bool:
    """
    Remove a technician.

    Technicians still referenced by tickets are deactivated instead, so ticket
    history keeps its technician. Returns True if the row was hard-deleted.
    """
    technician = get_technician(technician_id)

    referenced = db.session.query(Service.id).filter(Service.technician_id == technician.id).first()
    if referenced is not None:
        technician.is_active = False
        db.session.commit()
        return False

    db.session.delete(technician)
    db.session.commit()
    return True


def search_technicians(
    *,
    name: str | None = None,
    is_active: bool | None = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = 1,
    size: int = 10,
) -> tuple[list[Technician], dict]:
    query = db.session.query(Technician)
    if name:
        query = query.filter(Technician.name.ilike(f"%{name}%"))
    if is_active is not None:
        query = query.filter(Technician.is_active.is_(is_active))

    column = getattr(Technician, sort_by)
    ordering = column.asc() if sort_order == "asc" else column.desc()

    total = query.count()
    technicians = (
        query.order_by(ordering, Technician.id.desc())
        .offset((page - 1) * size)
        .limit(size)
        .all()
    )
    return technicians, build_paging(page, size, total)
