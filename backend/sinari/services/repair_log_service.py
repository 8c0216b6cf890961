# Overview: Append-only activity log for repair tickets.

from __future__ import annotations

from ..extensions import db
from ..models import Service, ServiceLog
from ..validation import NotFoundError


SERVICE_LOG_ACTIONS = ("CREATED", "UPDATE_STATUS", "UPDATE_INFO", "DELETED", "RESTORED")


def append_service_log(*, service: Service, user_id: int, action: str, description: str) -> ServiceLog:
    """Stage one ServiceLog row in the current session. Does not commit."""
    if action not in SERVICE_LOG_ACTIONS:
        raise ValueError(f"Unknown service log action: {action}")

    log = ServiceLog(service=service, user_id=user_id, action=action, description=description)
    db.session.add(log)
    return log


def list_service_logs(service_pk: int) -> list[ServiceLog]:
    """
    Logs for a non-deleted ticket, newest first.

    Deleted tickets report NotFound here even though their logs remain.
    """
    service = db.session.query(Service).filter(
        Service.id == service_pk,
        Service.deleted_at.is_(None),
    ).first()
    if service is None:
        raise NotFoundError("Service not found")

    return (
        db.session.query(ServiceLog)
        .filter(ServiceLog.service_pk == service_pk)
        .order_by(ServiceLog.created_at.desc(), ServiceLog.id.desc())
        .all()
    )
