# Overview: Outbound customer messages through the messaging channel.

from __future__ import annotations

from flask import current_app


def tracking_url(tracking_token: str) -> str:
    base = current_app.config.get("TRACKING_BASE_URL", "").rstrip("/")
    return f"{base}?token={tracking_token}"


def notify_customer(phone_number: str, message: str) -> bool:
    """
    Single exit point for customer messages.

    The channel is log-only: with NOTIFY_CUSTOMERS on the full message is
    written to the application log and True is returned; with it off only
    the recipient is logged and False is returned.
    """
    if not current_app.config.get("NOTIFY_CUSTOMERS", False):
        current_app.logger.info("Customer notification skipped (disabled): to=%s", phone_number)
        return False

    current_app.logger.info("Customer notification: to=%s message=%s", phone_number, message)
    return True


def notify_service_created(service) -> bool:
    message = (
        f"Halo {service.customer_name} Your service has been created. "
        f"Please track it here: {tracking_url(service.tracking_token)}"
    )
    return notify_customer(service.phone_number, message)


def notify_service_updated(service) -> bool:
    message = (
        f"Halo {service.customer_name} Your service has been updated. "
        f"Please track it here: {tracking_url(service.tracking_token)}"
    )
    return notify_customer(service.phone_number, message)
