# Overview: Singleton store configuration (receipt header, warranty, payment info).

from __future__ import annotations

from ..extensions import db
from ..models import StoreSetting, DEFAULT_STORE_SETTING, STORE_SETTING_ID
from ..time_utils import to_utc_z, utcnow
from ..validation import ModelValidationPolicy, enforce_rules_store_setting, validate_payload


STORE_SETTING_POLICY = ModelValidationPolicy(
    writable_fields={
        "store_name",
        "store_address",
        "store_phone",
        "store_email",
        "store_website",
        "warranty_text",
        "payment_info",
    },
    required_on_create={"store_name", "store_address", "store_phone", "warranty_text", "payment_info"},
)


def get_store_setting() -> dict:
    """Stored settings, or the defaults when nothing has been saved yet."""
    setting = db.session.get(StoreSetting, STORE_SETTING_ID)
    if setting is None:
        return {"id": STORE_SETTING_ID, **DEFAULT_STORE_SETTING, "updated_at": to_utc_z(utcnow())}
    return setting.to_dict()


def update_store_setting(payload: dict) -> dict:
    """
    Full replacement of the settings row (PUT semantics), created on first use.

    Blank store_email / store_website clear the field.
    """
    if isinstance(payload, dict):
        payload = {k: v for k, v in payload.items() if k != "id"}
    patch = validate_payload(model=StoreSetting, payload=payload, policy=STORE_SETTING_POLICY, partial=False)
    for optional in ("store_email", "store_website"):
        if patch.get(optional) == "":
            patch[optional] = None
    enforce_rules_store_setting(patch)

    setting = db.session.get(StoreSetting, STORE_SETTING_ID)
    if setting is None:
        values = {**DEFAULT_STORE_SETTING, "store_email": None, "store_website": None, **patch}
        setting = StoreSetting(id=STORE_SETTING_ID, **values)
        db.session.add(setting)
    else:
        for k in STORE_SETTING_POLICY.writable_fields:
            setattr(setting, k, patch.get(k))
    db.session.commit()
    return setting.to_dict()
