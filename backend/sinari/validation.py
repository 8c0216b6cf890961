from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Whole IDR; keeps integer columns well inside 32-bit range
MAX_PRICE = 999_999_999

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Matches services.phone_number String(20)
PHONE_MAX_LENGTH = 20

INDONESIAN_PHONE_REGEX = re.compile(r"^(\+62|62|0)8[1-9][0-9]{6,10}$")
EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate product)."""


class NotFoundError(ValueError):
    """404-level missing or soft-deleted entity."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - choices: enum-like fields; values are upper-cased then checked
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    choices: dict[str, tuple[str, ...]] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{col.key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{col.key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{col.key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{col.key} must be an integer")
        # JSON numbers like 10000.0 are whole; 12.5 is not
        if isinstance(value, float):
            if value.is_integer():
                return int(value)
            raise ValidationError(f"{col.key} must be an integer, not a decimal")
        raise ValidationError(f"{col.key} must be an integer")

    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"1", "true", "yes", "on"}
        return bool(value)

    if isinstance(coltype, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{col.key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    - policy.choices for enum-like columns
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    choices = policy.choices or {}

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        if k in choices:
            val = val.upper()
            if val not in choices[k]:
                raise ValidationError(f"{k} must be one of: {', '.join(choices[k])}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict, current=None) -> None:
    """
    Price rules that are not captured by SQLAlchemy metadata alone.

    On update, `current` is the stored product so a patch that only touches
    one of price / cost_price is still checked against the other.
    """
    for field in ("price", "cost_price"):
        if field in patch:
            value = patch[field]
            if value <= 0:
                raise ValidationError(f"{field} must be greater than 0")
            if value > MAX_PRICE:
                raise ValidationError(f"{field} cannot exceed {MAX_PRICE}")

    if "stock" in patch and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")

    price = patch.get("price", getattr(current, "price", None))
    cost_price = patch.get("cost_price", getattr(current, "cost_price", None))
    if price is not None and cost_price is not None and cost_price > price:
        raise ValidationError("cost_price cannot be greater than price")


def parse_stock_adjustment(payload: dict) -> tuple[int, str]:
    """Returns (new_stock, action) from a {stock, stock_action} body."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if "stock" not in payload or payload["stock"] is None:
        raise ValidationError("stock is required")
    raw = payload["stock"]
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValidationError("stock must be an integer")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise ValidationError("stock must be an integer, not a decimal")
        raw = int(raw)
    if raw < 0:
        raise ValidationError("stock must be >= 0")

    action = payload.get("stock_action")
    if not isinstance(action, str) or not action.strip():
        raise ValidationError("stock_action is required")

    return raw, action.strip().upper()


def parse_service_items(raw) -> list[dict]:
    """
    Normalizes a service_list payload into [{name, price}, ...].

    Raises ValidationError for an empty list, blank names or non-positive prices.
    """
    if not isinstance(raw, list) or not raw:
        raise ValidationError("Service list must have at least 1 service")

    items = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError(f"service_list[{idx}] must be an object")
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(f"service_list[{idx}].name is required")
        if len(name.strip()) > 100:
            raise ValidationError(f"service_list[{idx}].name exceeds max length 100")
        price = entry.get("price")
        if isinstance(price, bool) or not isinstance(price, (int, float)):
            raise ValidationError(f"service_list[{idx}].price must be a number")
        if isinstance(price, float):
            if not price.is_integer():
                raise ValidationError(f"service_list[{idx}].price must be an integer")
            price = int(price)
        if price <= 0:
            raise ValidationError(f"service_list[{idx}].price must be greater than 0")
        if price > MAX_PRICE:
            raise ValidationError(f"service_list[{idx}].price cannot exceed {MAX_PRICE}")
        items.append({"name": name.strip(), "price": price})
    return items


def enforce_rules_service(patch: dict) -> None:
    if "discount" in patch:
        discount = patch["discount"]
        if discount < 0 or discount > 100:
            raise ValidationError("discount must be between 0 and 100")
    if "down_payment" in patch and patch["down_payment"] < 0:
        raise ValidationError("down_payment must be >= 0")


def normalize_phone_number(phone: str) -> str:
    """
    Normalizes an Indonesian phone number to the 62... form.

    "0812-3456" -> "628123456", "+62 812" -> "62812", "812" -> "62812"
    """
    digits = re.sub(r"\D", "", phone or "")
    if not digits:
        raise ValidationError("phone_number must contain digits")
    if digits.startswith("0"):
        digits = "62" + digits[1:]
    elif not digits.startswith("62"):
        digits = "62" + digits
    if len(digits) > PHONE_MAX_LENGTH:
        raise ValidationError(f"phone_number exceeds max length {PHONE_MAX_LENGTH}")
    return digits


def enforce_rules_store_setting(patch: dict) -> None:
    phone = patch.get("store_phone")
    if phone is not None:
        if len(phone) < 9 or len(phone) > 15:
            raise ValidationError("store_phone must be 9 to 15 characters")
        if not INDONESIAN_PHONE_REGEX.match(phone):
            raise ValidationError("store_phone has the wrong format")

    email = patch.get("store_email")
    if email and not EMAIL_REGEX.match(email):
        raise ValidationError("store_email must be a valid email address")

    website = patch.get("store_website")
    if website:
        parsed = urlparse(website)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError("store_website must be a valid URL (e.g., https://example.com)")


def parse_paging(args) -> tuple[int, int]:
    """Returns (page, size) from query args; page >= 1, 1 <= size <= 100."""
    try:
        page = int(args.get("page", 1))
        size = int(args.get("size", DEFAULT_PAGE_SIZE))
    except (TypeError, ValueError):
        raise ValidationError("page and size must be integers")
    if page < 1:
        raise ValidationError("page must be >= 1")
    if size < 1 or size > MAX_PAGE_SIZE:
        raise ValidationError(f"size must be between 1 and {MAX_PAGE_SIZE}")
    return page, size


def parse_int_arg(args, name: str) -> int | None:
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")
    if value < 0:
        raise ValidationError(f"{name} must be >= 0")
    return value


def parse_bool_arg(args, name: str) -> bool | None:
    raw = args.get(name)
    if raw is None or raw == "":
        return None
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


def parse_sort(args, allowed: tuple[str, ...], default: str) -> tuple[str, str]:
    sort_by = args.get("sort_by") or default
    if sort_by not in allowed:
        raise ValidationError(f"sort_by must be one of: {', '.join(allowed)}")
    sort_order = (args.get("sort_order") or "desc").lower()
    if sort_order not in ("asc", "desc"):
        raise ValidationError("sort_order must be asc or desc")
    return sort_by, sort_order


def build_paging(page: int, size: int, total: int) -> dict:
    total_page = (total + size - 1) // size
    return {"size": size, "current_page": page, "total_page": total_page}
