# Overview: Request payload validation for items, customers and sales.

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text

from stockbook.time_utils import parse_iso_datetime

# 999,999,999 cents keeps totals well inside a 32-bit signed column
MAX_PRICE_CENTS = 999_999_999

# Range of a 32-bit signed INTEGER column
MIN_INT = -(2 ** 31)
MAX_INT = 2 ** 31 - 1

MOBILE_NUMBER_RE = re.compile(r"^\d{10}$")
INTEGER_RE = re.compile(r"^-?\d+$")

ADDRESS_FIELDS = ("street", "city", "state", "postal_code")


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(LookupError):
    """Referenced item, customer or sale does not exist."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which model columns a route accepts.

    writable_fields is the allowlist for any payload; required_on_create
    must be present and non-blank when partial=False.
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)


def coerce_int(name: str, value: Any) -> int:
    """
    Accept ints and plain digit strings only.

    bool, float, "12.5" and "1e3" are all rejected rather than truncated,
    and so is anything outside MIN_INT..MAX_INT.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and INTEGER_RE.match(value.strip()):
        number = int(value.strip())
    else:
        raise ValidationError(f"{name} must be an integer")

    if not MIN_INT <= number <= MAX_INT:
        raise ValidationError(f"{name} is out of range")
    return number


def coerce_datetime(name: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_iso_datetime(value)
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError(f"{name} must be an ISO-8601 datetime")


def _coerce_column_value(column, value: Any):
    kind = column.type

    if isinstance(kind, Boolean):
        if not isinstance(value, bool):
            raise ValidationError(f"{column.key} must be true or false")
        return value
    if isinstance(kind, Integer):
        return coerce_int(column.key, value)
    if isinstance(kind, DateTime):
        return coerce_datetime(column.key, value)
    if isinstance(kind, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{column.key} must be a string")
        text = str(value).strip()
        if isinstance(kind, String) and kind.length and len(text) > kind.length:
            raise ValidationError(f"{column.key} exceeds max length {kind.length}")
        return text
    return value


def validate_payload(*, model, payload: dict | None, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Turn a JSON body into a patch of model column values.

    Column metadata drives coercion (Integer, DateTime, String length) and
    NULL handling; the policy decides which keys are allowed and, on create
    (partial=False), which are required.
    """
    payload = {} if payload is None else payload
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(k for k in policy.required_on_create if payload.get(k) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}
    for key in payload:
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        if key not in columns:
            raise ValidationError(f"Unknown field: {key}")

    patch: dict = {}
    for key, raw in payload.items():
        column = columns[key]
        if raw is None:
            if not column.nullable:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
            continue

        value = _coerce_column_value(column, raw)
        if value == "" and key in policy.required_on_create:
            raise ValidationError(f"{key} cannot be blank")
        patch[key] = value

    return patch


def enforce_rules_item(patch: dict) -> None:
    """Item rules beyond column metadata."""
    if "quantity" in patch and (patch["quantity"] is None or patch["quantity"] < 0):
        raise ValidationError("quantity must be >= 0")

    if "price_cents" in patch:
        price = patch["price_cents"]
        if price is None:
            raise ValidationError("price_cents is required")
        if price < 0:
            raise ValidationError("price_cents must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"price_cents cannot exceed {MAX_PRICE_CENTS}")


def flatten_customer_payload(payload: dict | None) -> dict:
    """
    Lift the nested "address" object onto the flat Customer columns.

    Keys outside ADDRESS_FIELDS inside the address object are rejected.
    """
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    flat = {k: v for k, v in payload.items() if k != "address"}
    address = payload.get("address")
    if address is None:
        return flat
    if not isinstance(address, dict):
        raise ValidationError("address must be an object")

    for key, value in address.items():
        if key not in ADDRESS_FIELDS:
            raise ValidationError(f"Unknown address field: {key}")
        flat[key] = "" if value is None else value
    return flat


def enforce_rules_customer(patch: dict) -> None:
    if "mobile_number" in patch:
        mobile = patch["mobile_number"] or ""
        if not MOBILE_NUMBER_RE.match(mobile):
            raise ValidationError("mobile_number must be exactly 10 digits")
