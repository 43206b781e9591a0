from __future__ import annotations

import math
import re
from datetime import date, time
from typing import Any

from fastapi import HTTPException, status

from storefront.core.visibility import visible_fields
from storefront.models.shop_event import ShopEvent
from storefront.schemas.checkout import load_checkout_fields

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Stored answers may be wrapped: {"eventName": "...", "fields": {...}}
EVENT_NAME_KEY = "eventName"


def unwrap_event_data(event_data: dict | None) -> dict[str, Any]:
    if not event_data:
        return {}
    inner = event_data.get("fields")
    if isinstance(inner, dict):
        return inner
    return {k: v for k, v in event_data.items() if k != EVENT_NAME_KEY}


def load_event_fields(event: ShopEvent) -> list:
    return load_checkout_fields(event.checkout_config)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def _error(label: str, code: str, message: str) -> dict:
    return {"field": label, "code": code, "message": message}


def _validate_repeater(field, value: Any) -> list[dict]:
    label = field.label
    if value is None:
        rows: list = []
    elif isinstance(value, list) and all(isinstance(r, dict) for r in value):
        rows = value
    else:
        return [_error(label, "type", "Must be a list of rows")]

    errors: list[dict] = []
    if field.required and len(rows) < field.min_rows:
        errors.append(_error(label, "min_rows", f"At least {field.min_rows} row(s) required"))
    if field.max_rows is not None and len(rows) > field.max_rows:
        errors.append(_error(label, "max_rows", f"At most {field.max_rows} row(s) allowed"))

    if field.required:
        for i, row in enumerate(rows, start=1):
            for col in field.columns:
                cell = row.get(col.id)
                if _is_blank(cell):
                    errors.append(_error(label, "required_cell", f"Row {i}: {col.label} is required"))
    return errors


def _full_validate_one(field, value: Any) -> list[dict]:
    """
    Required + type/rule checks for one visible field.
    Returns list of error dicts (empty if ok).
    """
    label = field.label
    ftype = field.type

    if ftype == "repeater":
        return _validate_repeater(field, value)

    if ftype in ("checkbox", "toggle"):
        if field.required and value is not True:
            return [_error(label, "required", "Required")]
        if value is not None and not isinstance(value, bool):
            return [_error(label, "type", "Must be true or false")]
        return []

    if _is_blank(value):
        if field.required:
            return [_error(label, "required", "Required")]
        return []

    if isinstance(value, (dict, list)):
        return [_error(label, "type", "Must be a single value")]

    s = str(value).strip()
    errors: list[dict] = []

    if ftype in ("text", "textarea", "phone", "email"):
        if field.max_length is not None and len(s) > field.max_length:
            errors.append(_error(label, "max_length", f"Must be <= {field.max_length} chars"))
        if ftype == "email" and not EMAIL_RE.match(s):
            errors.append(_error(label, "type", "Must be an email address"))

    elif ftype == "number":
        try:
            x = float(s)
        except ValueError:
            return [_error(label, "type", "Must be a number")]
        if not math.isfinite(x):
            return [_error(label, "type", "Must be a number")]
        if field.min is not None and x < field.min:
            errors.append(_error(label, "min", f"Must be >= {field.min:g}"))
        if field.max is not None and x > field.max:
            errors.append(_error(label, "max", f"Must be <= {field.max:g}"))

    elif ftype in ("select", "radio"):
        if s not in field.options:
            errors.append(_error(label, "choice", "Must be one of allowed choices"))

    elif ftype == "date":
        try:
            date.fromisoformat(s)
        except ValueError:
            errors.append(_error(label, "type", "Must be ISO date YYYY-MM-DD"))

    elif ftype == "time":
        try:
            time.fromisoformat(s)
        except ValueError:
            errors.append(_error(label, "type", "Must be a time HH:MM"))

    return errors


def validate_answers(fields: list, answers: dict[str, Any]) -> list[dict]:
    """
    Validate visible, non-message fields in schema order.
    Hidden fields are not validated even when required.
    """
    errors: list[dict] = []
    for f in visible_fields(fields, answers):
        if f.type == "message":
            continue
        errors.extend(_full_validate_one(f, answers.get(f.label)))
    return errors


def clean_answers(fields: list, answers: dict[str, Any]) -> dict[str, Any]:
    """Payload to persist: visible, non-message fields only, keyed by label."""
    out: dict[str, Any] = {}
    for f in visible_fields(fields, answers):
        if f.type == "message" or f.label not in answers:
            continue
        out[f.label] = answers[f.label]
    return out


def validate_submission(*, event: ShopEvent, answers: dict[str, Any]) -> dict[str, Any]:
    """
    submit: full visibility-aware validation; returns the cleaned payload
    """
    fields = load_event_fields(event)
    errors = validate_answers(fields, answers)
    if errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": "Checkout validation failed", "errors": errors},
        )
    return clean_answers(fields, answers)
