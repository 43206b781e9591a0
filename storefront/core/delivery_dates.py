"""
Recover an order's delivery/pickup day from its free-form checkout answers.

Orders have no dedicated date column; the day lives somewhere in the answers
under a label mentioning "delivery" or "pickup". Keys are inspected in storage
order and the first parseable date wins. Orders without one are not
attributed to any day.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from storefront.core.checkout_validation import unwrap_event_data

logger = logging.getLogger(__name__)

DATE_KEYWORDS = ("delivery", "pickup")
DATE_SEPARATORS = ("-", "/")

# Tried after date.fromisoformat
_FALLBACK_FORMATS = ("%Y/%m/%d", "%m/%d/%Y")


def parse_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not s:
        return None

    try:
        return date.fromisoformat(s)
    except ValueError:
        pass
    try:
        # fromisoformat only accepts a "Z" suffix from 3.11 on
        return datetime.fromisoformat(s[:-1] + "+00:00" if s.endswith("Z") else s).date()
    except ValueError:
        pass
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def looks_like_date(value: Any) -> bool:
    return isinstance(value, str) and any(sep in value for sep in DATE_SEPARATORS)


def is_schedule_label(label: str) -> bool:
    lowered = label.lower()
    return any(k in lowered for k in DATE_KEYWORDS)


def _date_from_rows(rows: list) -> date | None:
    # Only the first slot decides which day the order consumes.
    if not rows or not isinstance(rows[0], dict):
        return None
    for cell in rows[0].values():
        if looks_like_date(cell):
            parsed = parse_date(cell)
            if parsed is not None:
                return parsed
    return None


def extract_consumption_date(event_data: dict | None) -> date | None:
    answers = unwrap_event_data(event_data)

    for label, value in answers.items():
        if not is_schedule_label(label):
            continue

        if isinstance(value, list):
            parsed = _date_from_rows(value)
        elif "date" in label.lower():
            parsed = parse_date(value)
        else:
            parsed = None

        if parsed is not None:
            return parsed

    if answers:
        logger.debug("No delivery/pickup date found in answers: %s", list(answers))
    return None
