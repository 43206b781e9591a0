"""
Flatten orders (and their free-form checkout answers) into spreadsheet rows.

The CSV download and the external sheet sync both go through `to_table`, so
the two outputs carry the same cells for the same orders.
"""
from __future__ import annotations

import csv
import io
from typing import Any, Iterable

from storefront.core.checkout_validation import unwrap_event_data
from storefront.models.order import Order
from storefront.schemas.checkout import load_checkout_fields

MISSING = "N/A"

# Answer columns that clash with a line or order column get this prefix
ANSWER_PREFIX = "Answer: "


def format_value(value: Any) -> str:
    if value is None:
        return MISSING
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, dict):
        return ", ".join(str(v) for v in value.values())
    if isinstance(value, list):
        parts = []
        for item in value:
            if isinstance(item, dict):
                parts.append(" ".join(str(v) for v in item.values()))
            else:
                parts.append(str(item))
        return ", ".join(parts)
    return str(value)


def flatten_event_data(fields: list, event_data: dict | None) -> dict[str, str]:
    """
    Ordered column -> cell mapping for one order's answers.

    Keys follow storage order. Keys without a matching field in the current
    schema and message fields are dropped. Repeater rows expand to
    "{column label} {n}" for every declared column.
    """
    by_label = {f.label: f for f in fields}
    out: dict[str, str] = {}

    for key, value in unwrap_event_data(event_data).items():
        field = by_label.get(key)
        if field is None or field.type == "message":
            continue

        if field.type == "repeater" and isinstance(value, list):
            for i, row in enumerate(value, start=1):
                if not isinstance(row, dict):
                    continue
                for col in field.columns:
                    cell = row.get(col.id)
                    out[f"{col.label} {i}"] = format_value(cell) if cell not in (None, "") else MISSING
            continue

        out[field.label] = format_value(value)

    return out


def _customer_name(order: Order) -> str:
    user = order.user
    if user is None:
        return MISSING
    if user.first_name and user.last_name:
        return f"{user.first_name} {user.last_name}"
    return user.full_name or MISSING


def build_export_rows(orders: Iterable[Order]) -> list[dict[str, Any]]:
    """One row per order line; order-level columns and answers on the first line only."""
    rows: list[dict[str, Any]] = []
    fields_cache: dict[Any, list] = {}

    for order in orders:
        event = order.event
        fields: list = []
        if event is not None:
            if event.id not in fields_cache:
                fields_cache[event.id] = load_checkout_fields(event.checkout_config)
            fields = fields_cache[event.id]

        for index, item in enumerate(order.items):
            first = index == 0
            row: dict[str, Any] = {
                "Order ID": str(order.id),
                "Order Date": order.created_at.isoformat() if order.created_at else MISSING,
                "Customer Name": _customer_name(order),
                "Customer Email": order.user.email if order.user else MISSING,
                "Product Name": item.product.name if item.product else "Unknown",
                "Size": item.size or MISSING,
                "Quantity": item.quantity,
                "Unit Price": f"{item.price:.2f}",
                "Item Total": f"{item.price * item.quantity:.2f}",
                "Order Total": f"{order.total_amount:.2f}" if first else "",
                "Order Status": order.status,
                "Notes": order.notes or "",
                "Event": (event.name if event else MISSING) if first else "",
            }
            if first:
                for key, cell in flatten_event_data(fields, order.event_data).items():
                    row[ANSWER_PREFIX + key if key in row else key] = cell
            rows.append(row)

    return rows


def union_columns(rows: Iterable[dict[str, Any]]) -> list[str]:
    """Column names in first-seen order across all rows."""
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def to_table(rows: list[dict[str, Any]]) -> list[list[str]]:
    """Header row + value rows; cells missing from a row render empty."""
    header = union_columns(rows)
    table = [header]
    for row in rows:
        table.append(["" if row.get(col) is None else str(row.get(col)) for col in header])
    return table


def to_csv(table: list[list[str]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerows(table)
    return output.getvalue()
