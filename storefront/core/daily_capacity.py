"""
Per-day order caps for products sold through an event.

Limits come from EventProduct: an override for the date wins over the default
whatever its value (0 blocks the date, null lifts the cap for that date).
Usage is counted from historical, non-cancelled orders whose checkout answers
name a delivery/pickup day (see delivery_dates). Counts are read at request
time and never reserved.
"""
from __future__ import annotations

import enum
import logging
import uuid
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Iterator

from sqlalchemy.orm import Session

from storefront.core.delivery_dates import extract_consumption_date
from storefront.core.delivery_schedule import DEFAULT_CUTOFF_MESSAGE
from storefront.models.event_product import EventProduct
from storefront.models.order import Order, OrderItem

logger = logging.getLogger(__name__)


class CapacityState(str, enum.Enum):
    UNLIMITED = "unlimited"
    AVAILABLE = "available"
    SOLD_OUT = "sold_out"
    BLOCKED = "blocked"


@dataclass(frozen=True)
class DayCapacity:
    day: date
    state: CapacityState
    limit: int | None
    used: int
    remaining: int | None  # None = unlimited

    @property
    def is_orderable(self) -> bool:
        return self.state in (CapacityState.UNLIMITED, CapacityState.AVAILABLE)


def date_range(start: date, end: date) -> Iterator[date]:
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


def resolve_daily_limit(ep: EventProduct, day: date) -> int | None:
    overrides = ep.daily_overrides or {}
    key = day.isoformat()
    if key in overrides:
        return overrides[key]
    return ep.default_max_orders_per_day


def day_capacity(ep: EventProduct, day: date, used: int) -> DayCapacity:
    if not ep.has_daily_limit:
        return DayCapacity(day, CapacityState.UNLIMITED, None, used, None)

    limit = resolve_daily_limit(ep, day)
    if limit is None:
        return DayCapacity(day, CapacityState.UNLIMITED, None, used, None)
    if limit == 0:
        return DayCapacity(day, CapacityState.BLOCKED, 0, used, 0)

    remaining = max(0, limit - used)
    state = CapacityState.AVAILABLE if remaining > 0 else CapacityState.SOLD_OUT
    return DayCapacity(day, state, limit, used, remaining)


def count_orders_by_date(
    db: Session,
    *,
    event_id: uuid.UUID,
    product_ids: Iterable[uuid.UUID],
    start: date,
    end: date,
) -> dict[uuid.UUID, Counter]:
    """
    One query per event: every non-cancelled order line for the products.
    Each order's day is extracted once; an order counts once per product.
    """
    product_ids = list(product_ids)
    counts: dict[uuid.UUID, Counter] = defaultdict(Counter)
    if not product_ids:
        return counts

    rows = (
        db.query(Order.id, Order.event_data, OrderItem.product_id)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .filter(
            Order.event_id == event_id,
            Order.status != "cancelled",
            OrderItem.product_id.in_(product_ids),
        )
        .all()
    )

    order_days: dict[uuid.UUID, date | None] = {}
    seen: set[tuple[uuid.UUID, uuid.UUID]] = set()
    for order_id, event_data, product_id in rows:
        if order_id not in order_days:
            order_days[order_id] = extract_consumption_date(event_data)
        day = order_days[order_id]
        if day is None or day < start or day > end:
            continue
        if (order_id, product_id) in seen:
            continue
        seen.add((order_id, product_id))
        counts[product_id][day] += 1

    unattributed = sum(1 for d in order_days.values() if d is None)
    if unattributed:
        logger.debug("event %s: %d order(s) without a delivery/pickup date", event_id, unattributed)
    return counts


def capacity_for_range(db: Session, ep: EventProduct, start: date, end: date) -> list[DayCapacity]:
    counts = count_orders_by_date(db, event_id=ep.event_id, product_ids=[ep.product_id], start=start, end=end)
    used = counts.get(ep.product_id, Counter())
    return [day_capacity(ep, day, used[day]) for day in date_range(start, end)]


def limited_event_products(db: Session, *, event_id: uuid.UUID, product_ids: Iterable[uuid.UUID]) -> list[EventProduct]:
    product_ids = list(product_ids)
    if not product_ids:
        return []
    return (
        db.query(EventProduct)
        .filter(
            EventProduct.event_id == event_id,
            EventProduct.has_daily_limit.is_(True),
            EventProduct.product_id.in_(product_ids),
        )
        .order_by(EventProduct.sort_order.asc())
        .all()
    )


def combine_day(capacities: list[DayCapacity]) -> DayCapacity | None:
    """
    Cart-level view of one day: blocked if any product is blocked, sold out if
    any is sold out, otherwise the smallest remaining figure.
    """
    if not capacities:
        return None
    for state in (CapacityState.BLOCKED, CapacityState.SOLD_OUT):
        for c in capacities:
            if c.state == state:
                return c
    limited = [c for c in capacities if c.remaining is not None]
    if not limited:
        return capacities[0]
    return min(limited, key=lambda c: c.remaining)


def available_dates_for_cart(
    db: Session,
    *,
    event_id: uuid.UUID,
    product_ids: Iterable[uuid.UUID],
    start: date,
    end: date,
    earliest: date | None = None,
) -> list[dict]:
    """
    Orderable days in range with the cart's remaining capacity (None = unlimited).
    Days before `earliest` are past the ordering cutoff and never offered.
    """
    if earliest is not None and earliest > start:
        start = earliest
    if start > end:
        return []

    eps = limited_event_products(db, event_id=event_id, product_ids=product_ids)
    counts = count_orders_by_date(
        db, event_id=event_id, product_ids=[ep.product_id for ep in eps], start=start, end=end
    )

    out: list[dict] = []
    for day in date_range(start, end):
        per_product = [day_capacity(ep, day, counts.get(ep.product_id, Counter())[day]) for ep in eps]
        combined = combine_day(per_product)
        if combined is None:
            out.append({"date": day, "remaining": None})
        elif combined.is_orderable:
            out.append({"date": day, "remaining": combined.remaining})
    return out


def validate_cart_for_date(
    db: Session,
    *,
    event_id: uuid.UUID,
    product_ids: Iterable[uuid.UUID],
    day: date,
    earliest: date | None = None,
    cutoff_message: str = DEFAULT_CUTOFF_MESSAGE,
) -> list[str]:
    """Per-product capacity errors for one day (empty if the day is fine)."""
    if earliest is not None and day < earliest:
        return [cutoff_message]

    eps = limited_event_products(db, event_id=event_id, product_ids=product_ids)
    counts = count_orders_by_date(
        db, event_id=event_id, product_ids=[ep.product_id for ep in eps], start=day, end=day
    )

    errors: list[str] = []
    for ep in eps:
        cap = day_capacity(ep, day, counts.get(ep.product_id, Counter())[day])
        name = ep.product.name if ep.product else "This item"
        if cap.state == CapacityState.BLOCKED:
            errors.append(f"{name} is not available on this date.")
        elif cap.state == CapacityState.SOLD_OUT:
            errors.append(f"{name} is sold out for this date.")
    return errors
