from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import update
from sqlalchemy.orm import Session

from storefront.core.audit import log_event
from storefront.core.checkout_validation import validate_submission
from storefront.core.daily_capacity import validate_cart_for_date
from storefront.core.delivery_dates import extract_consumption_date
from storefront.core.delivery_schedule import current_time, cutoff_message, earliest_delivery_date
from storefront.models.cart_item import CartItem
from storefront.models.event_product import EventProduct
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.models.shop_event import ShopEvent
from storefront.models.user import User
from storefront.schemas.order import OrderCreate

logger = logging.getLogger(__name__)


def _update_customer_details(user: User, payload: OrderCreate) -> None:
    if payload.first_name and payload.first_name.strip():
        user.first_name = payload.first_name.strip()
    if payload.last_name and payload.last_name.strip():
        user.last_name = payload.last_name.strip()
    if user.first_name and user.last_name:
        user.full_name = f"{user.first_name} {user.last_name}"
    if payload.student_id and payload.student_id.strip():
        user.student_id = payload.student_id.strip()


def _decrement_stock(db: Session, product: Product, quantity: int) -> None:
    """Guarded decrement; rolls the whole request back when short."""
    result = db.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
    )
    if result.rowcount != 1:
        name = product.name
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Insufficient stock for {name}",
        )


def create_order_from_cart(
    *,
    db: Session,
    user: User,
    event: ShopEvent,
    payload: OrderCreate,
    now: datetime | None = None,
) -> Order:
    """
    Turn the user's cart into an order for `event`.

    Answers are validated against the event's checkout config, the mined
    delivery/pickup day is checked against the ordering cutoff and
    re-checked against daily capacity, and stock is decremented for every
    line. Any failure leaves stock untouched.
    Caller commits.
    """
    cart = db.query(CartItem).filter(CartItem.user_id == user.id).all()
    if not cart:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Cart is empty")

    product_ids = {c.product_id for c in cart}
    event_products = {
        ep.product_id: ep
        for ep in db.query(EventProduct)
        .filter(EventProduct.event_id == event.id, EventProduct.product_id.in_(product_ids))
        .all()
    }
    missing = [c.product.name for c in cart if c.product_id not in event_products]
    if missing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "Items not sold in this event", "products": missing},
        )

    answers = validate_submission(event=event, answers=payload.answers)

    day = extract_consumption_date(answers)
    earliest = earliest_delivery_date(event.checkout_config, now or current_time())
    if day is not None and earliest is not None and day < earliest:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": "Ordering cutoff passed",
                "date": day.isoformat(),
                "errors": [cutoff_message(event.checkout_config)],
            },
        )
    if day is not None:
        errors = validate_cart_for_date(db, event_id=event.id, product_ids=product_ids, day=day)
        if errors:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={"message": "Daily capacity reached", "date": day.isoformat(), "errors": errors},
            )

    # lock product rows for the stock check + decrement
    products = {
        p.id: p
        for p in db.query(Product).filter(Product.id.in_(product_ids)).with_for_update().all()
    }

    unavailable = [p.name for p in products.values() if not p.is_available]
    if unavailable:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": "Items no longer available", "products": unavailable},
        )

    total = Decimal("0")
    items: list[OrderItem] = []
    for line in cart:
        product = products[line.product_id]
        ep = event_products[line.product_id]
        price = ep.event_price if ep.event_price is not None else product.price

        if product.stock is not None and not product.is_pre_order:
            _decrement_stock(db, product, line.quantity)

        total += price * line.quantity
        items.append(
            OrderItem(
                product_id=product.id,
                quantity=line.quantity,
                price=price,
                size=line.size,
            )
        )

    _update_customer_details(user, payload)

    order = Order(
        user_id=user.id,
        event_id=event.id,
        status="pending",
        total_amount=total,
        notes=payload.notes,
        event_data={"eventName": event.name, "fields": answers},
        items=items,
    )
    db.add(order)
    for line in cart:
        db.delete(line)
    db.flush()

    log_event(
        db=db,
        actor=user,
        action="ORDER_CREATED",
        entity_type="order",
        entity_id=order.id,
        metadata={
            "event_id": str(event.id),
            "total_amount": str(total),
            "item_count": sum(i.quantity for i in items),
            "delivery_date": day.isoformat() if day else None,
        },
    )
    logger.info("Order %s created for event %s (%d line(s))", order.id, event.slug, len(items))
    return order
