from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from storefront.api.events import check_date_range
from storefront.core.checkout_validation import load_event_fields, validate_answers
from storefront.core.daily_capacity import available_dates_for_cart, validate_cart_for_date
from storefront.core.delivery_schedule import current_time, cutoff_message, earliest_delivery_date
from storefront.core.lookup import get_or_404
from storefront.core.orders import create_order_from_cart
from storefront.core.security import get_current_user
from storefront.core.visibility import visible_fields
from storefront.db.session import get_db
from storefront.models.cart_item import CartItem
from storefront.models.order import Order
from storefront.models.shop_event import ShopEvent
from storefront.models.user import User
from storefront.schemas.capacity import (
    AvailableDateOut,
    DateValidationRequest,
    DateValidationResponse,
)
from storefront.schemas.order import CheckoutAnswers, OrderCreate, OrderItemOut, OrderOut
from storefront.schemas.validation import ValidationError, ValidationPreviewResponse

router = APIRouter(prefix="/events/{event_id}", tags=["checkout"])


def order_out(o: Order) -> OrderOut:
    return OrderOut(
        id=str(o.id),
        user_id=str(o.user_id),
        event_id=str(o.event_id) if o.event_id else None,
        status=o.status,
        total_amount=o.total_amount,
        notes=o.notes,
        event_data=o.event_data,
        items=[
            OrderItemOut(
                product_id=str(i.product_id),
                product_name=i.product.name if i.product else "Unknown",
                quantity=i.quantity,
                price=i.price,
                size=i.size,
            )
            for i in o.items
        ],
        created_at=o.created_at,
    )


def _get_active_event_or_404(db: Session, event_id: str) -> ShopEvent:
    e = get_or_404(db, ShopEvent, event_id, "Event")
    if not e.is_active:
        raise HTTPException(status_code=409, detail="Event is not open for orders")
    return e


def _cart_product_ids(db: Session, user: User) -> set:
    rows = db.query(CartItem.product_id).filter(CartItem.user_id == user.id).all()
    return {r[0] for r in rows}


@router.post("/checkout/visibility")
def preview_visibility(
    event_id: str,
    payload: CheckoutAnswers,
    db: Session = Depends(get_db),
):
    """Which fields to render for the answers entered so far."""
    e = _get_active_event_or_404(db, event_id)
    fields = load_event_fields(e)
    return {
        "visible": [
            {"id": f.id, "label": f.label, "type": f.type}
            for f in visible_fields(fields, payload.answers)
        ]
    }


@router.post("/checkout/validate", response_model=ValidationPreviewResponse)
def preview_validation(
    event_id: str,
    payload: CheckoutAnswers,
    db: Session = Depends(get_db),
):
    """
    Run the submit-time validation without creating anything.
    Always 200; `valid` tells whether an order would be accepted.
    """
    e = _get_active_event_or_404(db, event_id)
    fields = load_event_fields(e)
    errors = validate_answers(fields, payload.answers)
    return ValidationPreviewResponse(
        valid=not errors,
        errors=[ValidationError(**err) for err in errors],
        visible_fields=[f.label for f in visible_fields(fields, payload.answers) if f.type != "message"],
    )


@router.get("/checkout/available-dates", response_model=list[AvailableDateOut])
def get_available_dates(
    event_id: str,
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    now: datetime = Depends(current_time),
):
    """Days in range on which every capped item in the cart still has room."""
    check_date_range(start, end)
    e = _get_active_event_or_404(db, event_id)
    product_ids = _cart_product_ids(db, user)
    if not product_ids:
        return []
    return [
        AvailableDateOut(date=d["date"], remaining=d["remaining"])
        for d in available_dates_for_cart(
            db,
            event_id=e.id,
            product_ids=product_ids,
            start=start,
            end=end,
            earliest=earliest_delivery_date(e.checkout_config, now),
        )
    ]


@router.post("/checkout/validate-date", response_model=DateValidationResponse)
def validate_date(
    event_id: str,
    payload: DateValidationRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    now: datetime = Depends(current_time),
):
    e = _get_active_event_or_404(db, event_id)
    product_ids = _cart_product_ids(db, user)
    if not product_ids:
        return DateValidationResponse(valid=False, errors=["Your cart is empty"])

    errors = validate_cart_for_date(
        db,
        event_id=e.id,
        product_ids=product_ids,
        day=payload.date,
        earliest=earliest_delivery_date(e.checkout_config, now),
        cutoff_message=cutoff_message(e.checkout_config),
    )
    return DateValidationResponse(valid=not errors, errors=errors)


@router.post("/orders", response_model=OrderOut, status_code=status.HTTP_201_CREATED)
def create_order(
    event_id: str,
    payload: OrderCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    now: datetime = Depends(current_time),
):
    e = _get_active_event_or_404(db, event_id)
    order = create_order_from_cart(db=db, user=user, event=e, payload=payload, now=now)

    db.commit()
    db.refresh(order)
    return order_out(order)
