from datetime import date, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.core.audit import log_event
from storefront.core.daily_capacity import capacity_for_range
from storefront.core.lookup import get_or_404
from storefront.core.rbac import SHOP_ADMIN, require_roles
from storefront.db.session import get_db
from storefront.models.event_product import EventProduct
from storefront.models.product import Product
from storefront.models.shop_event import ShopEvent
from storefront.models.user import User
from storefront.schemas.capacity import DayCapacityOut
from storefront.schemas.checkout import CheckoutConfig
from storefront.schemas.event import (
    EventProductOut,
    EventProductUpsert,
    ShopEventCreate,
    ShopEventOut,
)

router = APIRouter(prefix="/events", tags=["events"])

MAX_RANGE_DAYS = 366


def event_out(e: ShopEvent) -> ShopEventOut:
    return ShopEventOut(
        id=str(e.id),
        name=e.name,
        slug=e.slug,
        description=e.description,
        start_date=e.start_date,
        end_date=e.end_date,
        is_active=e.is_active,
        checkout_config=e.checkout_config,
        created_at=e.created_at,
        updated_at=e.updated_at,
    )


def event_product_out(ep: EventProduct) -> EventProductOut:
    return EventProductOut(
        id=str(ep.id),
        event_id=str(ep.event_id),
        product_id=str(ep.product_id),
        product_name=ep.product.name,
        sort_order=ep.sort_order,
        event_price=ep.event_price,
        has_daily_limit=ep.has_daily_limit,
        default_max_orders_per_day=ep.default_max_orders_per_day,
        daily_overrides=ep.daily_overrides or {},
        daily_note=ep.daily_note,
    )


def check_date_range(start: date, end: date) -> None:
    if end < start:
        raise HTTPException(status_code=400, detail="end must be on or after start")
    if (end - start).days >= MAX_RANGE_DAYS:
        raise HTTPException(status_code=400, detail=f"Date range limited to {MAX_RANGE_DAYS} days")


def _get_event_product_or_404(db: Session, event: ShopEvent, product: Product) -> EventProduct:
    ep = (
        db.query(EventProduct)
        .filter(EventProduct.event_id == event.id, EventProduct.product_id == product.id)
        .one_or_none()
    )
    if not ep:
        raise HTTPException(status_code=404, detail="Product not attached to this event")
    return ep


@router.post("", response_model=ShopEventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: ShopEventCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(SHOP_ADMIN)),
):
    if payload.start_date and payload.end_date and payload.end_date < payload.start_date:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")

    e = ShopEvent(**payload.model_dump())
    db.add(e)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Event slug already exists")

    log_event(
        db=db,
        actor=current_user,
        action="EVENT_CREATED",
        entity_type="shop_event",
        entity_id=e.id,
        metadata={"name": e.name, "slug": e.slug},
    )

    db.commit()
    db.refresh(e)
    return event_out(e)


@router.get("", response_model=list[ShopEventOut])
def list_events(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    q = db.query(ShopEvent)
    if not include_inactive:
        q = q.filter(ShopEvent.is_active.is_(True))
    return [event_out(e) for e in q.order_by(ShopEvent.created_at.desc()).all()]


@router.get("/{event_id}", response_model=ShopEventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    return event_out(get_or_404(db, ShopEvent, event_id, "Event"))


@router.put("/{event_id}/checkout-config", response_model=ShopEventOut)
def update_checkout_config(
    event_id: str,
    payload: CheckoutConfig,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(SHOP_ADMIN)),
):
    e = get_or_404(db, ShopEvent, event_id, "Event")

    e.checkout_config = payload.to_document()
    e.updated_at = datetime.utcnow()
    db.flush()

    log_event(
        db=db,
        actor=current_user,
        action="CHECKOUT_CONFIG_UPDATED",
        entity_type="shop_event",
        entity_id=e.id,
        metadata={
            "field_count": len(payload.additional_fields),
            "labels": [f.label for f in payload.additional_fields],
        },
    )

    db.commit()
    db.refresh(e)
    return event_out(e)


@router.get("/{event_id}/products", response_model=list[EventProductOut])
def list_event_products(event_id: str, db: Session = Depends(get_db)):
    e = get_or_404(db, ShopEvent, event_id, "Event")
    rows = (
        db.query(EventProduct)
        .filter(EventProduct.event_id == e.id)
        .order_by(EventProduct.sort_order.asc())
        .all()
    )
    return [event_product_out(ep) for ep in rows]


@router.put("/{event_id}/products/{product_id}", response_model=EventProductOut)
def upsert_event_product(
    event_id: str,
    product_id: str,
    payload: EventProductUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(SHOP_ADMIN)),
):
    e = get_or_404(db, ShopEvent, event_id, "Event")
    p = get_or_404(db, Product, product_id, "Product")

    ep = (
        db.query(EventProduct)
        .filter(EventProduct.event_id == e.id, EventProduct.product_id == p.id)
        .one_or_none()
    )
    if ep is None:
        ep = EventProduct(event_id=e.id, product_id=p.id)
        db.add(ep)

    ep.sort_order = payload.sort_order
    ep.event_price = payload.event_price
    ep.has_daily_limit = payload.has_daily_limit
    ep.default_max_orders_per_day = payload.default_max_orders_per_day
    ep.daily_overrides = dict(payload.daily_overrides)
    ep.daily_note = payload.daily_note
    db.flush()

    log_event(
        db=db,
        actor=current_user,
        action="EVENT_PRODUCT_UPDATED",
        entity_type="event_product",
        entity_id=ep.id,
        metadata={
            "event_id": str(e.id),
            "product_id": str(p.id),
            "has_daily_limit": ep.has_daily_limit,
            "default_max_orders_per_day": ep.default_max_orders_per_day,
            "override_count": len(ep.daily_overrides),
        },
    )

    db.commit()
    db.refresh(ep)
    return event_product_out(ep)


@router.get("/{event_id}/products/{product_id}/daily-capacity", response_model=list[DayCapacityOut])
def get_daily_capacity(
    event_id: str,
    product_id: str,
    start: date = Query(...),
    end: date = Query(...),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(SHOP_ADMIN)),
):
    """Admin calendar: per-day limit, usage and remaining for one product."""
    check_date_range(start, end)
    e = get_or_404(db, ShopEvent, event_id, "Event")
    p = get_or_404(db, Product, product_id, "Product")
    ep = _get_event_product_or_404(db, e, p)

    return [
        DayCapacityOut(
            date=c.day,
            state=c.state.value,
            limit=c.limit,
            used=c.used,
            remaining=c.remaining,
        )
        for c in capacity_for_range(db, ep, start, end)
    ]
