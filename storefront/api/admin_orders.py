import io
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from storefront.api.checkout import order_out
from storefront.core.audit import log_event
from storefront.core.export import build_export_rows, to_csv, to_table
from storefront.core.lookup import get_or_404, parse_uuid_or_404
from storefront.core.rbac import SHOP_ADMIN, require_roles
from storefront.core.sheets import SheetSyncClient, get_sheet_client
from storefront.db.session import get_db
from storefront.models.order import Order
from storefront.models.shop_event import ShopEvent
from storefront.models.user import User
from storefront.schemas.order import EventDataUpdate, OrderOut, OrderStatusUpdate, SyncResult
from storefront.schemas.pagination import PaginatedResponse

router = APIRouter(prefix="/admin/orders", tags=["admin-orders"])


def _orders_for_export(db: Session, event_id: str | None) -> list[Order]:
    q = db.query(Order)
    if event_id:
        q = q.filter(Order.event_id == parse_uuid_or_404(event_id, "Event"))
    return q.order_by(Order.created_at.desc(), Order.id).all()


@router.get("")
def list_orders(
    event_id: str | None = Query(default=None),
    status: str | None = Query(default=None, description="Filter by status (pending, confirmed, completed, cancelled)"),
    limit: int = Query(default=100, ge=1, le=500, description="Maximum number of results"),
    offset: int = Query(default=0, ge=0, description="Number of results to skip"),
    include_pagination: bool = Query(default=False, description="Include pagination metadata"),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(SHOP_ADMIN)),
):
    """
    List orders, newest first.

    Use ?include_pagination=true to get pagination metadata.
    """
    query = db.query(Order)

    if event_id:
        query = query.filter(Order.event_id == parse_uuid_or_404(event_id, "Event"))
    if status:
        query = query.filter(Order.status == status)

    total = query.count()
    orders = query.order_by(Order.created_at.desc(), Order.id).offset(offset).limit(limit).all()
    items = [order_out(o) for o in orders]

    if include_pagination:
        return PaginatedResponse[OrderOut].build(items, total=total, limit=limit, offset=offset)
    return items


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(SHOP_ADMIN)),
):
    o = get_or_404(db, Order, order_id, "Order")
    previous = o.status
    o.status = payload.status
    o.updated_at = datetime.utcnow()

    log_event(
        db=db,
        actor=current_user,
        action="ORDER_STATUS_UPDATED",
        entity_type="order",
        entity_id=o.id,
        metadata={"from": previous, "to": payload.status},
    )

    db.commit()
    db.refresh(o)
    return order_out(o)


@router.put("/{order_id}/event-data", response_model=OrderOut)
def replace_event_data(
    order_id: str,
    payload: EventDataUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(SHOP_ADMIN)),
):
    """Raw edit of stored checkout answers; keys and values are taken as-is."""
    o = get_or_404(db, Order, order_id, "Order")
    before = sorted((o.event_data or {}).keys())
    o.event_data = payload.event_data
    o.updated_at = datetime.utcnow()

    log_event(
        db=db,
        actor=current_user,
        action="ORDER_EVENT_DATA_EDITED",
        entity_type="order",
        entity_id=o.id,
        metadata={"keys_before": before, "keys_after": sorted(payload.event_data.keys())},
    )

    db.commit()
    db.refresh(o)
    return order_out(o)


@router.get("/export")
def export_orders(
    event_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _: User = Depends(require_roles(SHOP_ADMIN)),
):
    """CSV download: one row per order line, checkout answers expanded into columns."""
    table = to_table(build_export_rows(_orders_for_export(db, event_id)))
    filename = f"orders_{event_id}.csv" if event_id else "orders.csv"

    return StreamingResponse(
        io.BytesIO(to_csv(table).encode("utf-8")),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/sync", response_model=SyncResult)
def sync_orders(
    event_id: str | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(SHOP_ADMIN)),
    sheets: SheetSyncClient = Depends(get_sheet_client),
):
    """Replace the external sheet's contents with the same table as the CSV export."""
    sheet_name = "Orders"
    if event_id:
        sheet_name = get_or_404(db, ShopEvent, event_id, "Event").name

    table = to_table(build_export_rows(_orders_for_export(db, event_id)))
    sheets.replace_all(sheet_name=sheet_name, values=table)

    result = SyncResult(sheet=sheet_name, rows=len(table) - 1, columns=len(table[0]))

    log_event(
        db=db,
        actor=current_user,
        action="ORDERS_SYNCED",
        entity_type="shop_event" if event_id else "order_export",
        entity_id=parse_uuid_or_404(event_id, "Event") if event_id else current_user.id,
        metadata=result.model_dump(),
    )
    db.commit()
    return result
