from datetime import date
from decimal import Decimal

from storefront.core.rbac import SHOP_ADMIN
from storefront.models.event_product import EventProduct
from storefront.models.order import Order, OrderItem
from storefront.models.product import Product
from storefront.models.rbac import Role, UserRole
from storefront.models.shop_event import ShopEvent
from storefront.models.user import User
from storefront.schemas.checkout import CheckoutConfig

def ensure_role(db, name: str) -> Role:
    r = db.query(Role).filter(Role.name == name).one_or_none()
    if r:
        return r
    r = Role(name=name)
    db.add(r)
    db.commit()
    db.refresh(r)
    return r

def create_user(db, email: str, full_name="User") -> User:
    u = User(email=email.lower(), full_name=full_name, is_active=True)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u

def grant_role(db, user: User, role_name: str):
    role = ensure_role(db, role_name)
    exists = db.query(UserRole).filter(UserRole.user_id == user.id, UserRole.role_id == role.id).one_or_none()
    if not exists:
        db.add(UserRole(user_id=user.id, role_id=role.id))
        db.commit()

def create_admin(db, email: str = "admin@local.test") -> User:
    u = create_user(db, email, "Admin Local")
    grant_role(db, u, SHOP_ADMIN)
    return u

def create_product(db, name: str = "Rose", price: str = "5.00", stock: int | None = None, **kwargs) -> Product:
    p = Product(name=name, price=Decimal(price), stock=stock, **kwargs)
    db.add(p)
    db.commit()
    db.refresh(p)
    return p

def create_event(db, *, slug: str = "valentines", name: str = "Valentines", fields: list[dict] | None = None, **kwargs) -> ShopEvent:
    """
    fields example:
      [{"id": "size", "label": "Size", "type": "select", "options": ["S", "M"]}]
    """
    kwargs.setdefault("is_active", True)
    config = CheckoutConfig.model_validate({"additionalFields": fields or []}).to_document()
    e = ShopEvent(name=name, slug=slug, checkout_config=config, **kwargs)
    db.add(e)
    db.commit()
    db.refresh(e)
    return e

def attach_product(
    db,
    event: ShopEvent,
    product: Product,
    *,
    limit: int | None = None,
    has_limit: bool | None = None,
    overrides: dict | None = None,
    event_price: str | None = None,
) -> EventProduct:
    ep = EventProduct(
        event_id=event.id,
        product_id=product.id,
        has_daily_limit=(limit is not None or bool(overrides)) if has_limit is None else has_limit,
        default_max_orders_per_day=limit,
        daily_overrides=overrides or {},
        event_price=Decimal(event_price) if event_price is not None else None,
    )
    db.add(ep)
    db.commit()
    db.refresh(ep)
    return ep

def create_order(
    db,
    *,
    user: User,
    event: ShopEvent,
    products: list[Product],
    event_data: dict | None = None,
    status: str = "pending",
    quantity: int = 1,
) -> Order:
    items = [OrderItem(product_id=p.id, quantity=quantity, price=p.price) for p in products]
    o = Order(
        user_id=user.id,
        event_id=event.id,
        status=status,
        total_amount=sum((p.price * quantity for p in products), Decimal("0")),
        event_data=event_data,
        items=items,
    )
    db.add(o)
    db.commit()
    db.refresh(o)
    return o

def delivery_on(day: date | str, label: str = "Delivery Date") -> dict:
    """Stored answers naming a delivery day, wrapped the way checkout stores them."""
    value = day.isoformat() if isinstance(day, date) else day
    return {"eventName": "Valentines", "fields": {label: value}}

def auth(email: str) -> dict:
    return {"X-User-Email": email}
