from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from storefront.core.rbac import SHOP_ADMIN
from storefront.db.session import SessionLocal
from storefront.models.event_product import EventProduct
from storefront.models.product import Product
from storefront.models.rbac import Role, UserRole
from storefront.models.shop_event import ShopEvent
from storefront.models.user import User
from storefront.schemas.checkout import CheckoutConfig

DEMO_CHECKOUT = {
    "headerMessage": "Valentine's flowers, delivered on campus.",
    "additionalFields": [
        {"id": "recipient", "label": "Recipient Name", "type": "text", "required": True},
        {"id": "anonymous", "label": "Send Anonymously", "type": "checkbox"},
        {
            "id": "note",
            "label": "Card Message",
            "type": "textarea",
            "maxLength": 200,
            "showWhen": {"fieldId": "anonymous", "value": "false"},
        },
        {
            "id": "delivery",
            "label": "Delivery Details",
            "type": "repeater",
            "required": True,
            "minRows": 1,
            "maxRows": 3,
            "columns": [
                {"id": "date", "label": "Date", "type": "date"},
                {"id": "time", "label": "Time", "type": "time"},
                {"id": "location", "label": "Location", "type": "text"},
            ],
        },
        {"id": "info", "label": "Pickup Info", "type": "message", "messageContent": "Unclaimed orders go back to the booth."},
    ],
    "cutoffTime": "18:00",
    "cutoffDaysOffset": 1,
}


def get_or_create_user(db: Session, email: str, full_name: str) -> User:
    u = db.query(User).filter(User.email == email).one_or_none()
    if u:
        return u
    u = User(email=email, full_name=full_name, is_active=True)
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def get_or_create_role(db: Session, name: str) -> Role:
    r = db.query(Role).filter(Role.name == name).one_or_none()
    if r:
        return r
    r = Role(name=name)
    db.add(r)
    db.commit()
    db.refresh(r)
    return r


def ensure_user_role(db: Session, user_id, role_id):
    ur = (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.role_id == role_id)
        .one_or_none()
    )
    if ur:
        return ur
    ur = UserRole(user_id=user_id, role_id=role_id)
    db.add(ur)
    db.commit()
    db.refresh(ur)
    return ur


def get_or_create_product(db: Session, name: str, price: str, stock: int | None) -> Product:
    p = db.query(Product).filter(Product.name == name).one_or_none()
    if p:
        return p
    p = Product(name=name, price=Decimal(price), stock=stock)
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


def get_or_create_event(db: Session, slug: str, name: str) -> ShopEvent:
    e = db.query(ShopEvent).filter(ShopEvent.slug == slug).one_or_none()
    if e:
        return e
    e = ShopEvent(
        name=name,
        slug=slug,
        start_date=date(2026, 2, 9),
        end_date=date(2026, 2, 14),
        is_active=True,
        checkout_config=CheckoutConfig.model_validate(DEMO_CHECKOUT).to_document(),
    )
    db.add(e)
    db.commit()
    db.refresh(e)
    return e


def ensure_event_product(db: Session, event: ShopEvent, product: Product, **capacity) -> EventProduct:
    ep = (
        db.query(EventProduct)
        .filter(EventProduct.event_id == event.id, EventProduct.product_id == product.id)
        .one_or_none()
    )
    if ep:
        return ep
    ep = EventProduct(event_id=event.id, product_id=product.id, **capacity)
    db.add(ep)
    db.commit()
    db.refresh(ep)
    return ep


def main():
    db = SessionLocal()
    try:
        # ---- Roles / users ----
        admin_role = get_or_create_role(db, SHOP_ADMIN)
        admin_user = get_or_create_user(db, "admin@local.test", "Admin Local")
        shopper = get_or_create_user(db, "shopper@local.test", "Shopper Local")
        ensure_user_role(db, admin_user.id, admin_role.id)

        # ---- Catalog ----
        rose = get_or_create_product(db, "Single Rose", "3.50", stock=200)
        bouquet = get_or_create_product(db, "Bouquet", "15.00", stock=None)

        # ---- Event ----
        event = get_or_create_event(db, "valentines-2026", "Valentine's Day 2026")
        ensure_event_product(db, event, rose, sort_order=0)
        ensure_event_product(
            db,
            event,
            bouquet,
            sort_order=1,
            has_daily_limit=True,
            default_max_orders_per_day=20,
            daily_overrides={"2026-02-14": 40, "2026-02-15": 0},
        )

        print("\n=== Demo Seed Complete ===")
        print("Users (use as X-User-Email header):")
        print(f"  admin:   {admin_user.email}")
        print(f"  shopper: {shopper.email}")

        print("\nEvent:")
        print(f"  event_id: {event.id}")
        print(f"  slug:     {event.slug}")

        print("\nProducts:")
        print(f"  rose_id:    {rose.id}  (stock tracked)")
        print(f"  bouquet_id: {bouquet.id}  (20/day, 40 on Feb 14, blocked Feb 15)")

        print("\nNext actions:")
        print("  1) (Shopper) Add to cart: POST /cart")
        print("  2) (Shopper) Pick a day: GET /events/{event_id}/checkout/available-dates?start=...&end=...")
        print("  3) (Shopper) Order: POST /events/{event_id}/orders")
        print("  4) (Admin) Export: GET /admin/orders/export?event_id={event_id}")
        print()

    finally:
        db.close()


if __name__ == "__main__":
    main()
