import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.db.base import Base, JSONType


class EventProduct(Base):
    __tablename__ = "event_products"
    __table_args__ = (
        UniqueConstraint("event_id", "product_id", name="uq_event_product"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("shop_events.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )

    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    event_price = mapped_column(Numeric(10, 2), nullable=True)

    # Daily capacity
    has_daily_limit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    default_max_orders_per_day: Mapped[int | None] = mapped_column(Integer, nullable=True)  # NULL = unlimited
    # {"YYYY-MM-DD": int | null}; 0 = blocked, null = unlimited for that date
    daily_overrides: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    daily_note: Mapped[str | None] = mapped_column(String(500), nullable=True)

    event = relationship("ShopEvent", back_populates="products", lazy="selectin")
    product = relationship("Product", lazy="selectin")
