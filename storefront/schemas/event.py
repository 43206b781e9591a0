from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator


class ShopEventCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    slug: str = Field(min_length=1, max_length=200, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool = True


class ShopEventOut(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None
    start_date: date | None
    end_date: date | None
    is_active: bool
    checkout_config: dict | None
    created_at: datetime
    updated_at: datetime


class EventProductUpsert(BaseModel):
    sort_order: int = Field(default=0, ge=0)
    event_price: Decimal | None = Field(default=None, ge=0)  # None = product price
    has_daily_limit: bool = False
    default_max_orders_per_day: int | None = Field(default=None, ge=0)
    daily_overrides: dict[str, int | None] = Field(default_factory=dict)
    daily_note: str | None = Field(default=None, max_length=500)

    @field_validator("daily_overrides")
    @classmethod
    def _iso_dates(cls, v: dict[str, int | None]) -> dict[str, int | None]:
        for key, limit in v.items():
            try:
                date.fromisoformat(key)
            except ValueError:
                raise ValueError(f"Override key must be YYYY-MM-DD, got {key!r}")
            if len(key) != 10:
                raise ValueError(f"Override key must be YYYY-MM-DD, got {key!r}")
            if limit is not None and limit < 0:
                raise ValueError(f"Override for {key} must be >= 0 or null")
        return v


class EventProductOut(BaseModel):
    id: str
    event_id: str
    product_id: str
    product_name: str
    sort_order: int
    event_price: Decimal | None
    has_daily_limit: bool
    default_max_orders_per_day: int | None
    daily_overrides: dict[str, int | None]
    daily_note: str | None
