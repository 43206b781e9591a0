from datetime import datetime
from decimal import Decimal
from typing import Any, Literal
from pydantic import BaseModel, Field


class CheckoutAnswers(BaseModel):
    """Answers keyed by field label, as entered so far."""
    answers: dict[str, Any] = Field(default_factory=dict)


class OrderCreate(BaseModel):
    answers: dict[str, Any] = Field(default_factory=dict)
    notes: str | None = Field(default=None, max_length=2000)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    student_id: str | None = Field(default=None, max_length=50)


class OrderItemOut(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    price: Decimal
    size: str | None


class OrderOut(BaseModel):
    id: str
    user_id: str
    event_id: str | None
    status: str
    total_amount: Decimal
    notes: str | None
    event_data: dict | None
    items: list[OrderItemOut]
    created_at: datetime


class OrderStatusUpdate(BaseModel):
    status: Literal["pending", "confirmed", "completed", "cancelled"]


class EventDataUpdate(BaseModel):
    """Raw key/value edit of stored answers; not checked against the schema."""
    event_data: dict[str, Any]


class SyncResult(BaseModel):
    sheet: str
    rows: int
    columns: int
