from decimal import Decimal
from pydantic import BaseModel, Field


class CartItemAdd(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1, le=100)
    size: str | None = Field(default=None, max_length=20)


class CartItemOut(BaseModel):
    id: str
    product_id: str
    product_name: str
    quantity: int
    size: str | None
    unit_price: Decimal
