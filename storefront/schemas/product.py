from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    price: Decimal = Field(ge=0)
    stock: int | None = Field(default=None, ge=0)
    is_available: bool = True
    is_pre_order: bool = False


class ProductOut(BaseModel):
    id: str
    name: str
    description: str | None
    price: Decimal
    stock: int | None
    is_available: bool
    is_pre_order: bool
    created_at: datetime
