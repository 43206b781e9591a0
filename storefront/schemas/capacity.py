import datetime as dt
from pydantic import BaseModel


class DayCapacityOut(BaseModel):
    date: dt.date
    state: str  # unlimited | available | sold_out | blocked
    limit: int | None
    used: int
    remaining: int | None


class AvailableDateOut(BaseModel):
    date: dt.date
    remaining: int | None  # None = no cap for any item in the cart


class DateValidationRequest(BaseModel):
    date: dt.date


class DateValidationResponse(BaseModel):
    valid: bool
    errors: list[str]
