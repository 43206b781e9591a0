import uuid
from typing import TypeVar

from fastapi import HTTPException
from sqlalchemy.orm import Session

T = TypeVar("T")


def parse_uuid_or_404(value: str, what: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=404, detail=f"{what} not found")


def get_or_404(db: Session, model: type[T], value: str, what: str) -> T:
    obj = db.get(model, parse_uuid_or_404(value, what))
    if obj is None:
        raise HTTPException(status_code=404, detail=f"{what} not found")
    return obj
