"""
Checkout configuration schema for events.

A CheckoutConfig is stored as a single JSON document on the event
(camelCase keys). Each entry of `additionalFields` is one variant of the
CheckoutField tagged union, discriminated on `type`.

Answers are persisted under the field *label*, not its id. Consumers reading
historical answers must ignore keys that no longer match a field.
"""
from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldCondition(_CamelModel):
    """Show the owning field only when `field_id`'s answer matches `value`."""
    field_id: str = Field(min_length=1)
    value: str | list[str]


class RepeaterColumn(_CamelModel):
    id: str = Field(min_length=1)
    label: str = Field(min_length=1, max_length=200)
    type: Literal["text", "date", "time", "select"] = "text"
    placeholder: str | None = None
    options: list[str] | None = None
    width: Literal["sm", "md", "lg"] | None = None

    @model_validator(mode="after")
    def _select_needs_options(self):
        if self.type == "select" and not self.options:
            raise ValueError(f"Repeater column '{self.label}' of type select needs options")
        return self


class _BaseField(_CamelModel):
    id: str = Field(min_length=1)
    label: str = Field(min_length=1, max_length=200)
    required: bool = False
    placeholder: str | None = None
    show_when: FieldCondition | None = None


class TextField(_BaseField):
    type: Literal["text", "textarea", "email", "phone"]
    max_length: int | None = Field(default=None, ge=1)


class ChoiceField(_BaseField):
    type: Literal["select", "radio"]
    options: list[str] = Field(min_length=1)


class BooleanField(_BaseField):
    type: Literal["checkbox", "toggle"]


class DateField(_BaseField):
    type: Literal["date"]


class TimeField(_BaseField):
    type: Literal["time"]


class NumberField(_BaseField):
    type: Literal["number"]
    min: float | None = None
    max: float | None = None
    step: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _bounds(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"Field '{self.label}': min must be <= max")
        return self


class RepeaterField(_BaseField):
    type: Literal["repeater"]
    columns: list[RepeaterColumn] = Field(min_length=1)
    min_rows: int = Field(default=0, ge=0)
    max_rows: int | None = Field(default=None, ge=1)
    default_rows: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _rows(self):
        ids = [c.id for c in self.columns]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Repeater '{self.label}' has duplicate column ids")
        if self.max_rows is not None and self.min_rows > self.max_rows:
            raise ValueError(f"Repeater '{self.label}': minRows must be <= maxRows")
        if self.default_rows is not None and self.max_rows is not None and self.default_rows > self.max_rows:
            raise ValueError(f"Repeater '{self.label}': defaultRows must be <= maxRows")
        return self


class MessageField(_BaseField):
    """Display-only block; never validated, never stored or exported."""
    type: Literal["message"]
    message_content: str | None = None


CheckoutField = Annotated[
    Union[TextField, ChoiceField, BooleanField, DateField, TimeField, NumberField, RepeaterField, MessageField],
    Field(discriminator="type"),
]

_field_adapter: TypeAdapter = TypeAdapter(CheckoutField)


class PaymentOption(_CamelModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=200)
    instructions: str
    image_url: str | None = None


class CheckoutConfig(_CamelModel):
    header_message: str | None = None
    additional_fields: list[CheckoutField] = Field(default_factory=list)
    terms_message: str | None = None
    confirmation_message: str | None = None

    # Delivery cutoff
    cutoff_time: str | None = Field(default=None, pattern=r"^([01]\d|2[0-3]):[0-5]\d$")
    cutoff_message: str | None = None
    cutoff_days_offset: int | None = Field(default=None, ge=0)

    payment_options: list[PaymentOption] = Field(default_factory=list)

    @model_validator(mode="after")
    def _field_invariants(self):
        seen_ids: set[str] = set()
        seen_labels: set[str] = set()
        for f in self.additional_fields:
            if f.id in seen_ids:
                raise ValueError(f"Duplicate field id: {f.id}")
            if f.label in seen_labels:
                raise ValueError(f"Duplicate field label: {f.label}")
            # visibility may only depend on an earlier field
            if f.show_when is not None and f.show_when.field_id not in seen_ids:
                raise ValueError(
                    f"Field '{f.label}' showWhen must reference an earlier field, got '{f.show_when.field_id}'"
                )
            seen_ids.add(f.id)
            seen_labels.add(f.label)
        return self

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def load_checkout_fields(document: dict | None) -> list:
    """
    Tolerant read of a stored checkout config.

    Entries with an unknown type or an invalid payload are skipped instead of
    raising; stored configs may predate the current field variants.
    """
    if not document:
        return []

    out = []
    for raw in document.get("additionalFields") or []:
        try:
            out.append(_field_adapter.validate_python(raw))
        except ValidationError:
            logger.debug("Skipping unreadable checkout field: %r", raw)
    return out
