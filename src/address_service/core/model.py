"""Pydantic models for address records.

The wire format uses camelCase field names (``userId``, ``postalCode``);
Python code uses snake_case attributes. Both names are accepted on input.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

POSTAL_CODE_MIN_LENGTH = 3
POSTAL_CODE_MAX_LENGTH = 10


class AddressType(str, Enum):
    """Kind of address record."""

    BILLING = "billing"
    SHIPPING = "shipping"


class AddressInput(BaseModel):
    """Mutable fields of an address, as accepted by create and update."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_id: str
    type: AddressType
    line1: str
    line2: str | None = None
    city: str
    state: str
    country: str
    postal_code: str

    @field_validator("user_id", "line1", "city", "state", "country", "postal_code")
    @classmethod
    def _not_blank(cls, value: str, info: ValidationInfo) -> str:
        if not value or not value.strip():
            raise ValueError(f"{to_camel(info.field_name)} is required")
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, value: object) -> object:
        if isinstance(value, AddressType):
            return value
        if value not in tuple(t.value for t in AddressType):
            raise ValueError("type must be either 'billing' or 'shipping'")
        return value

    @field_validator("postal_code")
    @classmethod
    def _postal_code_length(cls, value: str) -> str:
        if not POSTAL_CODE_MIN_LENGTH <= len(value) <= POSTAL_CODE_MAX_LENGTH:
            raise ValueError(
                f"postalCode must be between {POSTAL_CODE_MIN_LENGTH} "
                f"and {POSTAL_CODE_MAX_LENGTH} characters"
            )
        return value


class Address(AddressInput):
    """A stored address record. The id is assigned by the store and never changes."""

    id: str = Field(min_length=1)

    def to_json_dict(self) -> dict[str, object]:
        """Serialize with wire (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True)
