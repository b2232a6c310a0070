"""Typed line-item field updates.

Each variant names one LineItem field and carries a value of that field's
type. Numeric variants accept the raw user input (number or text) because
parsing it is part of the validation the mutation API performs.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class _ItemUpdate(BaseModel):
    @property
    def attribute(self) -> str:
        """LineItem attribute written by this update."""
        return ITEM_FIELD_ATTRIBUTES[self.field]


class ManufacturerUpdate(_ItemUpdate):
    field: Literal["manufacturer"] = "manufacturer"
    value: str


class DescriptionUpdate(_ItemUpdate):
    field: Literal["description"] = "description"
    value: str


class DimensionsUpdate(_ItemUpdate):
    field: Literal["dimensions"] = "dimensions"
    value: str


class QuantityUpdate(_ItemUpdate):
    field: Literal["quantity"] = "quantity"
    value: Union[float, str, None]


class UnitPriceUpdate(_ItemUpdate):
    field: Literal["unitPrice"] = "unitPrice"
    value: Union[float, str, None]


class LeadTimeUpdate(_ItemUpdate):
    field: Literal["leadTime"] = "leadTime"
    value: str


class StatusUpdate(_ItemUpdate):
    field: Literal["status"] = "status"
    value: str


class NotesUpdate(_ItemUpdate):
    field: Literal["notes"] = "notes"
    value: str


ItemFieldUpdate = Annotated[
    Union[
        ManufacturerUpdate,
        DescriptionUpdate,
        DimensionsUpdate,
        QuantityUpdate,
        UnitPriceUpdate,
        LeadTimeUpdate,
        StatusUpdate,
        NotesUpdate,
    ],
    Field(discriminator="field"),
]

NUMERIC_ITEM_FIELDS = ("quantity", "unitPrice")

ITEM_FIELD_ATTRIBUTES = {
    "manufacturer": "manufacturer",
    "description": "description",
    "dimensions": "dimensions",
    "quantity": "quantity",
    "unitPrice": "unit_price",
    "leadTime": "lead_time",
    "status": "status",
    "notes": "notes",
}

# Legacy and snake_case spellings accepted by the string adapter
ITEM_FIELD_SYNONYMS = {
    "mfr": "manufacturer",
    "desc": "description",
    "qty": "quantity",
    "unit_price": "unitPrice",
    "lead_time": "leadTime",
}

item_update_adapter: TypeAdapter = TypeAdapter(ItemFieldUpdate)


def canonical_item_field(name: str):
    """Map any accepted spelling of an item field to its update tag (None if unknown)."""
    name = ITEM_FIELD_SYNONYMS.get(name, name)
    return name if name in ITEM_FIELD_ATTRIBUTES else None
