"""Line item data model.

One FF&E entry in a budget category:
manufacturer, description, dimensions, quantity, unit price, lead time,
status, notes, and an optional specification with attachments.
"""

import base64
import uuid
from enum import Enum
from typing import List

from pydantic import AliasChoices, Field, field_validator

from .base import DocumentModel


class ItemStatus(str, Enum):
    """Nominal procurement statuses (not enforced on the model)."""

    DRAFT = "Draft"
    APPROVED = "Approved"
    ORDERED = "Ordered"
    RECEIVED = "Received"
    INSTALLED = "Installed"


class Attachment(DocumentModel):
    """File attached to a specification, embedded as a data URL."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="附件識別碼")
    name: str = Field("", description="原始檔名")
    mime_type: str = Field(
        "application/octet-stream",
        validation_alias=AliasChoices("mimeType", "mime_type", "type"),
        serialization_alias="mimeType",
    )
    size_bytes: int = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("sizeBytes", "size_bytes", "size"),
        serialization_alias="sizeBytes",
    )
    data_url: str = Field("", description="data:<mime>;base64,<payload>")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        """舊檔案以數字 (Date.now() + random) 作為附件 ID."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @classmethod
    def from_bytes(cls, name: str, mime_type: str, content: bytes) -> "Attachment":
        """Build an attachment from uploaded bytes."""
        mime_type = mime_type or "application/octet-stream"
        encoded = base64.b64encode(content).decode("ascii")
        return cls(
            name=name,
            mime_type=mime_type,
            size_bytes=len(content),
            data_url=f"data:{mime_type};base64,{encoded}",
        )

    def payload(self) -> bytes:
        """Decode the embedded payload."""
        if not self.data_url:
            return b""
        _, _, encoded = self.data_url.partition(",")
        return base64.b64decode(encoded or self.data_url)

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class Specification(DocumentModel):
    """Detailed spec-book entry for a line item."""

    detailed_description: str = ""
    attachments: List[Attachment] = Field(default_factory=list)


class LineItem(DocumentModel):
    """FF&E 項目資料模型."""

    id: int = Field(..., description="文件內唯一識別碼")
    manufacturer: str = Field(
        "",
        validation_alias=AliasChoices("manufacturer", "mfr"),
        serialization_alias="manufacturer",
    )
    description: str = Field(
        "",
        validation_alias=AliasChoices("description", "desc"),
        serialization_alias="description",
    )
    dimensions: str = ""
    quantity: float = Field(
        0,
        ge=0,
        validation_alias=AliasChoices("quantity", "qty"),
        serialization_alias="quantity",
    )
    unit_price: float = Field(0, ge=0)
    lead_time: str = ""
    # Free-form on purpose: any string is stored as-is
    status: str = ItemStatus.DRAFT.value
    notes: str = ""
    specification: Specification = Field(
        default_factory=Specification,
        validation_alias=AliasChoices("specification", "specs"),
        serialization_alias="specification",
    )

    @field_validator("quantity", "unit_price")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """數量與單價必須為有限數值."""
        if v != v or v in (float("inf"), float("-inf")):
            raise ValueError("Value must be a finite number")
        return v

    @property
    def line_total(self) -> float:
        """quantity × unit_price (display only; totals use Decimal)."""
        return self.quantity * self.unit_price


def blank_item(item_id: int) -> LineItem:
    """Empty row placed in new documents and new categories."""
    return LineItem(id=item_id, quantity=0, unit_price=0)


def new_item(item_id: int) -> LineItem:
    """Row created by the add-item action."""
    return LineItem(id=item_id, description="New Item", quantity=1, unit_price=0)
