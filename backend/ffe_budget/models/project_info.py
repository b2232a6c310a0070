"""Project metadata model."""

import datetime
from typing import List

from pydantic import Field

from .base import DocumentModel


DEFAULT_TERMS: List[str] = [
    "1. Estimates are valid for 30 days from date of issue.",
    "2. Freight and delivery charges are estimated and will be billed at actual cost.",
    "3. A formal quote and proposal will be provided. This is a preliminary budgeting tool only.",
]

# Fields validated as non-negative numbers by the mutation API
NUMERIC_FIELDS = ("allowance", "sales_tax_rate")


class ProjectInfo(DocumentModel):
    """專案資訊（文件表頭、預算、公司資訊）."""

    # Project details
    name: str = ""
    address: str = ""
    date: str = Field(default_factory=lambda: datetime.date.today().isoformat(), description="ISO 8601 日期")
    client: str = ""
    allowance: float = Field(0, ge=0, description="預算額度 (USD)")
    sales_tax_rate: float = Field(0, ge=0, description="稅率百分比，10.25 代表 10.25%")

    # Company branding
    company_name: str = ""
    company_address: str = ""
    company_phone: str = ""
    company_email: str = ""
    company_website: str = ""
    logo_url: str = ""

    # Terms & conditions
    terms: List[str] = Field(default_factory=lambda: list(DEFAULT_TERMS))

    @classmethod
    def field_for(cls, name: str):
        """Resolve a Python or on-disk field name ("salesTaxRate") to the attribute name."""
        if name in cls.model_fields:
            return name
        for attr, info in cls.model_fields.items():
            if info.alias == name:
                return attr
        return None
