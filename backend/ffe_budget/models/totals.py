"""Derived budget totals."""

from decimal import Decimal
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from ..services.money import format_currency, format_signed_currency


class Totals(BaseModel):
    """Read-only totals view; always recomputed, never edited."""

    model_config = ConfigDict(frozen=True)

    category_totals: Dict[str, Decimal] = Field(default_factory=dict)
    grand_total: Decimal = Decimal(0)
    tax: Decimal = Decimal(0)
    total_with_tax: Decimal = Decimal(0)
    variance: Decimal = Decimal(0)

    @property
    def is_over_budget(self) -> bool:
        return self.variance < 0

    def formatted(self) -> dict:
        """Display strings, the only place amounts are rounded."""
        return {
            "categoryTotals": {
                category_id: format_currency(amount)
                for category_id, amount in self.category_totals.items()
            },
            "grandTotal": format_currency(self.grand_total),
            "tax": format_currency(self.tax),
            "totalWithTax": format_currency(self.total_with_tax),
            "variance": format_signed_currency(self.variance),
        }
