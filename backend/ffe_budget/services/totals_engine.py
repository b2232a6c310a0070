"""Budget totals computation.

categoryTotals: Σ quantity × unitPrice per category
grandTotal:     Σ categoryTotals
tax:            grandTotal × salesTaxRate / 100 (flat, no per-category rates)
totalWithTax:   grandTotal + tax
variance:       allowance − totalWithTax (>= 0 means at or under budget)
"""

import decimal
from decimal import Decimal
from typing import Iterable

from ..models.category import Category
from ..models.project_info import ProjectInfo
from ..models.totals import Totals
from .money import line_total, to_decimal

# Wide enough that sums of stored floats are exact
_CONTEXT = decimal.Context(prec=60)

_HUNDRED = Decimal(100)


def compute_totals(project_info: ProjectInfo, categories: Iterable[Category]) -> Totals:
    """
    Compute every derived total from the document.

    Pure and deterministic: no caching, no I/O. Stored numerics are assumed
    valid (the mutation API and the loader guarantee it); nothing is rounded
    here.

    Args:
        project_info: Supplies allowance and sales tax rate
        categories: Ordered categories with their items

    Returns:
        Totals
    """
    with decimal.localcontext(_CONTEXT):
        category_totals = {}
        grand_total = Decimal(0)

        for category in categories:
            subtotal = sum(
                (line_total(item.quantity, item.unit_price) for item in category.items),
                Decimal(0),
            )
            category_totals[category.id] = subtotal
            grand_total += subtotal

        tax = grand_total * to_decimal(project_info.sales_tax_rate) / _HUNDRED
        total_with_tax = grand_total + tax
        variance = to_decimal(project_info.allowance) - total_with_tax

    return Totals(
        category_totals=category_totals,
        grand_total=grand_total,
        tax=tax,
        total_with_tax=total_with_tax,
        variance=variance,
    )
