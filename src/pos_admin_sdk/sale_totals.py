from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SaleTotals:
    subtotal: float
    total: float

    @property
    def display_total(self) -> str:
        return f"{self.total:.2f}"


def compute_sale_totals(
    quantity: int,
    unit_price: float,
    discount_pct: float = 0.0,
    tax_pct: float = 0.0,
) -> SaleTotals:
    """Discount applies to the subtotal, tax to the discounted amount.

    The total is submitted unrounded; only ``display_total`` rounds.
    """
    subtotal = quantity * unit_price
    discounted = subtotal * (1 - discount_pct / 100)
    total = discounted * (1 + tax_pct / 100)
    return SaleTotals(subtotal=subtotal, total=total)
