from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

_HUNDRED = Decimal("100")
_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total: Decimal

    def presented(self) -> dict[str, Decimal]:
        return {
            "subtotal": present(self.subtotal),
            "discount_amount": present(self.discount_amount),
            "taxable_amount": present(self.taxable_amount),
            "tax_amount": present(self.tax_amount),
            "total": present(self.total),
        }


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def price(
    subtotal: Decimal | int | float | str,
    discount_percent: Decimal | int | float | str,
    tax_rate: Decimal | int | float | str,
) -> PriceBreakdown:
    """Apply the discount to the subtotal, then tax the discounted amount.

    Values stay unrounded so repeated recomputation while the cart changes
    never compounds rounding error; use :func:`present` for display.
    """
    base = _to_decimal(subtotal)
    percent = _to_decimal(discount_percent)
    rate = _to_decimal(tax_rate)
    if base < 0:
        raise ValueError(f"subtotal must be >= 0, got {base}")
    if not Decimal("0") <= percent <= _HUNDRED:
        raise ValueError(f"discount percent must be between 0 and 100, got {percent}")
    if rate < 0:
        raise ValueError(f"tax rate must be >= 0, got {rate}")

    discount_amount = base * percent / _HUNDRED
    taxable_amount = base - discount_amount
    tax_amount = taxable_amount * rate / _HUNDRED
    return PriceBreakdown(
        subtotal=base,
        discount_percent=percent,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_rate=rate,
        tax_amount=tax_amount,
        total=taxable_amount + tax_amount,
    )


def present(amount: Decimal) -> Decimal:
    return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)


def format_currency(amount: Decimal, symbol: str = "₹") -> str:
    return f"{symbol}{present(amount):,.2f}"
