"""
Checkout amount arithmetic.

Amounts are computed with Decimal and rounded half-up to cents, so the
card charge and the wallet cart never disagree on a rounding edge.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Tuple, Union

Number = Union[int, float, str, Decimal]

_CENT = Decimal("0.01")


def _dec(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def money(value: Number) -> Decimal:
    return _dec(value).quantize(_CENT, rounding=ROUND_HALF_UP)


def card_total(price: Number, shipping_fee: Number = 0, sales_tax: Number = 0) -> Decimal:
    """Price plus shipping plus sales tax."""
    return money(_dec(price) + _dec(shipping_fee) + _dec(sales_tax))


def to_minor_units(amount: Number) -> int:
    """Convert a dollar amount to integer cents."""
    return int((_dec(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def wallet_totals(
    price: Number,
    shipping_fee: Number = 0,
    discount_rate: Number = Decimal("0.10"),
) -> Tuple[Decimal, Decimal]:
    """
    Totals for the wallet checkout.

    Returns:
        (discounted price, discounted price + shipping)
    """
    discount_total = money(_dec(price) * (Decimal("1") - _dec(discount_rate)))
    return discount_total, money(discount_total + _dec(shipping_fee))
