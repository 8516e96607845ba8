"""Money helpers and the single place totals are computed."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Union

from .enums import OrderType

ZERO = Decimal("0")

# Flat delivery fee in currency units, applied only to delivery orders.
DELIVERY_FEE = Decimal("50")

Amount = Union[Decimal, int, str, float]

_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def to_decimal(value: Amount) -> Decimal:
    """Coerce a numeric value to Decimal.

    Floats go through str() so 0.1 stays 0.1.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def parse_amount(text: Amount | None) -> Decimal:
    """Parse a tendered amount typed at the till.

    Characters other than digits and '.' are dropped, then the leading
    number is read, so "1.2.3" is 1.2. No leading number counts as zero.
    """
    if text is None:
        return ZERO
    if not isinstance(text, str):
        return to_decimal(text)
    cleaned = re.sub(r"[^0-9.]", "", text)
    match = _LEADING_NUMBER.match(cleaned)
    if match is None:
        return ZERO
    return Decimal(match.group())


def delivery_fee_for(order_type: OrderType) -> Decimal:
    return DELIVERY_FEE if order_type == OrderType.DELIVERY else ZERO


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal = ZERO
    delivery_fee: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.delivery_fee


def compute_totals(lines: Iterable, order_type: OrderType) -> Totals:
    """Compute subtotal, delivery fee and total for a set of lines.

    Every line must expose `line_total`.
    """
    subtotal = sum((line.line_total for line in lines), ZERO)
    return Totals(subtotal=subtotal, delivery_fee=delivery_fee_for(order_type))


def format_money(amount: Decimal, currency: str = "") -> str:
    text = f"{amount:,.2f}"
    return f"{currency} {text}" if currency else text
