"""POS cash reconciliation: change due and whether a tender covers the total."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .enums import PaymentMethod
from .errors import PaymentInsufficientError, errmsg
from .money import ZERO, Amount, parse_amount, to_decimal


def compute_change(total: Amount, amount_tendered: Amount | None) -> Decimal:
    """Change due for a tender. Never negative."""
    return max(ZERO, parse_amount(amount_tendered) - to_decimal(total))


def is_sufficient(total: Amount, amount_tendered: Amount | None) -> bool:
    """True if the tender covers a payable total. A zero total is never payable."""
    total = to_decimal(total)
    return total > ZERO and parse_amount(amount_tendered) >= total


@dataclass(frozen=True)
class CashTender:
    """One cash-payment attempt; used for validation and the receipt only."""

    amount_tendered: Decimal
    total: Decimal

    @property
    def change(self) -> Decimal:
        return compute_change(self.total, self.amount_tendered)


def validate_for_submission(order, amount_tendered: Amount | None = None) -> Optional[CashTender]:
    """Check a cash order's tender before it is submitted.

    `order` is anything with `payment_method` and `total`, usually an
    OrderDraft. Non-cash orders always pass and return None.

    Raises:
        PaymentInsufficientError: If a cash tender doesn't cover the total.
    """
    if order.payment_method != PaymentMethod.CASH:
        return None

    total = to_decimal(order.total)
    tendered = parse_amount(amount_tendered)
    if not is_sufficient(total, tendered):
        message = errmsg.CASH_INSUFFICIENT if total > ZERO else errmsg.NOTHING_PAYABLE
        raise PaymentInsufficientError(total, tendered, message)
    return CashTender(amount_tendered=tendered, total=total)
