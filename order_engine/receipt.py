"""Receipt formatting utilities."""

from __future__ import annotations

from typing import Optional

from .cash import CashTender
from .config import Settings
from .money import format_money

WIDTH = 40


def format_receipt(order, tender: Optional[CashTender] = None, currency: Optional[str] = None) -> str:
    """Format a human-readable receipt for an Order or OrderDraft.

    The currency label defaults to the configured Settings.currency.
    """
    if currency is None:
        currency = Settings.from_env().currency
    lines = []

    def money(amount):
        return format_money(amount, currency)

    lines.append("=" * WIDTH)
    lines.append("RECEIPT".center(WIDTH).rstrip())
    lines.append("=" * WIDTH)
    order_id = getattr(order, "order_id", "")
    lines.append(f"Order: {order_id[:16]}" if order_id else "Order: (not submitted)")
    lines.append(f"Type: {order.order_type.value}")
    if order.table_number:
        lines.append(f"Table: {order.table_number}")
    lines.append(f"Customer: {order.customer_name}" if order.customer_name else "Customer: N/A")
    if order.staff_name:
        lines.append(f"Served by: {order.staff_name}")
    lines.append("-" * WIDTH)

    for line in order.lines:
        lines.append(f"{line.quantity} x {line.item_name} @ {money(line.unit_price)} = {money(line.line_total)}")
        if line.special_instructions:
            lines.append(f"    note: {line.special_instructions}")

    lines.append("-" * WIDTH)
    lines.append("Subtotal:".ljust(20) + money(order.subtotal))
    if order.delivery_fee > 0:
        lines.append("Delivery fee:".ljust(20) + money(order.delivery_fee))
    lines.append("-" * WIDTH)
    lines.append("TOTAL:".ljust(20) + money(order.total))
    lines.append(f"Payment: {order.payment_method.value}")

    if tender is not None:
        lines.append("Cash:".ljust(20) + money(tender.amount_tendered))
        lines.append("Change:".ljust(20) + money(tender.change))

    if order.notes:
        lines.append("-" * WIDTH)
        lines.append(f"Notes: {order.notes}")

    lines.append("=" * WIDTH)
    lines.append("Thank you for your order!".center(WIDTH).rstrip())
    lines.append("=" * WIDTH)

    return "\n".join(lines)
