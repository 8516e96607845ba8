"""Payloads handed to the submission layer.

Payload dicts are JSON-safe: money as strings with two decimals, enums as
their values, timestamps as RFC 3339. Transports that carry protobuf can
wrap a payload in a google.protobuf Struct with to_struct().
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Optional

from google.protobuf import json_format
from google.protobuf.struct_pb2 import Struct
from google.protobuf.timestamp_pb2 import Timestamp

if TYPE_CHECKING:
    from .composer import OrderDraft, OrderRevision
    from .lines import OrderLine
    from .order import Order

_CENTS = Decimal("0.01")


def money_to_str(amount: Decimal) -> str:
    return str(amount.quantize(_CENTS))


def timestamp_to_str(value: Optional[datetime]) -> Optional[str]:
    """Render an aware datetime as an RFC 3339 string via protobuf Timestamp."""
    if value is None:
        return None
    ts = Timestamp()
    ts.FromDatetime(value)
    return ts.ToJsonString()


def line_to_payload(line: OrderLine) -> dict[str, Any]:
    return {
        "line_id": line.line_id,
        "menu_item_id": line.menu_item_id,
        "item_name": line.item_name,
        "quantity": line.quantity,
        "price": money_to_str(line.unit_price),
        "total_price": money_to_str(line.line_total),
        "special_instructions": line.special_instructions,
        "item_status": line.item_status.value,
    }


def draft_to_payload(draft: OrderDraft) -> dict[str, Any]:
    """Payload for creating an order."""
    return {
        "order_type": draft.order_type.value,
        "status": draft.status.value,
        "order_items": [line_to_payload(line) for line in draft.lines],
        "delivery_address": draft.delivery_address,
        "customer_phone": draft.customer_phone,
        "customer_name": draft.customer_name,
        "customer_id": draft.customer_id,
        "table_number": draft.table_number,
        "staff_name": draft.staff_name,
        "payment_method": draft.payment_method.value,
        "payment_status": draft.payment_status.value,
        "notes": draft.notes,
        "subtotal_amount": money_to_str(draft.subtotal),
        "delivery_fee": money_to_str(draft.delivery_fee),
        "total_amount": money_to_str(draft.total),
        "composed_at": timestamp_to_str(draft.composed_at),
    }


def revision_to_payload(revision: OrderRevision) -> dict[str, Any]:
    """Patch payload: supplied fields only, plus the re-derived totals."""
    payload: dict[str, Any] = {"order_id": revision.order_id}
    if revision.lines is not None:
        payload["order_items"] = [line_to_payload(line) for line in revision.lines]
    for name in ("order_type", "payment_method", "payment_status"):
        value = getattr(revision, name)
        if value is not None:
            payload[name] = value.value
    for name in ("delivery_address", "customer_phone", "notes"):
        value = getattr(revision, name)
        if value is not None:
            payload[name] = value
    payload["subtotal_amount"] = money_to_str(revision.subtotal)
    payload["delivery_fee"] = money_to_str(revision.delivery_fee)
    payload["total_amount"] = money_to_str(revision.total)
    return payload


def order_to_payload(order: Order) -> dict[str, Any]:
    return {
        "order_id": order.order_id,
        "order_type": order.order_type.value,
        "status": order.status.value,
        "order_items": [line_to_payload(line) for line in order.lines],
        "delivery_address": order.delivery_address,
        "customer_phone": order.customer_phone,
        "customer_name": order.customer_name,
        "customer_id": order.customer_id,
        "table_number": order.table_number,
        "staff_name": order.staff_name,
        "payment_method": order.payment_method.value,
        "payment_status": order.payment_status.value,
        "notes": order.notes,
        "subtotal_amount": money_to_str(order.subtotal),
        "delivery_fee": money_to_str(order.delivery_fee),
        "total_amount": money_to_str(order.total),
        "placed_at": timestamp_to_str(order.placed_at),
        "updated_at": timestamp_to_str(order.updated_at),
    }


def to_struct(payload: dict[str, Any]) -> Struct:
    """Wrap a payload dict in a protobuf Struct."""
    return json_format.ParseDict(payload, Struct())


def from_struct(struct: Struct) -> dict[str, Any]:
    """Unwrap a Struct. Numbers come back as floats."""
    return json_format.MessageToDict(struct)
