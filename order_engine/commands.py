"""Commands accepted by the cart, draft and order aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .composer import OrderDraft, OrderRevision
    from .enums import OrderStatus, OrderType
    from .lifecycle import Actor
    from .menu import MenuItemRef


# --- line commands (cart and draft) ---


@dataclass(frozen=True)
class AddItem:
    snapshot: MenuItemRef


@dataclass(frozen=True)
class SetQuantity:
    menu_item_id: str
    quantity: int
    # Fresh read for the item; when omitted the aggregate uses its provider
    # or, failing that, the last snapshot it has seen.
    snapshot: Optional[MenuItemRef] = None


@dataclass(frozen=True)
class RemoveItem:
    menu_item_id: str


@dataclass(frozen=True)
class SetSpecialInstructions:
    menu_item_id: str
    special_instructions: str


@dataclass(frozen=True)
class ClearLines:
    pass


@dataclass(frozen=True)
class SetOrderType:
    order_type: OrderType


# --- order commands ---


@dataclass(frozen=True)
class PlaceOrder:
    order_id: str
    draft: OrderDraft


@dataclass(frozen=True)
class ReviseOrder:
    revision: OrderRevision
    actor: Optional[Actor] = None


@dataclass(frozen=True)
class RequestTransition:
    target: OrderStatus
    actor: Actor


@dataclass(frozen=True)
class MarkItemReceived:
    line_id: str
    actor: Optional[Actor] = None
