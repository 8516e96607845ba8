"""Events recorded by the cart, draft and order aggregates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .composer import OrderDraft, OrderRevision
    from .enums import ActorRole, OrderStatus, OrderType
    from .lines import LineItem
    from .menu import MenuItemRef


@dataclass(frozen=True)
class LineAdded:
    line: LineItem
    snapshot: MenuItemRef


@dataclass(frozen=True)
class QuantityChanged:
    menu_item_id: str
    old_quantity: int
    new_quantity: int
    snapshot: Optional[MenuItemRef] = None


@dataclass(frozen=True)
class LineRemoved:
    menu_item_id: str
    quantity: int


@dataclass(frozen=True)
class InstructionsChanged:
    menu_item_id: str
    special_instructions: str


@dataclass(frozen=True)
class LinesCleared:
    pass


@dataclass(frozen=True)
class OrderTypeChanged:
    order_type: OrderType


@dataclass(frozen=True)
class OrderPlaced:
    order_id: str
    draft: OrderDraft
    placed_at: datetime


@dataclass(frozen=True)
class OrderRevised:
    revision: OrderRevision
    revised_at: datetime


@dataclass(frozen=True)
class OrderStatusChanged:
    previous: OrderStatus
    status: OrderStatus
    actor_role: ActorRole
    changed_at: datetime


@dataclass(frozen=True)
class ItemReceived:
    line_id: str
    received_at: datetime
