"""Line items and the stock-bound rules every cart and draft shares.

Both the customer cart and the staff draft are built on LineItemAggregate,
so quantity and servings checks exist in exactly one place.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Generic, Optional, TypeVar

import structlog

from .aggregate import Aggregate, applies, handles
from .commands import AddItem, ClearLines, RemoveItem, SetOrderType, SetQuantity, SetSpecialInstructions
from .enums import ItemStatus, OrderType
from .errors import NotFoundError, StockExceededError, UnavailableError, ValidationError, errmsg
from .events import InstructionsChanged, LineAdded, LineRemoved, LinesCleared, OrderTypeChanged, QuantityChanged
from .helpers import new_id
from .menu import MenuItemRef, MenuSnapshotProvider
from .money import Totals, compute_totals, to_decimal
from .validation import require_choice

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class LineItem:
    """One (menu item, quantity) pair. line_total is always derived."""

    menu_item_id: str
    item_name: str
    unit_price: Decimal
    quantity: int = 1
    special_instructions: str = ""

    def __post_init__(self):
        if self.quantity < 1:
            raise ValidationError(errmsg.QUANTITY_POSITIVE, field="quantity")
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price))

    @classmethod
    def from_snapshot(cls, snapshot: MenuItemRef, quantity: int = 1) -> LineItem:
        return cls(
            menu_item_id=snapshot.id,
            item_name=snapshot.name,
            unit_price=snapshot.unit_price,
            quantity=quantity,
        )

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> LineItem:
        return replace(self, quantity=quantity)


@dataclass(frozen=True)
class OrderLine(LineItem):
    """A line inside a composed or placed order, with its own receipt state."""

    line_id: str = field(default_factory=new_id)
    item_status: ItemStatus = ItemStatus.PENDING

    @classmethod
    def from_line(cls, line: LineItem, line_id: Optional[str] = None) -> OrderLine:
        return cls(
            menu_item_id=line.menu_item_id,
            item_name=line.item_name,
            unit_price=line.unit_price,
            quantity=line.quantity,
            special_instructions=line.special_instructions,
            line_id=line_id or new_id(),
        )

    @property
    def is_received(self) -> bool:
        return self.item_status == ItemStatus.RECEIVED


def check_servings(snapshot: MenuItemRef, quantity: int) -> None:
    """Fail closed if quantity can't be served according to snapshot."""
    if not snapshot.is_available:
        raise UnavailableError(snapshot.id, snapshot.name)
    if quantity > snapshot.available_servings:
        raise StockExceededError(snapshot.id, snapshot.name, snapshot.available_servings, quantity)


def check_lines_against_menu(lines: Iterable[LineItem], menu: MenuSnapshotProvider) -> None:
    """Re-read every line's menu item and check its quantity still fits."""
    for line in lines:
        check_servings(menu.get_menu_item(line.menu_item_id), line.quantity)


def merge_lines(lines: Iterable[LineItem]) -> list[LineItem]:
    """Fold lines for the same menu item into one, summing quantities.

    The first line for an item keeps its position, price and instructions.
    """
    merged: dict[str, LineItem] = {}
    for line in lines:
        existing = merged.get(line.menu_item_id)
        if existing is None:
            merged[line.menu_item_id] = line
        else:
            merged[line.menu_item_id] = existing.with_quantity(existing.quantity + line.quantity)
    return list(merged.values())


@dataclass
class LineState:
    # Insertion order is display order.
    lines: dict[str, LineItem] = field(default_factory=dict)
    snapshots: dict[str, MenuItemRef] = field(default_factory=dict)
    order_type: OrderType = OrderType.DELIVERY

    @property
    def totals(self) -> Totals:
        return compute_totals(self.lines.values(), self.order_type)


S = TypeVar("S", bound=LineState)


class LineItemAggregate(Aggregate[S], Generic[S]):
    """Shared line handling for carts and drafts.

    Subclasses pick their allowed order types and default order type.
    """

    allowed_order_types: tuple[OrderType, ...] = tuple(OrderType)

    def __init__(self, history=None, menu: Optional[MenuSnapshotProvider] = None):
        self._menu = menu
        super().__init__(history)

    @abstractmethod
    def _default_order_type(self) -> OrderType:
        ...

    # --- Event appliers ---

    @applies(LineAdded)
    def apply_line_added(self, state: S, event: LineAdded) -> None:
        state.lines[event.line.menu_item_id] = event.line
        state.snapshots[event.line.menu_item_id] = event.snapshot

    @applies(QuantityChanged)
    def apply_quantity_changed(self, state: S, event: QuantityChanged) -> None:
        line = state.lines[event.menu_item_id]
        state.lines[event.menu_item_id] = line.with_quantity(event.new_quantity)
        if event.snapshot is not None:
            state.snapshots[event.menu_item_id] = event.snapshot

    @applies(LineRemoved)
    def apply_line_removed(self, state: S, event: LineRemoved) -> None:
        state.lines.pop(event.menu_item_id, None)
        state.snapshots.pop(event.menu_item_id, None)

    @applies(InstructionsChanged)
    def apply_instructions_changed(self, state: S, event: InstructionsChanged) -> None:
        line = state.lines[event.menu_item_id]
        state.lines[event.menu_item_id] = replace(line, special_instructions=event.special_instructions)

    @applies(LinesCleared)
    def apply_lines_cleared(self, state: S, event: LinesCleared) -> None:
        state.lines.clear()
        state.snapshots.clear()

    @applies(OrderTypeChanged)
    def apply_order_type_changed(self, state: S, event: OrderTypeChanged) -> None:
        state.order_type = event.order_type

    # --- State accessors ---

    @property
    def lines(self) -> list[LineItem]:
        return list(self._state.lines.values())

    def get_line(self, menu_item_id: str) -> Optional[LineItem]:
        return self._state.lines.get(menu_item_id)

    @property
    def order_type(self) -> OrderType:
        return self._state.order_type

    @property
    def totals(self) -> Totals:
        return self._state.totals

    @property
    def subtotal(self) -> Decimal:
        return self.totals.subtotal

    @property
    def delivery_fee(self) -> Decimal:
        return self.totals.delivery_fee

    @property
    def total(self) -> Decimal:
        return self.totals.total

    def get_total(self) -> Decimal:
        return self.total

    def get_item_count(self) -> int:
        """Sum of quantities, not number of lines."""
        return sum(line.quantity for line in self._state.lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._state.lines

    def last_snapshot(self, menu_item_id: str) -> Optional[MenuItemRef]:
        return self._state.snapshots.get(menu_item_id)

    # --- Command handlers ---

    @handles(AddItem)
    def add_item(self, cmd: AddItem) -> LineAdded | QuantityChanged:
        """Add one serving of a menu item, merging into an existing line."""
        snapshot = cmd.snapshot
        existing = self._state.lines.get(snapshot.id)

        if existing is not None:
            new_quantity = existing.quantity + 1
            check_servings(snapshot, new_quantity)
            log.info("incrementing_line", domain=self.domain, menu_item_id=snapshot.id, quantity=new_quantity)
            return QuantityChanged(snapshot.id, existing.quantity, new_quantity, snapshot)

        check_servings(snapshot, 1)
        log.info("adding_line", domain=self.domain, menu_item_id=snapshot.id)
        return LineAdded(line=LineItem.from_snapshot(snapshot), snapshot=snapshot)

    @handles(SetQuantity)
    def set_quantity(self, cmd: SetQuantity) -> Optional[QuantityChanged | LineRemoved]:
        """Set a line's quantity; below one removes the line."""
        if cmd.quantity < 1:
            return self._removal(cmd.menu_item_id)

        line = self._state.lines.get(cmd.menu_item_id)
        if line is None:
            raise NotFoundError(f"{errmsg.LINE_NOT_FOUND}: {cmd.menu_item_id}")
        if cmd.quantity == line.quantity:
            return None

        snapshot = cmd.snapshot
        if cmd.quantity > line.quantity:
            snapshot = self._resolve_snapshot(cmd.menu_item_id, cmd.snapshot)
            check_servings(snapshot, cmd.quantity)

        log.info("updating_quantity", domain=self.domain, menu_item_id=cmd.menu_item_id, quantity=cmd.quantity)
        return QuantityChanged(cmd.menu_item_id, line.quantity, cmd.quantity, snapshot)

    @handles(RemoveItem)
    def remove_item(self, cmd: RemoveItem) -> Optional[LineRemoved]:
        """Remove a line. Removing an absent line is a no-op."""
        return self._removal(cmd.menu_item_id)

    def _removal(self, menu_item_id: str) -> Optional[LineRemoved]:
        line = self._state.lines.get(menu_item_id)
        if line is None:
            return None
        log.info("removing_line", domain=self.domain, menu_item_id=menu_item_id)
        return LineRemoved(menu_item_id, line.quantity)

    @handles(SetSpecialInstructions)
    def set_special_instructions(self, cmd: SetSpecialInstructions) -> InstructionsChanged:
        if cmd.menu_item_id not in self._state.lines:
            raise NotFoundError(f"{errmsg.LINE_NOT_FOUND}: {cmd.menu_item_id}")
        return InstructionsChanged(cmd.menu_item_id, cmd.special_instructions.strip())

    @handles(ClearLines)
    def clear(self, cmd: ClearLines) -> tuple:
        """Empty all lines and reset the order type to its default."""
        events = [LinesCleared()]
        default = self._default_order_type()
        if self._state.order_type != default:
            events.append(OrderTypeChanged(default))
        log.info("clearing_lines", domain=self.domain)
        return tuple(events)

    @handles(SetOrderType)
    def set_order_type(self, cmd: SetOrderType) -> Optional[OrderTypeChanged]:
        """Change delivery/pickup; lines are untouched, totals follow."""
        order_type = coerce_order_type(cmd.order_type)
        require_choice(order_type, self.allowed_order_types, errmsg.ORDER_TYPE_INVALID, field="order_type")
        if order_type == self._state.order_type:
            return None
        return OrderTypeChanged(order_type)

    def _resolve_snapshot(self, menu_item_id: str, given: Optional[MenuItemRef]) -> MenuItemRef:
        if given is not None:
            return given
        if self._menu is not None:
            return self._menu.get_menu_item(menu_item_id)
        return self._state.snapshots[menu_item_id]


def coerce_order_type(value) -> OrderType:
    try:
        return OrderType(value)
    except ValueError:
        raise ValidationError(errmsg.ORDER_TYPE_INVALID, field="order_type") from None
