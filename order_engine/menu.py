"""Menu snapshots and the provider port the engine reads them through."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, replace
from decimal import Decimal

from .errors import NotFoundError, errmsg
from .money import Amount, to_decimal


@dataclass(frozen=True)
class MenuItemRef:
    """A point-in-time read of a catalog entry.

    Never mutated by the engine; a newer read replaces it.
    """

    id: str
    name: str
    unit_price: Decimal
    category: str = ""
    available_servings: int = 0
    is_available: bool = True

    def __post_init__(self):
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price))

    def has_sufficient_servings(self, quantity: int = 1) -> bool:
        return self.available_servings >= quantity


class MenuSnapshotProvider(ABC):
    """Read-only source of truth for price, availability and servings."""

    @abstractmethod
    def get_menu_item(self, item_id: str) -> MenuItemRef:
        """Return the latest snapshot for item_id.

        Raises:
            NotFoundError: If the catalog has no such item.
        """


class StaticMenu(MenuSnapshotProvider):
    """In-memory catalog, handy for kiosks, fixtures and tests."""

    def __init__(self, items: Iterable[MenuItemRef] = ()):
        self._items: dict[str, MenuItemRef] = {item.id: item for item in items}

    def get_menu_item(self, item_id: str) -> MenuItemRef:
        try:
            return self._items[item_id]
        except KeyError:
            raise NotFoundError(f"{errmsg.MENU_ITEM_NOT_FOUND}: {item_id}") from None

    def put(self, item: MenuItemRef) -> None:
        self._items[item.id] = item

    def set_servings(self, item_id: str, servings: int) -> MenuItemRef:
        item = replace(self.get_menu_item(item_id), available_servings=servings)
        self._items[item_id] = item
        return item

    def set_price(self, item_id: str, price: Amount) -> MenuItemRef:
        item = replace(self.get_menu_item(item_id), unit_price=to_decimal(price))
        self._items[item_id] = item
        return item

    def set_available(self, item_id: str, is_available: bool) -> MenuItemRef:
        item = replace(self.get_menu_item(item_id), is_available=is_available)
        self._items[item_id] = item
        return item

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._items

    def __len__(self) -> int:
        return len(self._items)
