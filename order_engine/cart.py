"""Customer cart aggregate."""

from dataclasses import dataclass

from .enums import CART_ORDER_TYPES, OrderType
from .lines import LineItemAggregate, LineState


@dataclass
class CartState(LineState):
    pass


class Cart(LineItemAggregate[CartState]):
    """The customer's pre-checkout selection.

    One cart per browsing session; every screen that touches it goes through
    the command handlers inherited from LineItemAggregate, so totals are
    never stale and servings are always checked against the newest snapshot.
    """

    domain = "cart"
    allowed_order_types = CART_ORDER_TYPES

    def _create_empty_state(self) -> CartState:
        return CartState(order_type=self._default_order_type())

    def _default_order_type(self) -> OrderType:
        return OrderType.DELIVERY
