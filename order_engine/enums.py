"""Enumerations shared across the engine."""

from enum import Enum


class OrderType(str, Enum):
    DELIVERY = "delivery"
    PICKUP = "pickup"
    DINE_IN = "dine_in"


# Order types a customer can pick for a cart.
CART_ORDER_TYPES = (OrderType.DELIVERY, OrderType.PICKUP)


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    DIGITAL = "digital"
    GCASH = "gcash"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    READY = "Ready"
    ON_THE_WAY = "OnTheWay"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


class ItemStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"


class ActorRole(str, Enum):
    CUSTOMER = "Customer"
    STAFF = "Staff"
    ADMIN = "Admin"
