"""Error types for the order engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class errmsg:
    """Error message constants."""

    LINE_NOT_FOUND = "Item not in cart"
    ORDER_LINE_NOT_FOUND = "Order line does not exist"
    MENU_ITEM_NOT_FOUND = "Menu item not found"
    ITEM_UNAVAILABLE = "Item is not available"
    NO_SERVINGS = "No servings available"
    STOCK_EXCEEDED = "Only {available} servings available for {name}"
    QUANTITY_POSITIVE = "Quantity must be positive"
    ORDER_TYPE_INVALID = "order_type must be 'delivery' or 'pickup'"
    PAYMENT_METHOD_INVALID = "payment_method must be one of cash, card, digital, gcash"
    FIELD_REQUIRED = "{field} is required"
    ORDER_EMPTY = "Order must have at least one item"
    DUPLICATE_LINE = "Order lines must have distinct line ids"
    TOTALS_MISMATCH = "Order totals do not match its lines"
    ORDER_EXISTS = "Order already exists"
    ORDER_NOT_FOUND = "Order does not exist"
    ONLY_PENDING_EDITABLE = "Only pending orders can be edited"
    ONLY_PENDING_CANCELLABLE = "Only pending orders can be cancelled"
    TRANSITION_INVALID = "Cannot move order from {current} to {target}"
    TERMINAL_STATE = "Order is already {status}"
    RECEIPT_NOT_ALLOWED = "Items can only be received once the order is on the way or completed"
    CUSTOMER_TRANSITION = "Customers can only cancel orders"
    NOT_ORDER_OWNER = "You can only change your own orders"
    CASH_INSUFFICIENT = "Cash amount must be greater than or equal to total amount"
    NOTHING_PAYABLE = "Order total must be greater than zero"
    UNKNOWN_COMMAND = "Unknown command type"


class OrderEngineError(Exception):
    """Base class for order engine errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


class CommandRejectedError(OrderEngineError):
    """Command was rejected due to business rule violation."""


class ValidationError(CommandRejectedError):
    """A required field is missing or blank, or a value is malformed."""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field

    @classmethod
    def required(cls, field: str) -> ValidationError:
        return cls(errmsg.FIELD_REQUIRED.format(field=field), field=field)


class StockExceededError(CommandRejectedError):
    """Quantity would exceed the last known servings for a menu item."""

    def __init__(self, menu_item_id: str, name: str, available: int, requested: int):
        super().__init__(errmsg.STOCK_EXCEEDED.format(available=available, name=name))
        self.menu_item_id = menu_item_id
        self.available = available
        self.requested = requested


class UnavailableError(CommandRejectedError):
    """Menu item is marked unavailable."""

    def __init__(self, menu_item_id: str, name: str = ""):
        super().__init__(f"{errmsg.ITEM_UNAVAILABLE}: {name or menu_item_id}")
        self.menu_item_id = menu_item_id


class NotFoundError(CommandRejectedError):
    """Operation references a line, order or menu item that does not exist."""


class StateConflictError(CommandRejectedError):
    """Operation is not legal in the current lifecycle state."""


class PaymentInsufficientError(CommandRejectedError):
    """Cash tendered is below the order total."""

    def __init__(self, total, amount_tendered, message: str = errmsg.CASH_INSUFFICIENT):
        super().__init__(message)
        self.total = total
        self.amount_tendered = amount_tendered


class UnauthorizedError(CommandRejectedError):
    """Actor is not allowed to perform the operation."""


class RejectionReason(str, Enum):
    """Why the submission layer refused a request."""

    STOCK_EXCEEDED = "StockExceeded"
    TABLE_OCCUPIED = "TableOccupied"
    VALIDATION_FAILED = "ValidationFailed"
    UNAUTHORIZED = "Unauthorized"


@dataclass(frozen=True)
class Rejection:
    """Structured rejection returned by the submission layer."""

    reason: RejectionReason
    detail: str = ""


class SubmissionRejectedError(OrderEngineError):
    """The backing store refused a submitted order, patch or transition.

    Raised verbatim to the caller; the engine never retries or reinterprets it.
    """

    def __init__(self, rejection: Rejection):
        message = f"submission rejected ({rejection.reason.value})"
        if rejection.detail:
            message = f"{message}: {rejection.detail}"
        super().__init__(message)
        self.rejection = rejection

    @property
    def reason(self) -> RejectionReason:
        return self.rejection.reason

    @property
    def detail(self) -> str:
        return self.rejection.detail
