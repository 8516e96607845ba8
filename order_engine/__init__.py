"""Inventory-constrained cart and order engine for restaurant ordering."""

from .cart import Cart
from .cash import CashTender, compute_change, is_sufficient, validate_for_submission
from .commands import (
    AddItem,
    ClearLines,
    MarkItemReceived,
    PlaceOrder,
    RemoveItem,
    RequestTransition,
    ReviseOrder,
    SetOrderType,
    SetQuantity,
    SetSpecialInstructions,
)
from .composer import DraftOrder, OrderComposer, OrderDraft, OrderRevision
from .config import Settings, configure_logging
from .enums import ActorRole, ItemStatus, OrderStatus, OrderType, PaymentMethod, PaymentStatus
from .errors import (
    CommandRejectedError,
    NotFoundError,
    OrderEngineError,
    PaymentInsufficientError,
    Rejection,
    RejectionReason,
    StateConflictError,
    StockExceededError,
    SubmissionRejectedError,
    UnauthorizedError,
    UnavailableError,
    ValidationError,
)
from .lifecycle import Actor, allowed_targets, can_transition
from .lines import LineItem, OrderLine
from .menu import MenuItemRef, MenuSnapshotProvider, StaticMenu
from .money import DELIVERY_FEE, Totals, compute_totals
from .order import Order
from .receipt import format_receipt
from .serialization import draft_to_payload, order_to_payload, revision_to_payload, to_struct
from .submission import OrderDesk, SubmissionGateway
from .tables import TableBoard, TableSession, TableStatus

__all__ = [
    # Aggregates
    "Cart",
    "DraftOrder",
    "Order",
    # Commands
    "AddItem",
    "ClearLines",
    "MarkItemReceived",
    "PlaceOrder",
    "RemoveItem",
    "RequestTransition",
    "ReviseOrder",
    "SetOrderType",
    "SetQuantity",
    "SetSpecialInstructions",
    # Values
    "Actor",
    "ActorRole",
    "CashTender",
    "ItemStatus",
    "LineItem",
    "MenuItemRef",
    "OrderDraft",
    "OrderLine",
    "OrderRevision",
    "OrderStatus",
    "OrderType",
    "PaymentMethod",
    "PaymentStatus",
    "TableSession",
    "TableStatus",
    "Totals",
    "DELIVERY_FEE",
    # Services
    "MenuSnapshotProvider",
    "OrderComposer",
    "OrderDesk",
    "StaticMenu",
    "SubmissionGateway",
    "TableBoard",
    # Functions
    "allowed_targets",
    "can_transition",
    "compute_change",
    "compute_totals",
    "draft_to_payload",
    "format_receipt",
    "is_sufficient",
    "order_to_payload",
    "revision_to_payload",
    "to_struct",
    "validate_for_submission",
    # Config
    "Settings",
    "configure_logging",
    # Errors
    "CommandRejectedError",
    "NotFoundError",
    "OrderEngineError",
    "PaymentInsufficientError",
    "Rejection",
    "RejectionReason",
    "StateConflictError",
    "StockExceededError",
    "SubmissionRejectedError",
    "UnauthorizedError",
    "UnavailableError",
    "ValidationError",
]
