"""Validation helpers for command handler precondition checks.

Eliminates repeated validation boilerplate across the cart, draft and
order handlers.
"""

from collections.abc import Collection, Sequence
from typing import Any, Optional

from .errors import StateConflictError, ValidationError, errmsg


def is_blank(value: Optional[str]) -> bool:
    """Return True if value is None, empty or whitespace only."""
    return value is None or not str(value).strip()


def require_not_blank(value: Optional[str], field: str) -> str:
    """Require a non-blank string and return it stripped."""
    if is_blank(value):
        raise ValidationError.required(field)
    return str(value).strip()


def require_not_empty(items: Sequence[Any], error_msg: str = errmsg.ORDER_EMPTY) -> None:
    """Require that a sequence has at least one element."""
    if not items:
        raise ValidationError(error_msg)


def require_choice(value: Any, choices: Collection[Any], error_msg: str, field: str = "") -> None:
    """Require that value is one of the allowed choices."""
    if value not in choices:
        raise ValidationError(error_msg, field=field)


def require_status(actual: Any, expected: Any, error_msg: str) -> None:
    """Require that the current status matches the expected value."""
    if actual != expected:
        raise StateConflictError(error_msg)


def require_status_in(actual: Any, allowed: Collection[Any], error_msg: str) -> None:
    """Require that the current status is one of the allowed values."""
    if actual not in allowed:
        raise StateConflictError(error_msg)
