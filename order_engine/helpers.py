"""Small helpers shared across the engine."""

from datetime import datetime, timezone
from uuid import uuid4


def now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid4().hex
