"""POS table occupancy, mirrored from what the backing store confirmed."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

import structlog

from .helpers import now

log = structlog.get_logger(__name__)


class TableStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"


@dataclass
class TableSession:
    table_number: str
    customer_name: str
    staff_name: str
    linked_order_id: str
    status: TableStatus = TableStatus.OCCUPIED
    seated_at: datetime = field(default_factory=now)
    released_at: Optional[datetime] = None


class TableBoard:
    """Local view of which tables are taken.

    Occupancy is decided by the backing store; a table is seated here only
    after it confirmed the order, and released when that order ends.
    """

    def __init__(self):
        self._sessions: dict[str, TableSession] = {}

    def seat(self, table_number, customer_name: str, staff_name: str, order_id: str) -> TableSession:
        session = TableSession(
            table_number=str(table_number),
            customer_name=customer_name,
            staff_name=staff_name,
            linked_order_id=order_id,
        )
        self._sessions[session.table_number] = session
        log.info("table_seated", table_number=session.table_number, order_id=order_id)
        return session

    def release_for_order(self, order_id: str) -> Optional[TableSession]:
        """Release the table linked to order_id, if any."""
        for table_number, session in self._sessions.items():
            if session.linked_order_id == order_id and session.status == TableStatus.OCCUPIED:
                session.status = TableStatus.AVAILABLE
                session.released_at = now()
                log.info("table_released", table_number=table_number, order_id=order_id)
                return session
        return None

    def get(self, table_number) -> Optional[TableSession]:
        return self._sessions.get(str(table_number))

    def status_of(self, table_number) -> TableStatus:
        session = self.get(table_number)
        return session.status if session else TableStatus.AVAILABLE

    def is_occupied(self, table_number) -> bool:
        return self.status_of(table_number) == TableStatus.OCCUPIED

    def occupied(self) -> list[TableSession]:
        return [s for s in self._sessions.values() if s.status == TableStatus.OCCUPIED]
