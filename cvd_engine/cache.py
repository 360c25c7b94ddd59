"""
Report Cache

Statements are cached per (distributor, period, schedule version) together
with a fingerprint of the sales snapshot they were computed from. Entries
are dropped explicitly when a sale is recorded; there is no time-based expiry.
"""

import hashlib
import logging
import threading
from typing import Iterable

from .models import CommissionStatement, Sale

logger = logging.getLogger(__name__)


def snapshot_fingerprint(sales: Iterable[Sale], schedule_version: str, crossing_sale_tier: str) -> str:
    """SHA-256 of the sales snapshot and the settings it is priced under."""
    digest = hashlib.sha256()
    digest.update(f"{schedule_version}|{crossing_sale_tier}\n".encode())
    for sale in sales:
        digest.update(f"{sale.product}|{sale.occurred_at.isoformat()}|{sale.sale_id or ''}\n".encode())
    return digest.hexdigest()


class ReportCache:
    """In-memory statement cache with explicit invalidation."""

    def __init__(self):
        self._entries: dict[tuple[str, str, str], CommissionStatement] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, distributor_id: str, period: str, schedule_version: str, fingerprint: str) -> CommissionStatement | None:
        """Return the cached statement only if it was computed from the same snapshot."""
        with self._lock:
            statement = self._entries.get((distributor_id, period, schedule_version))

        if statement is None:
            return None
        if statement.fingerprint != fingerprint:
            logger.info(f"Sales snapshot changed for {distributor_id} {period}; recomputing")
            return None
        return statement

    def put(self, distributor_id: str, period: str, schedule_version: str, statement: CommissionStatement) -> None:
        with self._lock:
            self._entries[(distributor_id, period, schedule_version)] = statement

    def invalidate(self, distributor_id: str, period: str | None = None) -> int:
        """
        Drop cached statements after a sale was recorded, corrected or voided.

        Without a period, every period of the distributor is dropped.
        Returns the number of entries removed.
        """
        with self._lock:
            keys = [
                key for key in self._entries
                if key[0] == distributor_id and (period is None or key[1] == period)
            ]
            for key in keys:
                del self._entries[key]

        logger.info(f"Invalidated {len(keys)} cached statement(s) for {distributor_id} {period or '*'}")
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
