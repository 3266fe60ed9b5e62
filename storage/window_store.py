"""
Persisted contact window store.

Rows are keyed naturally by (satellite_id, ground_station_id, scheduled_aos).
Instants are stored as fixed-width ISO 8601 UTC text, which sorts
chronologically.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List

from core.models.contact_window import ContactWindow
from core.models.satellite import ensure_utc_datetime

from .sqlite_storage import SQLiteStorage

logger = logging.getLogger(__name__)

TABLE = 'contact_windows'
NATURAL_KEY = ('satellite_id', 'ground_station_id', 'scheduled_aos')


def sortable_utc(instant: datetime) -> str:
    """Fixed-width UTC text, so string order equals time order"""
    return ensure_utc_datetime(instant).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def window_to_row(window: ContactWindow) -> Dict[str, Any]:
    """Serialize a window to column values"""
    return {
        'satellite_id': window.satellite_id,
        'ground_station_id': window.ground_station_id,
        'scheduled_aos': sortable_utc(window.scheduled_aos),
        'scheduled_los': sortable_utc(window.scheduled_los),
        'max_elevation_deg': window.max_elevation_deg,
        'duration_seconds': window.duration_seconds,
        'elements_used_id': window.elements_used_id,
        'status': window.status.value,
    }


def row_to_window(row: Dict[str, Any]) -> ContactWindow:
    """Deserialize a row back into a window"""
    return ContactWindow.from_dict(row)


class SQLiteWindowStore:
    """Contact window repository backed by SQLiteStorage

    Only the reconciler writes through this store. Reads are safe from
    any thread.
    """

    def __init__(self, storage: SQLiteStorage):
        self.storage = storage

    @contextmanager
    def transaction(self) -> Iterator['SQLiteWindowStore']:
        """All-or-nothing unit of work"""
        with self.storage.transaction():
            yield self

    def delete_where(self, satellite_id: str, ground_station_id: str) -> int:
        """Delete every window of one pair

        Returns:
            Number of rows deleted
        """
        return self.storage.delete(
            TABLE, 'satellite_id = ? AND ground_station_id = ?',
            (satellite_id, ground_station_id)
        )

    def upsert(self, window: ContactWindow) -> int:
        """Insert the window or update the row with the same natural key"""
        return self.storage.upsert(TABLE, window_to_row(window), NATURAL_KEY)

    def query_where(self, satellite_id: str, ground_station_id: str) -> List[ContactWindow]:
        """Windows of one pair, ascending by AOS"""
        rows = self.storage.fetch_all(
            f'SELECT * FROM "{TABLE}" WHERE satellite_id = ? AND ground_station_id = ? '
            f'ORDER BY scheduled_aos ASC',
            (satellite_id, ground_station_id)
        )
        return [row_to_window(row) for row in rows]

    def query_ending_after(self, satellite_id: str, ground_station_id: str,
                           instant: datetime) -> List[ContactWindow]:
        """Windows of one pair whose LOS is after the given instant, ascending by AOS"""
        rows = self.storage.fetch_all(
            f'SELECT * FROM "{TABLE}" WHERE satellite_id = ? AND ground_station_id = ? '
            f'AND scheduled_los > ? ORDER BY scheduled_aos ASC',
            (satellite_id, ground_station_id, sortable_utc(instant))
        )
        return [row_to_window(row) for row in rows]

    def count(self) -> int:
        """Total number of stored windows"""
        return self.storage.fetch_one(f'SELECT COUNT(*) AS n FROM "{TABLE}"')['n']
