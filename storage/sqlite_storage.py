"""
SQLite storage implementation for the contact window store.

Provides relational data storage using SQLite with zero configuration.
One connection is shared between worker threads; every statement runs
under a re-entrant lock and `transaction()` holds that lock for the
whole unit of work.
"""
import sqlite3
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple
from pathlib import Path

from .schema import get_create_table_sql, TABLES, INDEXES
from .storage_manager import StorageConfig

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class SQLiteStorage:
    """SQLite storage backend

    Zero-configuration storage for local use and unit testing.
    Supports all tables defined in the schema.

    Example:
        config = StorageConfig(sqlite_path="./data/contact_windows.db")
        storage = SQLiteStorage(config)
        storage.connect()
        storage.create_tables()

        with storage.transaction():
            storage.delete('contact_windows', 'satellite_id = ?', ('SAT-1',))
            storage.insert('contact_windows', {...})

        rows = storage.fetch_all("SELECT * FROM contact_windows WHERE satellite_id = ?", ('SAT-1',))
    """

    def __init__(self, config: StorageConfig):
        """Initialize SQLite storage

        Args:
            config: Storage configuration
        """
        self.config = config
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._depth = 0

    def connect(self) -> None:
        """Establish database connection"""
        path = self.config.sqlite_path
        if path != MEMORY_PATH:
            Path(path).parent.mkdir(parents=True, exist_ok=True)

        # Autocommit mode; explicit BEGIN/COMMIT in transaction()
        self.conn = sqlite3.connect(
            path,
            check_same_thread=False,
            isolation_level=None,
            timeout=self.config.busy_timeout_seconds,
        )
        self.conn.row_factory = sqlite3.Row

        self.conn.execute("PRAGMA foreign_keys = ON")
        if path != MEMORY_PATH:
            self.conn.execute("PRAGMA journal_mode = WAL")
        self.conn.execute("PRAGMA synchronous = NORMAL")

        logger.info(f"Connected to SQLite database: {path}")

    def close(self) -> None:
        """Close database connection"""
        with self._lock:
            if self.conn:
                self.conn.close()
                self.conn = None
                logger.info("SQLite connection closed")

    def is_connected(self) -> bool:
        """Check if database connection is active"""
        return self.conn is not None

    def _require_connection(self) -> sqlite3.Connection:
        if not self.conn:
            raise RuntimeError("Not connected to database")
        return self.conn

    def create_tables(self) -> None:
        """Create all database tables and indexes (idempotent)"""
        conn = self._require_connection()
        with self._lock:
            for table_name in TABLES:
                conn.execute(get_create_table_sql(table_name))
            for index_sql in INDEXES:
                conn.execute(index_sql)
        logger.info(f"Ensured {len(TABLES)} tables")

    @contextmanager
    def transaction(self) -> Iterator['SQLiteStorage']:
        """Run a block as one atomic transaction

        Nested use joins the outer transaction. An exception rolls the
        outermost transaction back and propagates.
        """
        conn = self._require_connection()
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                conn.execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if outermost:
                    conn.execute("ROLLBACK")
                    logger.debug("Transaction rolled back")
                raise
            else:
                self._depth -= 1
                if outermost:
                    conn.execute("COMMIT")

    def in_transaction(self) -> bool:
        """Whether a transaction opened by transaction() is active"""
        return self._depth > 0

    def execute(self, sql: str, params: Optional[Tuple] = None) -> sqlite3.Cursor:
        """Execute SQL statement

        Args:
            sql: SQL statement
            params: Query parameters

        Returns:
            Cursor object
        """
        conn = self._require_connection()
        with self._lock:
            return conn.execute(sql, params or ())

    def fetch_one(self, sql: str, params: Optional[Tuple] = None) -> Optional[Dict[str, Any]]:
        """Fetch single row

        Args:
            sql: SQL query
            params: Query parameters

        Returns:
            Row as dictionary or None
        """
        with self._lock:
            row = self.execute(sql, params).fetchone()
        return dict(row) if row else None

    def fetch_all(self, sql: str, params: Optional[Tuple] = None) -> List[Dict[str, Any]]:
        """Fetch all rows

        Args:
            sql: SQL query
            params: Query parameters

        Returns:
            List of row dictionaries
        """
        with self._lock:
            rows = self.execute(sql, params).fetchall()
        return [dict(row) for row in rows]

    def insert(self, table: str, data: Dict[str, Any]) -> int:
        """Insert single row

        Args:
            table: Table name
            data: Row data as dictionary

        Returns:
            ID of inserted row
        """
        columns = ', '.join(f'"{k}"' for k in data.keys())
        placeholders = ', '.join(['?' for _ in data])
        sql = f'INSERT INTO "{table}" ({columns}) VALUES ({placeholders})'
        return self.execute(sql, tuple(data.values())).lastrowid

    def upsert(self, table: str, data: Dict[str, Any], conflict_columns: Tuple[str, ...]) -> int:
        """Insert a row or update the row sharing the conflict key

        Args:
            table: Table name
            data: Row data as dictionary
            conflict_columns: Columns of the UNIQUE constraint to match on

        Returns:
            Number of rows written
        """
        columns = ', '.join(f'"{k}"' for k in data.keys())
        placeholders = ', '.join(['?' for _ in data])
        conflict = ', '.join(f'"{c}"' for c in conflict_columns)
        updates = ', '.join(
            f'"{k}" = excluded."{k}"' for k in data.keys() if k not in conflict_columns
        )
        action = f'DO UPDATE SET {updates}' if updates else 'DO NOTHING'
        sql = (
            f'INSERT INTO "{table}" ({columns}) VALUES ({placeholders}) '
            f'ON CONFLICT({conflict}) {action}'
        )
        return self.execute(sql, tuple(data.values())).rowcount

    def update(self, table: str, data: Dict[str, Any],
               where: str, where_params: Tuple) -> int:
        """Update rows

        Args:
            table: Table name
            data: Update data
            where: WHERE clause
            where_params: WHERE parameters

        Returns:
            Number of rows updated
        """
        set_clause = ', '.join(f'"{k}" = ?' for k in data.keys())
        sql = f'UPDATE "{table}" SET {set_clause} WHERE {where}'
        return self.execute(sql, tuple(data.values()) + where_params).rowcount

    def delete(self, table: str, where: str, where_params: Tuple) -> int:
        """Delete rows

        Args:
            table: Table name
            where: WHERE clause
            where_params: WHERE parameters

        Returns:
            Number of rows deleted
        """
        sql = f'DELETE FROM "{table}" WHERE {where}'
        return self.execute(sql, where_params).rowcount

    def get_tables(self) -> List[str]:
        """Get list of all tables in database

        Returns:
            List of table names
        """
        rows = self.fetch_all("SELECT name FROM sqlite_master WHERE type='table'")
        return [row['name'] for row in rows]

    def table_exists(self, table: str) -> bool:
        """Check if table exists

        Args:
            table: Table name

        Returns:
            True if table exists
        """
        result = self.fetch_one(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table,)
        )
        return result is not None
