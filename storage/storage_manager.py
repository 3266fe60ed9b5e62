"""
Unified storage manager for the contact window engine.

Owns the single SQLite connection and hands out the two repositories
built on it:
- catalog: satellites, ground stations and orbital element sets
- windows: predicted contact windows
"""
from enum import Enum
from dataclasses import dataclass
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class StorageBackend(Enum):
    """Storage backend types"""
    SQLITE = "sqlite"
    MEMORY = "memory"


@dataclass
class StorageConfig:
    """Storage configuration

    Attributes:
        relational_backend: SQLite file or in-memory SQLite
        sqlite_path: Path to SQLite database file
        busy_timeout_seconds: How long a statement waits on a locked database
    """
    relational_backend: StorageBackend = StorageBackend.SQLITE
    sqlite_path: str = "./data/contact_windows.db"
    busy_timeout_seconds: float = 5.0

    def __post_init__(self):
        """Validate configuration"""
        if isinstance(self.relational_backend, str):
            self.relational_backend = StorageBackend(self.relational_backend)
        if self.relational_backend == StorageBackend.MEMORY:
            self.sqlite_path = ":memory:"


class StorageManager:
    """Unified storage manager

    Example:
        storage = StorageManager(StorageConfig(sqlite_path="./contact_windows.db"))
        storage.connect()
        storage.create_tables()

        storage.catalog.save_satellite(satellite)
        windows = storage.windows.query_where("SAT-1", "GS-1")
    """

    def __init__(self, config: Optional[StorageConfig] = None):
        """Initialize storage manager

        Args:
            config: Storage configuration
        """
        from .sqlite_storage import SQLiteStorage
        from .catalog import SQLiteCatalogRepository
        from .window_store import SQLiteWindowStore

        self.config = config or StorageConfig()
        self.relational = SQLiteStorage(self.config)
        self.catalog = SQLiteCatalogRepository(self.relational)
        self.windows = SQLiteWindowStore(self.relational)
        logger.info(f"Initialized {self.config.relational_backend.value} storage")

    def connect(self) -> None:
        """Connect to the database"""
        self.relational.connect()
        logger.info("Storage manager connected")

    def close(self) -> None:
        """Close the database connection"""
        self.relational.close()
        logger.info("Storage manager closed")

    def create_tables(self) -> None:
        """Create all database tables"""
        self.relational.create_tables()

    def open(self) -> 'StorageManager':
        """Connect and ensure the schema exists"""
        if not self.relational.is_connected():
            self.connect()
        self.create_tables()
        return self

    def __enter__(self) -> 'StorageManager':
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def stats(self) -> Dict[str, Any]:
        """Row counts per table"""
        from .schema import TABLES

        return {
            table: self.relational.fetch_one(f'SELECT COUNT(*) AS n FROM "{table}"')['n']
            for table in TABLES
        }
