"""
Storage module for the contact window engine.

Provides:
- SQLite relational storage (file or in-memory)
- Catalog repository (satellites, ground stations, element sets)
- Contact window store

Usage:
    from storage import StorageManager, StorageConfig

    config = StorageConfig(sqlite_path="./data/contact_windows.db")
    with StorageManager(config) as storage:
        storage.catalog.list_satellites()
"""

from .storage_manager import StorageManager, StorageConfig, StorageBackend
from .schema import get_create_table_sql, TABLES
from .sqlite_storage import SQLiteStorage
from .catalog import CatalogRepository, SQLiteCatalogRepository
from .window_store import SQLiteWindowStore

__all__ = [
    'StorageManager',
    'StorageConfig',
    'StorageBackend',
    'SQLiteStorage',
    'CatalogRepository',
    'SQLiteCatalogRepository',
    'SQLiteWindowStore',
    'get_create_table_sql',
    'TABLES'
]
