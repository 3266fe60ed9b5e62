"""
Database schema definitions for the contact window store.

Defines 4 tables across 2 layers:
1. Catalog Layer (3 tables) - satellites, ground stations, orbital element sets
2. Results Layer (1 table) - predicted contact windows
"""

from typing import Dict

# All table names, in creation order (referenced tables first)
TABLES = [
    # Catalog Layer
    'satellites', 'ground_stations', 'orbital_elements',
    # Results Layer
    'contact_windows',
]

# Table schema definitions (SQLite syntax)
SCHEMAS: Dict[str, str] = {
    # ============== Catalog Layer ==============
    'satellites': """
        CREATE TABLE IF NOT EXISTS satellites (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL DEFAULT '',
            classification TEXT NOT NULL DEFAULT 'live',
            norad_id INTEGER,
            current_elements_id TEXT,
            description TEXT DEFAULT '',
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """,

    'ground_stations': """
        CREATE TABLE IF NOT EXISTS ground_stations (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL DEFAULT '',
            longitude REAL NOT NULL,
            latitude REAL NOT NULL,
            altitude REAL DEFAULT 0,
            bands TEXT DEFAULT '[]',
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """,

    'orbital_elements': """
        CREATE TABLE IF NOT EXISTS orbital_elements (
            id TEXT PRIMARY KEY,
            satellite_id TEXT NOT NULL,
            line1 TEXT NOT NULL,
            line2 TEXT NOT NULL,
            epoch TEXT NOT NULL,
            source TEXT NOT NULL DEFAULT 'live',
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (satellite_id) REFERENCES satellites(id) ON DELETE CASCADE
        )
    """,

    # ============== Results Layer ==============
    'contact_windows': """
        CREATE TABLE IF NOT EXISTS contact_windows (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            satellite_id TEXT NOT NULL,
            ground_station_id TEXT NOT NULL,
            scheduled_aos TEXT NOT NULL,
            scheduled_los TEXT NOT NULL,
            max_elevation_deg REAL NOT NULL,
            duration_seconds INTEGER NOT NULL,
            elements_used_id TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'scheduled',
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (satellite_id, ground_station_id, scheduled_aos)
        )
    """,
}

# Secondary indexes
INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_elements_satellite ON orbital_elements (satellite_id, epoch)",
    "CREATE INDEX IF NOT EXISTS idx_windows_pair ON contact_windows (satellite_id, ground_station_id)",
]


def get_create_table_sql(table_name: str) -> str:
    """Get CREATE TABLE SQL for specified table

    Args:
        table_name: Name of the table

    Returns:
        SQL CREATE TABLE statement

    Raises:
        KeyError: If table name is not recognized
    """
    if table_name not in SCHEMAS:
        raise KeyError(f"Unknown table: {table_name}. Available tables: {list(SCHEMAS.keys())}")
    return SCHEMAS[table_name]
