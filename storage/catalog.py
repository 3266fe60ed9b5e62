"""Catalog repository: satellites, ground stations and orbital element sets."""
import json
import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Dict, Any

from core.models.satellite import Satellite, format_utc
from core.models.ground_station import GroundStation
from core.models.orbital_elements import OrbitalElements

from .sqlite_storage import SQLiteStorage

logger = logging.getLogger(__name__)


class CatalogRepository(ABC):
    """Abstract base class for catalog storage.

    This class defines the read interface the refresh engine consumes and
    the minimal write interface used by catalog import.
    """

    # Satellite methods
    @abstractmethod
    def get_satellite(self, satellite_id: str) -> Optional[Satellite]:
        """Get satellite by ID."""
        pass

    @abstractmethod
    def list_satellites(self) -> List[Satellite]:
        """List all satellites."""
        pass

    @abstractmethod
    def save_satellite(self, satellite: Satellite) -> None:
        """Save satellite."""
        pass

    # Ground station methods
    @abstractmethod
    def get_ground_station(self, gs_id: str) -> Optional[GroundStation]:
        """Get ground station by ID."""
        pass

    @abstractmethod
    def list_ground_stations(self) -> List[GroundStation]:
        """List all ground stations."""
        pass

    @abstractmethod
    def save_ground_station(self, gs: GroundStation) -> None:
        """Save ground station."""
        pass

    # Orbital element methods
    @abstractmethod
    def save_elements(self, elements: OrbitalElements, make_current: bool = True) -> None:
        """Save an element set, optionally making it the satellite's current one."""
        pass

    @abstractmethod
    def get_current_elements(self, satellite_id: str) -> Optional[OrbitalElements]:
        """Current element set of a satellite, None if it has none."""
        pass


class SQLiteCatalogRepository(CatalogRepository):
    """Catalog repository backed by SQLiteStorage."""

    def __init__(self, storage: SQLiteStorage):
        self.storage = storage

    # Satellite methods
    def get_satellite(self, satellite_id: str) -> Optional[Satellite]:
        row = self.storage.fetch_one("SELECT * FROM satellites WHERE id = ?", (satellite_id,))
        return Satellite.from_dict(row) if row else None

    def list_satellites(self) -> List[Satellite]:
        rows = self.storage.fetch_all("SELECT * FROM satellites ORDER BY id")
        return [Satellite.from_dict(row) for row in rows]

    def save_satellite(self, satellite: Satellite) -> None:
        data = satellite.to_dict()
        existing = self.get_satellite(satellite.id)
        # Keep the current element reference when the caller does not set one
        if existing and data['current_elements_id'] is None:
            data['current_elements_id'] = existing.current_elements_id
        self.storage.upsert('satellites', data, ('id',))
        logger.debug(f"Saved satellite {satellite.id}")

    # Ground station methods
    def get_ground_station(self, gs_id: str) -> Optional[GroundStation]:
        row = self.storage.fetch_one("SELECT * FROM ground_stations WHERE id = ?", (gs_id,))
        return self._row_to_station(row) if row else None

    def list_ground_stations(self) -> List[GroundStation]:
        rows = self.storage.fetch_all("SELECT * FROM ground_stations ORDER BY id")
        return [self._row_to_station(row) for row in rows]

    def save_ground_station(self, gs: GroundStation) -> None:
        data = gs.to_dict()
        data['bands'] = json.dumps(list(gs.bands))
        self.storage.upsert('ground_stations', data, ('id',))
        logger.debug(f"Saved ground station {gs.id}")

    @staticmethod
    def _row_to_station(row: Dict[str, Any]) -> GroundStation:
        data = dict(row)
        data['bands'] = json.loads(data.get('bands') or '[]')
        return GroundStation.from_dict(data)

    # Orbital element methods
    def save_elements(self, elements: OrbitalElements, make_current: bool = True) -> None:
        data = elements.to_dict()
        data['epoch'] = format_utc(elements.epoch)
        with self.storage.transaction():
            self.storage.upsert('orbital_elements', data, ('id',))
            # orbital_elements.satellite_id is a foreign key, unknown satellites fail above
            if make_current:
                self.storage.update(
                    'satellites', {'current_elements_id': elements.id},
                    'id = ?', (elements.satellite_id,)
                )
        logger.debug(f"Saved element set {elements.id} for {elements.satellite_id}")

    def get_elements(self, elements_id: str) -> Optional[OrbitalElements]:
        """Get element set by ID."""
        row = self.storage.fetch_one("SELECT * FROM orbital_elements WHERE id = ?", (elements_id,))
        return OrbitalElements.from_dict(row) if row else None

    def get_current_elements(self, satellite_id: str) -> Optional[OrbitalElements]:
        row = self.storage.fetch_one(
            "SELECT e.* FROM orbital_elements e "
            "JOIN satellites s ON s.current_elements_id = e.id "
            "WHERE s.id = ?",
            (satellite_id,)
        )
        return OrbitalElements.from_dict(row) if row else None


def import_catalog(repository: CatalogRepository, satellites, ground_stations, elements) -> Dict[str, int]:
    """Write parsed catalog entries; each element set becomes its satellite's current one.

    Returns:
        Counts of written satellites, ground stations and element sets
    """
    for satellite in satellites:
        repository.save_satellite(satellite)
    for gs in ground_stations:
        repository.save_ground_station(gs)
    for item in elements:
        repository.save_elements(item, make_current=True)

    counts = {
        'satellites': len(satellites),
        'ground_stations': len(ground_stations),
        'elements': len(elements),
    }
    logger.info(f"Imported catalog: {counts}")
    return counts
